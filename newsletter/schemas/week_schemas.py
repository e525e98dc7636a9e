# newsletter/schemas/week_schemas.py
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field


class WeekCreate(BaseModel):
    week_number: str = Field(..., min_length=1, max_length=10, examples=["2025-W47"])
    release_date: date


class WeekResponse(BaseModel):
    week_number: str
    release_date: date
    is_published: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
