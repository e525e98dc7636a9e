# newsletter/schemas/article_schemas.py
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

VisibilityType = Literal["public", "class_restricted"]


class ArticleCreate(BaseModel):
    title: str = Field(..., min_length=1)
    content: str
    author: Optional[str] = Field(default=None, max_length=100)
    visibility_type: VisibilityType = "public"
    restricted_to_classes: Optional[List[str]] = None
    # Omit to append after the week's current last article
    article_order: Optional[int] = Field(default=None, ge=1)
    is_published: bool = False


class ArticleVersion(BaseModel):
    """The version of an article an editor last loaded."""
    updated_at: datetime
    title: str
    content: str
    author: Optional[str] = None
    visibility_type: VisibilityType
    restricted_to_classes: Optional[List[str]] = None

    model_config = ConfigDict(from_attributes=True)


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = None
    author: Optional[str] = Field(default=None, max_length=100)
    visibility_type: Optional[VisibilityType] = None
    restricted_to_classes: Optional[List[str]] = None
    is_published: Optional[bool] = None
    expected_version: Optional[ArticleVersion] = None

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True, exclude={"expected_version"})


class ClassRestrictionRequest(BaseModel):
    class_ids: List[str]


class ArticleResponse(BaseModel):
    id: UUID
    short_id: str
    week_number: str
    title: str
    content: str
    author: Optional[str] = None
    article_order: int
    is_published: bool
    visibility_type: VisibilityType
    restricted_to_classes: Optional[List[str]] = None
    created_by: Optional[UUID] = None
    updated_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ConflictReport(BaseModel):
    has_conflict: bool
    local_version: ArticleVersion
    remote_version: ArticleResponse
    last_modified_by: Optional[UUID] = None
    last_modified_at: datetime
    changed_fields: List[str] = []


class ArticleUpdateResponse(BaseModel):
    article: ArticleResponse
    conflict: Optional[ConflictReport] = None


class RevisionEntry(BaseModel):
    id: int
    article_id: UUID
    operation: Literal["create", "update", "delete"]
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    changed_by: Optional[UUID] = None
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReorderRequest(BaseModel):
    orders: Dict[UUID, int]


class OrderAuditResponse(BaseModel):
    valid: bool
    errors: List[str]


class ClassResponse(BaseModel):
    id: str
    class_name: str
    class_grade_year: int

    model_config = ConfigDict(from_attributes=True)


class IntegrityWarning(BaseModel):
    article_id: UUID
    message: str


class FamilyArticlesResponse(BaseModel):
    articles: List[ArticleResponse]
    resolved_classes: List[ClassResponse]
    total_count: int
    execution_time_ms: float
    warnings: List[IntegrityWarning] = []


class ArticleListResponse(BaseModel):
    articles: List[ArticleResponse]
    total_count: int
    warnings: List[IntegrityWarning] = []
