# newsletter/services/week_service.py
import logging
import re
from datetime import date
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.database import run_unit_of_work
from ..core.exceptions import DuplicateWeek, InvalidWeekNumber, WeekNotFound
from ..models.week import NewsletterWeek

logger = logging.getLogger(__name__)

WEEK_NUMBER_PATTERN = re.compile(r"^\d{4}-W\d{2}$")


class WeekService(BaseService[NewsletterWeek]):
    def __init__(self, db: AsyncSession):
        super().__init__(NewsletterWeek, db)

    @staticmethod
    def is_valid_week_number(week_number: str) -> bool:
        return bool(WEEK_NUMBER_PATTERN.match(week_number or ""))

    async def get(self, week_number: str) -> Optional[NewsletterWeek]:
        return await self.db.get(self.model, week_number)

    async def get_or_raise(self, week_number: str) -> NewsletterWeek:
        week = await self.get(week_number)
        if week is None:
            raise WeekNotFound(week_number)
        return week

    async def list_weeks(self, published_only: bool = False, skip: int = 0, limit: int = 50) -> List[NewsletterWeek]:
        """Weeks newest first"""
        stmt = select(self.model).order_by(self.model.week_number.desc()).offset(skip).limit(limit)
        if published_only:
            stmt = stmt.where(self.model.is_published.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_week(self, week_number: str, release_date: date) -> NewsletterWeek:
        if not self.is_valid_week_number(week_number):
            raise InvalidWeekNumber(week_number)

        async def work():
            if await self.get(week_number) is not None:
                raise DuplicateWeek(week_number)
            week = NewsletterWeek(week_number=week_number, release_date=release_date, is_published=False)
            self.db.add(week)
            try:
                await self.db.flush()
            except IntegrityError as e:
                raise DuplicateWeek(week_number) from e
            await self.db.commit()
            return week

        week = await run_unit_of_work(self.db, work)
        logger.info(f"Created week {week_number}")
        return week

    async def set_published(self, week_number: str, published: bool) -> NewsletterWeek:
        async def work():
            week = await self.get_or_raise(week_number)
            week.is_published = published
            await self.db.commit()
            return week

        week = await run_unit_of_work(self.db, work)
        logger.info(f"Week {week_number} {'published' if published else 'unpublished'}")
        return week
