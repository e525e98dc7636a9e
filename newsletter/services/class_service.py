# newsletter/services/class_service.py
from typing import Iterable, List, Set
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import InvalidClassReference
from ..models.class_model import ClassModel


class ClassService(BaseService[ClassModel]):
    def __init__(self, db: AsyncSession):
        super().__init__(ClassModel, db)

    async def get_many(self, class_ids: Iterable[str]) -> List[ClassModel]:
        """Classes for the given ids, highest grade first"""
        ids = set(class_ids)
        if not ids:
            return []
        stmt = (
            select(self.model)
            .where(self.model.id.in_(ids))
            .order_by(self.model.class_grade_year.desc(), self.model.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def missing_ids(self, class_ids: Iterable[str]) -> Set[str]:
        ids = set(class_ids)
        if not ids:
            return set()
        stmt = select(self.model.id).where(self.model.id.in_(ids))
        result = await self.db.execute(stmt)
        return ids - set(result.scalars().all())

    async def ensure_exist(self, class_ids: Iterable[str]):
        """Raise InvalidClassReference if any id has no class row"""
        missing = await self.missing_ids(class_ids)
        if missing:
            raise InvalidClassReference(missing)
