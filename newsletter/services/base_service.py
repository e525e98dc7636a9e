# newsletter/services/base_service.py
"""Base service with common read operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Type, Any, Optional, TypeVar, Generic

# Define generic type
T = TypeVar('T')

class BaseService(Generic[T]):
    def __init__(self, model: Type[T], db: AsyncSession):
        self.model = model
        self.db = db

    def _live(self, stmt, include_deleted: bool = False):
        # Add soft delete filter if model has deleted_at field
        if hasattr(self.model, 'deleted_at') and not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    async def get(self, id: Any, include_deleted: bool = False) -> Optional[T]:
        stmt = self._live(select(self.model).where(self.model.id == id), include_deleted)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()
