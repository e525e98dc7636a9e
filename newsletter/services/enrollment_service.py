# newsletter/services/enrollment_service.py
from typing import List, Set
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .class_service import ClassService
from ..models.class_model import ClassModel
from ..models.family import ChildClassEnrollment


class EnrollmentService(BaseService[ChildClassEnrollment]):
    """Resolves which classes a family's children currently attend."""

    def __init__(self, db: AsyncSession):
        super().__init__(ChildClassEnrollment, db)

    async def active_classes(self, family_id: UUID) -> Set[str]:
        """Union of the classes any child of the family is actively enrolled in.

        An unknown family, a family without children and a family whose
        children have all graduated all resolve to the empty set, which
        readers treat as public-only.
        """
        stmt = select(self.model.class_id).where(
            self.model.family_id == family_id,
            self.model.graduated_at.is_(None),
        ).distinct()
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def children_classes(self, family_id: UUID) -> List[ClassModel]:
        """Class rows behind active_classes, highest grade first"""
        class_ids = await self.active_classes(family_id)
        return await ClassService(self.db).get_many(class_ids)
