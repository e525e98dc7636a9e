# newsletter/services/permission_service.py
"""Authorization checks for article editing and management.

Rules:
- admin, editor: create, edit and delete any article
- teacher: create and edit class-restricted articles for classes they teach
- parent, student, unknown users: read-only

Callers check ``assert_can_write`` before loading an article so a reader
without write rights learns nothing about whether the article exists.
"""
from typing import Iterable, Optional, Set
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InsufficientPermissions
from ..models.article import Article, CLASS_RESTRICTED
from ..models.user import TeacherClassAssignment, UserRole

FULL_EDIT_ROLES = {"admin", "editor"}
WRITE_ROLES = FULL_EDIT_ROLES | {"teacher"}
DELETE_ROLES = {"admin", "editor"}


class PermissionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_role(self, user_id: Optional[UUID]) -> Optional[str]:
        if user_id is None:
            return None
        return await self.db.scalar(select(UserRole.role).where(UserRole.id == user_id))

    async def get_teacher_classes(self, teacher_id: UUID) -> Set[str]:
        stmt = select(TeacherClassAssignment.class_id).where(TeacherClassAssignment.teacher_id == teacher_id)
        result = await self.db.execute(stmt)
        return set(result.scalars().all())

    async def assert_can_write(self, user_id: Optional[UUID]) -> str:
        """Role gate that runs before any article lookup. Returns the role."""
        role = await self.get_user_role(user_id)
        if role not in WRITE_ROLES:
            raise InsufficientPermissions(
                f"User with role '{role}' cannot modify articles",
                {"role": role},
            )
        return role

    async def _teacher_owns(self, user_id: UUID, class_ids: Optional[Iterable[str]]) -> bool:
        if not class_ids:
            return False
        teacher_classes = await self.get_teacher_classes(user_id)
        return any(class_id in teacher_classes for class_id in class_ids)

    async def assert_can_create(self, user_id: Optional[UUID], visibility_type: str, class_ids: Optional[Iterable[str]]):
        role = await self.assert_can_write(user_id)
        if role in FULL_EDIT_ROLES:
            return
        if visibility_type == CLASS_RESTRICTED and await self._teacher_owns(user_id, class_ids):
            return
        raise InsufficientPermissions(
            "Teachers can only create articles restricted to classes they teach",
            {"role": role},
        )

    async def assert_can_edit(self, user_id: Optional[UUID], article: Article, role: Optional[str] = None):
        role = role or await self.assert_can_write(user_id)
        if role in FULL_EDIT_ROLES:
            return
        if article.visibility_type == CLASS_RESTRICTED and await self._teacher_owns(user_id, article.restricted_to_classes):
            return
        raise InsufficientPermissions(
            f"User with role '{role}' cannot edit this article. "
            "Only admins, editors and teachers of the restricted class can edit.",
            {"role": role},
        )

    async def assert_can_delete(self, user_id: Optional[UUID]):
        role = await self.get_user_role(user_id)
        if role not in DELETE_ROLES:
            raise InsufficientPermissions(
                f"User with role '{role}' cannot delete articles. Only admins and editors can delete articles.",
                {"role": role},
            )

    async def assert_can_view_history(self, user_id: Optional[UUID]):
        await self.assert_can_write(user_id)

    async def assert_can_manage_weeks(self, user_id: Optional[UUID]):
        role = await self.get_user_role(user_id)
        if role not in FULL_EDIT_ROLES:
            raise InsufficientPermissions(
                f"User with role '{role}' cannot manage newsletter weeks",
                {"role": role},
            )
