# newsletter/services/article_service.py
"""Article write path.

Every mutation runs as one unit of work: lock the row, check, write, stage
the ledger entry, commit. The row write and its ledger entry commit or roll
back together.
"""
import logging
import secrets
import string
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .class_service import ClassService
from .conflict_detector import detect, enforce
from .order_allocator import OrderAllocator, is_order_violation
from .permission_service import FULL_EDIT_ROLES, PermissionService
from .revision_ledger import RevisionLedger
from .week_service import WeekService
from ..core.cache import CacheManager, cache as default_cache
from ..core.config import WritePolicy, settings
from ..core.database import run_unit_of_work
from ..core.exceptions import (
    ArticleNotFound, DuplicateOrder, EmptyClassRestriction, InsufficientPermissions, InvalidArticleField
)
from ..models.article import Article, CLASS_RESTRICTED, PUBLIC, VISIBILITY_TYPES
from ..models.base import utcnow
from ..models.revision import CREATE, DELETE, UPDATE
from ..schemas.article_schemas import ArticleVersion, ConflictReport

logger = logging.getLogger(__name__)

SHORT_ID_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
SHORT_ID_LENGTH = 6
EDITABLE_FIELDS = ("title", "content", "author", "visibility_type", "restricted_to_classes", "is_published")
# Sending null for these means "leave unchanged"; the columns are NOT NULL
NON_NULLABLE_FIELDS = ("title", "content", "is_published")


@dataclass
class ArticleWriteResult:
    article: Article
    conflict: Optional[ConflictReport] = None


class ArticleService(BaseService[Article]):
    def __init__(
        self,
        db: AsyncSession,
        cache: Optional[CacheManager] = None,
        policy: Optional[WritePolicy] = None,
    ):
        super().__init__(Article, db)
        self.cache = cache or default_cache
        self.policy = policy or settings.conflict_policy
        self.orders = OrderAllocator(db)
        self.ledger = RevisionLedger(db)
        self.permissions = PermissionService(db)
        self.classes = ClassService(db)
        self.weeks = WeekService(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_article(self, article_id: UUID, include_deleted: bool = False) -> Article:
        article = await run_unit_of_work(self.db, lambda: self.get(article_id, include_deleted))
        if article is None:
            raise ArticleNotFound(article_id)
        return article

    async def list_week_articles(
        self,
        week_number: str,
        include_deleted: bool = False,
        published: Optional[bool] = None,
        actor_id: Optional[UUID] = None,
    ) -> List[Article]:
        """Editor view of a week: drafts included, visibility not applied"""
        await run_unit_of_work(self.db, lambda: self.permissions.assert_can_write(actor_id))

        async def work():
            await self.weeks.get_or_raise(week_number)
            stmt = self._live(select(Article).where(Article.week_number == week_number), include_deleted)
            if published is not None:
                stmt = stmt.where(Article.is_published.is_(published))
            stmt = stmt.order_by(Article.article_order, Article.created_at)
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await run_unit_of_work(self.db, work)

    async def _lock(self, article_id: UUID, include_deleted: bool = False) -> Article:
        """Load the row for writing. FOR UPDATE serialises writers on PostgreSQL."""
        stmt = (
            select(Article)
            .where(Article.id == article_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        article = (await self.db.execute(stmt)).scalar_one_or_none()
        if article is None or (article.deleted_at is not None and not include_deleted):
            raise ArticleNotFound(article_id)
        return article

    async def _generate_short_id(self) -> str:
        for _ in range(10):
            candidate = "".join(secrets.choice(SHORT_ID_ALPHABET) for _ in range(SHORT_ID_LENGTH))
            taken = await self.db.scalar(select(Article.id).where(Article.short_id == candidate))
            if taken is None:
                return candidate
        raise RuntimeError("Could not generate a unique short id")

    async def _flush(self, week_number: str, article_order: int):
        try:
            await self.db.flush()
        except IntegrityError as e:
            if is_order_violation(e):
                raise DuplicateOrder(week_number, article_order) from e
            raise

    async def _after_write(self, week_number: str):
        await self.cache.invalidate_week(week_number)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate_restriction(self, visibility_type: str, class_ids: Optional[List[str]]) -> Optional[List[str]]:
        """Enforce visibility == class_restricted iff the class list is non-empty.

        Returns the list to store: de-duplicated ids for restricted articles,
        None for public ones.
        """
        if visibility_type not in VISIBILITY_TYPES:
            raise InvalidArticleField(
                f"Unknown visibility type: {visibility_type}",
                {"visibility_type": visibility_type, "allowed": list(VISIBILITY_TYPES)},
            )
        if visibility_type == PUBLIC:
            if class_ids:
                raise EmptyClassRestriction(
                    "Public articles cannot be restricted to classes",
                    {"restricted_to_classes": list(class_ids)},
                )
            return None
        if not class_ids:
            raise EmptyClassRestriction("Class-restricted articles must have at least one class specified")
        normalized = list(dict.fromkeys(class_ids))
        await self.classes.ensure_exist(normalized)
        return normalized

    async def _merge(self, article: Article, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Resolve a partial update against the stored row into column values"""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise InvalidArticleField(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                {"fields": sorted(unknown)},
            )

        values = {
            name: changes[name]
            for name in ("title", "content", "author", "is_published")
            if name in changes and not (name in NON_NULLABLE_FIELDS and changes[name] is None)
        }

        if "visibility_type" in changes or "restricted_to_classes" in changes:
            visibility = changes.get("visibility_type") or article.visibility_type
            if "restricted_to_classes" in changes:
                class_ids = changes["restricted_to_classes"]
            elif visibility == PUBLIC:
                # Switching to public drops the old restriction implicitly
                class_ids = None
            else:
                class_ids = article.restricted_to_classes
            values["visibility_type"] = visibility
            values["restricted_to_classes"] = await self.validate_restriction(visibility, class_ids)

        return values

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_article(
        self,
        week_number: str,
        title: str,
        content: str,
        author: Optional[str] = None,
        visibility_type: str = PUBLIC,
        restricted_to_classes: Optional[List[str]] = None,
        article_order: Optional[int] = None,
        is_published: bool = False,
        actor_id: Optional[UUID] = None,
    ) -> Article:
        await run_unit_of_work(
            self.db, lambda: self.permissions.assert_can_create(actor_id, visibility_type, restricted_to_classes)
        )

        async def work():
            await self.weeks.get_or_raise(week_number)
            class_ids = await self.validate_restriction(visibility_type, restricted_to_classes)
            order = await self.orders.allocate(week_number, article_order)
            now = utcnow()
            article = Article(
                id=uuid.uuid4(),
                short_id=await self._generate_short_id(),
                week_number=week_number,
                title=title,
                content=content,
                author=author,
                article_order=order,
                is_published=is_published,
                visibility_type=visibility_type,
                restricted_to_classes=class_ids,
                created_by=actor_id,
                updated_by=actor_id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(article)
            await self._flush(week_number, order)
            self.ledger.append(article.id, CREATE, None, article.snapshot(), actor_id)
            await self.db.commit()
            return article

        # An explicit order that collides is the caller's error; an allocated
        # one that lost a race is simply allocated again
        attempts = 1 if article_order is not None else max(1, settings.order_allocation_attempts)
        for attempt in range(1, attempts + 1):
            try:
                article = await run_unit_of_work(self.db, work)
                break
            except DuplicateOrder:
                if attempt == attempts:
                    raise
                logger.warning(f"Order allocation race in week {week_number}, retrying ({attempt}/{attempts})")

        logger.info(f"Created article {article.id} in week {week_number} at order {article.article_order}")
        await self._after_write(week_number)
        return article

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_article(
        self,
        article_id: UUID,
        changes: Dict[str, Any],
        expected_version: Optional[ArticleVersion] = None,
        actor_id: Optional[UUID] = None,
    ) -> ArticleWriteResult:
        """Apply a partial update.

        With ``expected_version`` the stored row is compared against what the
        editor loaded. Under last-write-wins the write goes ahead either way and
        the report is returned alongside the saved article.
        """
        role = await run_unit_of_work(self.db, lambda: self.permissions.assert_can_write(actor_id))

        async def work():
            article = await self._lock(article_id)
            await self.permissions.assert_can_edit(actor_id, article, role)

            conflict = None
            if expected_version is not None:
                conflict = detect(expected_version, article)
                if conflict.has_conflict:
                    logger.warning(
                        f"Concurrent edit on article {article_id}: {', '.join(conflict.changed_fields)} "
                        f"changed since the editor loaded it (policy: {self.policy.value})"
                    )
                enforce(conflict, self.policy)

            if not changes:
                return ArticleWriteResult(article, conflict)

            values = await self._merge(article, changes)
            if role not in FULL_EDIT_ROLES and "visibility_type" in values:
                await self.permissions.assert_can_create(actor_id, values["visibility_type"], values["restricted_to_classes"])

            prior = article.snapshot()
            for name, value in values.items():
                setattr(article, name, value)
            article.updated_at = utcnow()
            article.updated_by = actor_id
            await self._flush(article.week_number, article.article_order)
            self.ledger.append(article.id, UPDATE, prior, article.snapshot(), actor_id)
            await self.db.commit()
            return ArticleWriteResult(article, conflict)

        result = await run_unit_of_work(self.db, work)
        if changes:
            logger.info(f"Updated article {article_id}: {', '.join(sorted(changes))}")
            await self._after_write(result.article.week_number)
        return result

    async def set_article_class_restriction(self, article_id: UUID, class_ids: List[str], actor_id: Optional[UUID] = None) -> Article:
        result = await self.update_article(
            article_id,
            {"visibility_type": CLASS_RESTRICTED, "restricted_to_classes": list(class_ids)},
            actor_id=actor_id,
        )
        return result.article

    async def remove_article_class_restriction(self, article_id: UUID, actor_id: Optional[UUID] = None) -> Article:
        result = await self.update_article(
            article_id,
            {"visibility_type": PUBLIC, "restricted_to_classes": None},
            actor_id=actor_id,
        )
        return result.article

    async def publish_article(self, article_id: UUID, actor_id: Optional[UUID] = None) -> Article:
        return (await self.update_article(article_id, {"is_published": True}, actor_id=actor_id)).article

    async def unpublish_article(self, article_id: UUID, actor_id: Optional[UUID] = None) -> Article:
        return (await self.update_article(article_id, {"is_published": False}, actor_id=actor_id)).article

    async def detect_conflict(self, article_id: UUID, local_version: ArticleVersion, actor_id: Optional[UUID] = None) -> ConflictReport:
        """Compare an editor's loaded version with the stored one without writing"""
        await run_unit_of_work(self.db, lambda: self.permissions.assert_can_write(actor_id))
        article = await self.get_article(article_id)
        return detect(local_version, article)

    # ------------------------------------------------------------------
    # Delete / restore
    # ------------------------------------------------------------------

    async def delete_article(self, article_id: UUID, actor_id: Optional[UUID] = None) -> Article:
        """Soft delete: the row stays, leaves every read path and is unpublished"""
        await run_unit_of_work(self.db, lambda: self.permissions.assert_can_delete(actor_id))

        async def work():
            article = await self._lock(article_id)
            prior = article.snapshot()
            now = utcnow()
            article.deleted_at = now
            article.is_published = False
            article.updated_at = now
            article.updated_by = actor_id
            await self.db.flush()
            self.ledger.append(article.id, DELETE, prior, article.snapshot(), actor_id)
            await self.db.commit()
            return article

        article = await run_unit_of_work(self.db, work)
        logger.info(f"Soft-deleted article {article_id}")
        await self._after_write(article.week_number)
        return article

    async def restore_article(self, article_id: UUID, actor_id: Optional[UUID] = None) -> Article:
        """Bring back a soft-deleted article if its old order is still free"""
        await run_unit_of_work(self.db, lambda: self.permissions.assert_can_delete(actor_id))

        async def work():
            article = await self._lock(article_id, include_deleted=True)
            if article.deleted_at is None:
                return article
            await self.orders.validate(article.week_number, article.article_order, exclude_id=article.id)
            prior = article.snapshot()
            article.deleted_at = None
            article.updated_at = utcnow()
            article.updated_by = actor_id
            await self._flush(article.week_number, article.article_order)
            self.ledger.append(article.id, UPDATE, prior, article.snapshot(), actor_id)
            await self.db.commit()
            return article

        article = await run_unit_of_work(self.db, work)
        logger.info(f"Restored article {article_id}")
        await self._after_write(article.week_number)
        return article

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    async def reorder_articles(self, week_number: str, order_map: Dict[UUID, int], actor_id: Optional[UUID] = None) -> List[Article]:
        """Move several articles at once; all moves commit or none do"""
        role = await run_unit_of_work(self.db, lambda: self.permissions.assert_can_write(actor_id))
        if role not in FULL_EDIT_ROLES:
            raise InsufficientPermissions(f"User with role '{role}' cannot reorder articles", {"role": role})

        async def work():
            await self.weeks.get_or_raise(week_number)
            articles = await self.orders.plan_reorder(week_number, order_map)
            moving = [a for a in articles if a.article_order != order_map[a.id]]
            if not moving:
                return await self.orders.live_articles(week_number)

            priors = {a.id: a.snapshot() for a in moving}
            # Park moved rows above every order in the week so no intermediate
            # flush can collide with a slot another moved row is leaving
            ceiling = await self.orders.max_order(week_number)
            for offset, article in enumerate(moving, start=1):
                article.article_order = ceiling + offset
            await self._flush(week_number, ceiling + 1)

            now = utcnow()
            for article in moving:
                article.article_order = order_map[article.id]
                article.updated_at = now
                article.updated_by = actor_id
            await self._flush(week_number, moving[0].article_order)

            for article in moving:
                self.ledger.append(article.id, UPDATE, priors[article.id], article.snapshot(), actor_id)
            await self.db.commit()
            return await self.orders.live_articles(week_number)

        articles = await run_unit_of_work(self.db, work)
        logger.info(f"Reordered {len(order_map)} article(s) in week {week_number}")
        await self._after_write(week_number)
        return articles

    async def audit_order(self, week_number: str) -> Dict[str, object]:
        async def work():
            await self.weeks.get_or_raise(week_number)
            return await self.orders.audit(week_number)

        return await run_unit_of_work(self.db, work)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def get_article_history(self, article_id: UUID, limit: int = 20, offset: int = 0, actor_id: Optional[UUID] = None):
        """Ledger entries for an article, deleted articles included"""
        await run_unit_of_work(self.db, lambda: self.permissions.assert_can_view_history(actor_id))
        await self.get_article(article_id, include_deleted=True)
        return await run_unit_of_work(self.db, lambda: self.ledger.history(article_id, limit, offset))
