# newsletter/services/article_query_service.py
"""Reader-facing article queries.

Reads never write. Each one loads the week's published articles with a
single query and hands them to the visibility resolver together with the
viewer's class set.
"""
import logging
import time
from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .class_service import ClassService
from .enrollment_service import EnrollmentService
from .visibility import VisibilityResult, visible_articles
from .week_service import WeekService
from ..core.cache import CacheManager, cache as default_cache
from ..core.database import run_unit_of_work
from ..core.exceptions import InvalidClassReference
from ..models.article import Article
from ..schemas.article_schemas import (
    ArticleListResponse, ArticleResponse, ClassResponse, FamilyArticlesResponse, IntegrityWarning
)

logger = logging.getLogger(__name__)


class ArticleQueryService:
    def __init__(self, db: AsyncSession, cache: Optional[CacheManager] = None):
        self.db = db
        self.cache = cache or default_cache
        self.weeks = WeekService(db)
        self.classes = ClassService(db)
        self.enrollments = EnrollmentService(db)

    async def _published_week_articles(self, week_number: str) -> List[Article]:
        stmt = select(Article).where(
            Article.week_number == week_number,
            Article.is_published.is_(True),
            Article.deleted_at.is_(None),
        ).order_by(Article.article_order)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _resolve(self, week_number: str, class_ids: Iterable[str]) -> ArticleListResponse:
        """Visible articles for a class set, served from cache when possible"""
        class_ids = set(class_ids)
        # Read before the store load; a write committed after this point bumps
        # the generation and the view below lands under a dead key
        generation = await self.cache.week_generation(week_number)
        key = None
        if generation is not None:
            key = self.cache.reader_key(week_number, class_ids, generation)
            cached = await self.cache.get(key)
            if cached is not None:
                return ArticleListResponse.model_validate(cached)

        async def work():
            await self.weeks.get_or_raise(week_number)
            return await self._published_week_articles(week_number)

        rows = await run_unit_of_work(self.db, work)
        result: VisibilityResult = visible_articles(rows, class_ids)
        response = ArticleListResponse(
            articles=[ArticleResponse.model_validate(a) for a in result.articles],
            total_count=result.total_count,
            warnings=[IntegrityWarning(article_id=w.article_id, message=w.message) for w in result.warnings],
        )
        if key is not None:
            await self.cache.set(key, response.model_dump(mode="json"))
        return response

    async def get_articles_for_family(self, family_id: UUID, week_number: str) -> FamilyArticlesResponse:
        """Articles a family may read in a week.

        The class set is the union of the children's active enrollments. A
        family with no active enrollments (or no record at all) sees public
        articles only.
        """
        start = time.perf_counter()
        classes = await run_unit_of_work(self.db, lambda: self.enrollments.children_classes(family_id))
        listing = await self._resolve(week_number, (c.id for c in classes))
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info(
            f"Family {family_id} week {week_number}: {listing.total_count} article(s) "
            f"across {len(classes)} class(es) in {elapsed_ms}ms"
        )
        return FamilyArticlesResponse(
            articles=listing.articles,
            resolved_classes=[ClassResponse.model_validate(c) for c in classes],
            total_count=listing.total_count,
            execution_time_ms=elapsed_ms,
            warnings=listing.warnings,
        )

    async def get_articles_for_class(self, class_id: str, week_number: str) -> ArticleListResponse:
        """Public articles plus those restricted to this one class"""
        class_row = await run_unit_of_work(self.db, lambda: self.classes.get(class_id))
        if class_row is None:
            raise InvalidClassReference([class_id])
        return await self._resolve(week_number, [class_id])

    async def get_public_articles(self, week_number: str) -> ArticleListResponse:
        return await self._resolve(week_number, [])
