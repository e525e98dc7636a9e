# newsletter/services/revert_service.py
import logging
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from .article_service import ArticleService, ArticleWriteResult
from .revision_ledger import RevisionLedger
from ..core.database import run_unit_of_work
from ..core.exceptions import NoPriorValues, RevisionNotFound
from ..models.article import MUTABLE_FIELDS
from ..models.revision import CREATE
from ..schemas.article_schemas import ArticleVersion

logger = logging.getLogger(__name__)


class RevertEngine:
    """Restores an article's content fields from an earlier ledger entry.

    A revert is an ordinary update: it takes the row lock, passes the same
    validation and leaves its own ``update`` entry in the ledger, so reverting
    is itself revertible.
    """

    def __init__(self, db: AsyncSession, articles: Optional[ArticleService] = None):
        self.db = db
        self.articles = articles or ArticleService(db)
        self.ledger = RevisionLedger(db)

    async def revert(
        self,
        article_id: UUID,
        entry_id: int,
        actor_id: Optional[UUID] = None,
        expected_version: Optional[ArticleVersion] = None,
    ) -> ArticleWriteResult:
        await run_unit_of_work(self.db, lambda: self.articles.permissions.assert_can_write(actor_id))

        entry = await run_unit_of_work(self.db, lambda: self.ledger.get_entry(entry_id))
        if entry is None or entry.article_id != article_id:
            raise RevisionNotFound(entry_id, article_id)
        if entry.operation == CREATE or not entry.old_values:
            raise NoPriorValues(entry_id)

        restored = {name: entry.old_values.get(name) for name in MUTABLE_FIELDS}
        result = await self.articles.update_article(article_id, restored, expected_version, actor_id)
        logger.info(f"Reverted article {article_id} to the state before revision {entry_id}")
        return result
