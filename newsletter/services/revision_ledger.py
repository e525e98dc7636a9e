# newsletter/services/revision_ledger.py
"""Append-only article history.

Entries are only ever inserted. They are added in
the same transaction as the article write they describe, so an entry exists
exactly when its write committed.
"""
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..models.base import utcnow
from ..models.revision import ArticleRevision, OPERATIONS


class RevisionLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    def append(
        self,
        article_id: UUID,
        operation: str,
        old_values: Optional[dict],
        new_values: Optional[dict],
        changed_by: Optional[UUID],
    ) -> ArticleRevision:
        """Stage one entry on the current transaction. The caller commits."""
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown ledger operation: {operation}")
        entry = ArticleRevision(
            article_id=article_id,
            operation=operation,
            old_values=old_values,
            new_values=new_values,
            changed_by=changed_by,
            changed_at=utcnow(),
        )
        self.db.add(entry)
        return entry

    async def history(self, article_id: UUID, limit: int = 20, offset: int = 0) -> List[ArticleRevision]:
        """Entries newest first. Concurrent editors interleave in commit order."""
        limit = max(1, min(limit, settings.history_max_limit))
        stmt = (
            select(ArticleRevision)
            .where(ArticleRevision.article_id == article_id)
            .order_by(ArticleRevision.changed_at.desc(), ArticleRevision.id.desc())
            .offset(max(0, offset))
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_entry(self, entry_id: int) -> Optional[ArticleRevision]:
        return await self.db.get(ArticleRevision, entry_id)
