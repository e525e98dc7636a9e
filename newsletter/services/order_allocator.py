# newsletter/services/order_allocator.py
"""Per-week display order allocation.

The partial unique index ``uq_articles_week_order`` is what actually keeps
two live articles from sharing an order; the checks here give callers a
precise error before the write and translate the index violation when two
writers race past them.
"""
import logging
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateOrder, InvalidReorder
from ..models.article import Article

logger = logging.getLogger(__name__)

ORDER_INDEX_NAME = "uq_articles_week_order"


def is_order_violation(error: IntegrityError) -> bool:
    """Whether an IntegrityError came from the (week, order) unique index"""
    message = str(error.orig)
    return ORDER_INDEX_NAME in message or "articles.article_order" in message


class OrderAllocator:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def max_order(self, week_number: str) -> int:
        """Highest order ever handed out in the week, soft-deleted rows included.

        Soft delete does not hand a slot back to automatic allocation; reusing
        a deleted article's order requires asking for it explicitly.
        """
        stmt = select(func.max(Article.article_order)).where(Article.week_number == week_number)
        return (await self.db.scalar(stmt)) or 0

    async def holder_of(self, week_number: str, article_order: int) -> Optional[Article]:
        """The live article currently occupying an order, if any"""
        stmt = select(Article).where(
            Article.week_number == week_number,
            Article.article_order == article_order,
            Article.deleted_at.is_(None),
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def validate(self, week_number: str, article_order: int, exclude_id: Optional[UUID] = None):
        """Raise DuplicateOrder if another live article already holds the order"""
        holder = await self.holder_of(week_number, article_order)
        if holder is not None and holder.id != exclude_id:
            raise DuplicateOrder(week_number, article_order)

    async def allocate(self, week_number: str, requested_order: Optional[int] = None) -> int:
        if requested_order is None:
            return await self.max_order(week_number) + 1
        await self.validate(week_number, requested_order)
        return requested_order

    async def live_articles(self, week_number: str) -> List[Article]:
        stmt = select(Article).where(
            Article.week_number == week_number,
            Article.deleted_at.is_(None),
        ).order_by(Article.article_order)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def plan_reorder(self, week_number: str, order_map: Dict[UUID, int]) -> List[Article]:
        """Validate a batch reorder and return the affected articles.

        Every id must be a live article of the week, target orders must be
        distinct positive integers, and no target may collide with a live
        article outside the batch.
        """
        if not order_map:
            raise InvalidReorder("Reorder request contains no articles")

        targets = list(order_map.values())
        if any(order < 1 for order in targets):
            raise InvalidReorder("Article orders must be positive integers", {"orders": targets})
        if len(set(targets)) != len(targets):
            raise InvalidReorder("Reorder request assigns the same order twice", {"orders": targets})

        live = {article.id: article for article in await self.live_articles(week_number)}
        missing = [str(article_id) for article_id in order_map if article_id not in live]
        if missing:
            raise InvalidReorder(
                f"Some articles not found in week {week_number}: {', '.join(missing)}",
                {"article_ids": missing},
            )

        outside = {article.article_order for article_id, article in live.items() if article_id not in order_map}
        for order in targets:
            if order in outside:
                raise DuplicateOrder(week_number, order)

        return [live[article_id] for article_id in order_map]

    async def audit(self, week_number: str) -> Dict[str, object]:
        """Sanity report on a week's live orders"""
        orders = [article.article_order for article in await self.live_articles(week_number)]
        errors: List[str] = []
        if not orders:
            return {"valid": True, "errors": errors}

        if len(set(orders)) != len(orders):
            errors.append("Duplicate article orders detected")
        if any(order < 1 for order in orders):
            errors.append("Article orders must be positive integers")
        if max(orders) > len(orders) * 2:
            errors.append(f"Unusual gap in article orders (max: {max(orders)}, count: {len(orders)})")

        return {"valid": not errors, "errors": errors}
