# newsletter/services/visibility.py
"""Decides which articles of a week a viewer may read.

Pure in-memory filtering: the caller loads the week's articles and the
viewer's class set, this module never touches the store. Work is linear in
the number of articles plus their restricted class lists.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.article import Article, CLASS_RESTRICTED, PUBLIC

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityWarning:
    article_id: object
    message: str


@dataclass
class VisibilityResult:
    articles: List[Article] = field(default_factory=list)
    warnings: List[VisibilityWarning] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.articles)


def is_live(article: Article) -> bool:
    return article.deleted_at is None and bool(article.is_published)


def _restriction_matches(article: Article, viewer: frozenset) -> Optional[bool]:
    """True/False for a well-formed restriction, None when the row is corrupt."""
    classes = article.restricted_to_classes
    if not classes:
        return None
    return any(class_id in viewer for class_id in classes)


def visible_articles(
    week_articles: Iterable[Article],
    viewer_classes: Optional[Iterable[str]] = None,
) -> VisibilityResult:
    """Filter, deduplicate and order a week's articles for one viewer.

    An empty ``viewer_classes`` means public-only, never "every class".
    A class-restricted article without classes cannot be shown to anyone; it
    is dropped and reported as a warning instead of failing the read.
    """
    viewer = frozenset(viewer_classes or ())
    selected: Dict[object, Article] = {}
    warnings: List[VisibilityWarning] = []
    flagged = set()

    for article in week_articles:
        if not is_live(article):
            continue

        if article.visibility_type == PUBLIC:
            selected[article.id] = article
            continue

        if article.visibility_type != CLASS_RESTRICTED:
            if article.id not in flagged:
                flagged.add(article.id)
                warnings.append(VisibilityWarning(
                    article.id, f"Unknown visibility type '{article.visibility_type}'"
                ))
            continue

        matches = _restriction_matches(article, viewer)
        if matches is None:
            if article.id not in flagged:
                flagged.add(article.id)
                warnings.append(VisibilityWarning(
                    article.id, "Class-restricted article has no classes; hidden from all readers"
                ))
            continue
        if matches:
            selected[article.id] = article

    for warning in warnings:
        logger.warning(f"Data integrity: article {warning.article_id}: {warning.message}")

    ordered = sorted(selected.values(), key=lambda a: a.article_order)
    return VisibilityResult(articles=ordered, warnings=warnings)


def visible_to_class(week_articles: Sequence[Article], class_id: str) -> VisibilityResult:
    """Single fixed class instead of a family-derived set."""
    return visible_articles(week_articles, [class_id])
