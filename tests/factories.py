"""Unsaved Article rows for tests of the in-memory components."""
import uuid
from datetime import datetime, timezone

from newsletter.models.article import Article, CLASS_RESTRICTED, PUBLIC

STAMP = datetime(2025, 11, 17, 9, 0, tzinfo=timezone.utc)


def make_article(order, visibility=PUBLIC, classes=None, published=True, deleted=False, **overrides):
    values = dict(
        id=uuid.uuid4(),
        short_id=uuid.uuid4().hex[:6],
        week_number="2025-W47",
        title=f"Article {order}",
        content="Body",
        author="Office",
        article_order=order,
        is_published=published,
        visibility_type=visibility,
        restricted_to_classes=classes,
        created_at=STAMP,
        updated_at=STAMP,
        deleted_at=STAMP if deleted else None,
    )
    values.update(overrides)
    return Article(**values)


def restricted(order, *classes, **overrides):
    return make_article(order, CLASS_RESTRICTED, list(classes), **overrides)
