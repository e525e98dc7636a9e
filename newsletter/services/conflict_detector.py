# newsletter/services/conflict_detector.py
"""Concurrent-edit detection.

The detector only reports. Whether a stale write is accepted is decided by
the write policy; the system runs last-write-wins, so a report is a warning
for the editor, not a lock.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional

from ..core.config import WritePolicy
from ..core.exceptions import EditConflict
from ..models.article import Article
from ..schemas.article_schemas import ArticleResponse, ArticleVersion, ConflictReport


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _class_set(value: Optional[List[str]]) -> frozenset:
    return frozenset(value or ())


def changed_fields(local: ArticleVersion, remote: Any) -> List[str]:
    """Names of the fields whose values differ between two versions."""
    changed = []
    if _as_utc(local.updated_at) != _as_utc(remote.updated_at):
        changed.append("updated_at")
    for name in ("title", "content", "author", "visibility_type"):
        if getattr(local, name) != getattr(remote, name):
            changed.append(name)
    # Class lists are sets; ordering in the stored array is not meaningful
    if _class_set(local.restricted_to_classes) != _class_set(remote.restricted_to_classes):
        changed.append("restricted_to_classes")
    return changed


def detect(local_version: ArticleVersion, current: Article) -> ConflictReport:
    """Compare what the editor loaded with what is stored now."""
    differences = changed_fields(local_version, current)
    return ConflictReport(
        has_conflict=bool(differences),
        local_version=local_version,
        remote_version=ArticleResponse.model_validate(current),
        last_modified_by=current.updated_by or current.created_by,
        last_modified_at=current.updated_at,
        changed_fields=differences,
    )


def enforce(report: ConflictReport, policy: WritePolicy):
    """Apply the write policy to a conflict report."""
    if not report.has_conflict or policy == WritePolicy.LAST_WRITE_WINS:
        return
    raise EditConflict(
        "Article was modified after it was loaded",
        {
            "changed_fields": report.changed_fields,
            "last_modified_at": report.last_modified_at.isoformat(),
            "last_modified_by": str(report.last_modified_by) if report.last_modified_by else None,
        },
    )
