# newsletter/core/exceptions.py
"""Custom exceptions for the newsletter engine.

Every error carries a stable machine-readable ``code`` and a human readable
message. The HTTP status is attached so the API layer can render it without
a lookup table.
"""
from typing import Any, Dict, Iterable, Optional


class NewsletterError(Exception):
    """Base exception for the article engine."""
    code = "NEWSLETTER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class DuplicateOrder(NewsletterError):
    """Explicit order collides with a live article of the same week."""
    code = "DUPLICATE_ORDER"
    status_code = 409

    def __init__(self, week_number: str, article_order: int):
        self.week_number = week_number
        self.article_order = article_order
        super().__init__(
            f"Article order {article_order} already exists in week {week_number}",
            {"week_number": week_number, "article_order": article_order},
        )


class EmptyClassRestriction(NewsletterError):
    """Visibility and restricted class list disagree."""
    code = "EMPTY_CLASS_RESTRICTION"
    status_code = 422


class ArticleNotFound(NewsletterError):
    code = "ARTICLE_NOT_FOUND"
    status_code = 404

    def __init__(self, article_id: Any):
        self.article_id = article_id
        super().__init__(
            f"Article {article_id} not found or has been deleted",
            {"article_id": str(article_id)},
        )


class InvalidClassReference(NewsletterError):
    code = "INVALID_CLASS_REFERENCE"
    status_code = 422

    def __init__(self, class_ids: Iterable[str]):
        self.class_ids = sorted(class_ids)
        super().__init__(
            f"Unknown class id(s): {', '.join(self.class_ids)}",
            {"class_ids": self.class_ids},
        )


class NoPriorValues(NewsletterError):
    """Revert requested against an entry that has nothing to revert to."""
    code = "NO_PRIOR_VALUES"
    status_code = 409

    def __init__(self, entry_id: Any):
        self.entry_id = entry_id
        super().__init__(
            f"Cannot revert: revision {entry_id} has no previous values",
            {"entry_id": entry_id},
        )


class InsufficientPermissions(NewsletterError):
    code = "INSUFFICIENT_PERMISSIONS"
    status_code = 403


class StoreUnavailable(NewsletterError):
    """Transport, timeout or driver failure from the persistence layer."""
    code = "STORE_UNAVAILABLE"
    status_code = 503


class WeekNotFound(NewsletterError):
    code = "WEEK_NOT_FOUND"
    status_code = 404

    def __init__(self, week_number: str):
        self.week_number = week_number
        super().__init__(f"Week {week_number} not found", {"week_number": week_number})


class InvalidWeekNumber(NewsletterError):
    code = "INVALID_WEEK_NUMBER"
    status_code = 422

    def __init__(self, week_number: str):
        self.week_number = week_number
        super().__init__(
            f'Invalid week format: "{week_number}". Expected format: "YYYY-Www" (e.g., "2025-W47")',
            {"week_number": week_number},
        )


class DuplicateWeek(NewsletterError):
    code = "DUPLICATE_WEEK"
    status_code = 409

    def __init__(self, week_number: str):
        self.week_number = week_number
        super().__init__(f"Week {week_number} already exists", {"week_number": week_number})


class RevisionNotFound(NewsletterError):
    code = "REVISION_NOT_FOUND"
    status_code = 404

    def __init__(self, entry_id: Any, article_id: Any):
        self.entry_id = entry_id
        super().__init__(
            f"Revision {entry_id} not found for article {article_id}",
            {"entry_id": entry_id, "article_id": str(article_id)},
        )


class EditConflict(NewsletterError):
    """Stale write rejected. Only raised under the reject_stale policy."""
    code = "EDIT_CONFLICT"
    status_code = 409


class InvalidReorder(NewsletterError):
    code = "INVALID_REORDER"
    status_code = 422


class InvalidArticleField(NewsletterError):
    """Unknown field name or value outside its allowed set."""
    code = "INVALID_ARTICLE_FIELD"
    status_code = 422
