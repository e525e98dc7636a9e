from sqlalchemy import Column, Integer, String, Index, CheckConstraint, Uuid

from .base import Base, JSONDocument, UTCDateTime, utcnow

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
OPERATIONS = (CREATE, UPDATE, DELETE)


class ArticleRevision(Base):
    """One immutable ledger entry. Rows are only ever inserted."""
    __tablename__ = "article_revisions"

    # Monotonic id doubles as the tie-breaker for entries sharing a timestamp
    id = Column(Integer, primary_key=True, autoincrement=True)
    # No foreign key: history must outlive any removal of the article row
    article_id = Column(Uuid, nullable=False)
    operation = Column(String(20), nullable=False)
    old_values = Column(JSONDocument, nullable=True)
    new_values = Column(JSONDocument, nullable=True)
    changed_by = Column(Uuid, nullable=True)
    changed_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_article_revisions_article_date", "article_id", "changed_at"),
        CheckConstraint(
            "operation IN ('create', 'update', 'delete')",
            name="ck_article_revisions_operation",
        ),
    )
