import uuid

from sqlalchemy import (
    Column, String, Integer, Text, Boolean, ForeignKey, Index, CheckConstraint, Uuid, text
)
from sqlalchemy.orm import relationship

from .base import Base, JSONDocument, UTCDateTime, utcnow

PUBLIC = "public"
CLASS_RESTRICTED = "class_restricted"
VISIBILITY_TYPES = (PUBLIC, CLASS_RESTRICTED)

# Fields an editor changes through the write path; revert restores exactly these
MUTABLE_FIELDS = ("title", "content", "author", "visibility_type", "restricted_to_classes")


class Article(Base):
    __tablename__ = "articles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    short_id = Column(String(10), unique=True, nullable=False)
    week_number = Column(
        String(10),
        ForeignKey("newsletter_weeks.week_number", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    author = Column(String(100))
    article_order = Column(Integer, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    visibility_type = Column(String(20), default=PUBLIC, nullable=False)
    restricted_to_classes = Column(JSONDocument, nullable=True)  # ["A1", "B2"]

    created_by = Column(Uuid, nullable=True, index=True)
    updated_by = Column(Uuid, nullable=True)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, nullable=False)
    deleted_at = Column(UTCDateTime, nullable=True)  # Soft-delete marker

    __table_args__ = (
        # Order is unique per week among live articles only
        Index(
            "uq_articles_week_order",
            "week_number",
            "article_order",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("idx_articles_week_published", "week_number", "is_published", "deleted_at", "visibility_type"),
        CheckConstraint(
            "visibility_type IN ('public', 'class_restricted')",
            name="ck_articles_visibility_type",
        ),
        CheckConstraint("article_order >= 1", name="ck_articles_order_positive"),
    )

    week = relationship("NewsletterWeek", back_populates="articles")

    def snapshot(self) -> dict:
        """JSON-safe copy of the row as stored in revision entries."""
        return {
            "id": str(self.id),
            "short_id": self.short_id,
            "week_number": self.week_number,
            "title": self.title,
            "content": self.content,
            "author": self.author,
            "article_order": self.article_order,
            "is_published": self.is_published,
            "visibility_type": self.visibility_type,
            "restricted_to_classes": list(self.restricted_to_classes) if self.restricted_to_classes is not None else None,
            "created_by": str(self.created_by) if self.created_by else None,
            "updated_by": str(self.updated_by) if self.updated_by else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
