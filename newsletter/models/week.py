from sqlalchemy import Column, String, Date, Boolean
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, utcnow


class NewsletterWeek(Base):
    __tablename__ = "newsletter_weeks"

    # Format: "YYYY-Www" (e.g. "2025-W47")
    week_number = Column(String(10), primary_key=True)
    release_date = Column(Date, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    articles = relationship("Article", back_populates="week")
