import uuid

from sqlalchemy import Column, String, ForeignKey, Index, UniqueConstraint, CheckConstraint, Uuid, text
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, utcnow


class Family(Base):
    __tablename__ = "families"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    family_code = Column(String(20), unique=True, nullable=False, index=True)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    parents = relationship("FamilyEnrollment", back_populates="family")
    children = relationship("ChildClassEnrollment", back_populates="family")


class FamilyEnrollment(Base):
    """Links a parent account to a family."""
    __tablename__ = "family_enrollment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    family_id = Column(Uuid, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(Uuid, ForeignKey("user_roles.id", ondelete="CASCADE"), nullable=False)
    relationship_type = Column("relationship", String(20), nullable=False)
    enrolled_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("family_id", "parent_id", name="uq_parent_per_family"),
        CheckConstraint(
            "relationship IN ('father', 'mother', 'guardian')",
            name="ck_family_enrollment_relationship",
        ),
    )

    family = relationship("Family", back_populates="parents")


class ChildClassEnrollment(Base):
    """A child's membership of a class. Active while graduated_at is NULL."""
    __tablename__ = "child_class_enrollment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id = Column(Uuid, ForeignKey("user_roles.id", ondelete="CASCADE"), nullable=False)
    family_id = Column(Uuid, ForeignKey("families.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(String(10), ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False)
    enrolled_at = Column(UTCDateTime, default=utcnow, nullable=False)
    graduated_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        # One active enrollment per (child, class); graduated rows are history
        Index(
            "uq_child_class_active",
            "child_id",
            "class_id",
            unique=True,
            postgresql_where=text("graduated_at IS NULL"),
            sqlite_where=text("graduated_at IS NULL"),
        ),
        Index("idx_child_enrollment_family_active", "family_id", "graduated_at"),
        CheckConstraint(
            "graduated_at IS NULL OR enrolled_at <= graduated_at",
            name="ck_child_enrollment_dates",
        ),
    )

    family = relationship("Family", back_populates="children")
