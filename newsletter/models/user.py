import uuid

from sqlalchemy import Column, String, ForeignKey, UniqueConstraint, CheckConstraint, Uuid

from .base import Base, UTCDateTime, utcnow


class UserRole(Base):
    """Role record for an externally authenticated user."""
    __tablename__ = "user_roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(String(20), nullable=False, default="student")
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'editor', 'teacher', 'parent', 'student')",
            name="ck_user_roles_role",
        ),
    )


class TeacherClassAssignment(Base):
    __tablename__ = "teacher_class_assignment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    teacher_id = Column(Uuid, ForeignKey("user_roles.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(String(10), ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False)
    assigned_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("teacher_id", "class_id", name="uq_teacher_per_class"),
    )
