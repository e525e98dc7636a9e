from sqlalchemy import Column, String, Integer, Text, CheckConstraint

from .base import Base, UTCDateTime, utcnow


class ClassModel(Base):
    __tablename__ = "classes"

    id = Column(String(10), primary_key=True)  # e.g. "A1", "B2"
    class_name = Column(Text, nullable=False)
    class_grade_year = Column(Integer, nullable=False, index=True)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("class_grade_year BETWEEN 1 AND 12", name="ck_classes_grade_year"),
    )
