# newsletter/models/__init__.py
"""Import all models here, if needed for Alembic migration."""
from .base import Base

from .week import NewsletterWeek
from .class_model import ClassModel
from .user import UserRole, TeacherClassAssignment
from .family import Family, FamilyEnrollment, ChildClassEnrollment
from .article import Article
from .revision import ArticleRevision

__all__ = [
    "Base",
    "NewsletterWeek",
    "ClassModel",
    "UserRole",
    "TeacherClassAssignment",
    "Family",
    "FamilyEnrollment",
    "ChildClassEnrollment",
    "Article",
    "ArticleRevision",
]
