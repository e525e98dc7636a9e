import os

# Configure before the application modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["CACHE_ENABLED"] = "false"

import uuid
from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from newsletter.core.database import get_db
from newsletter.models import (
    Base, ChildClassEnrollment, ClassModel, Family, FamilyEnrollment,
    NewsletterWeek, TeacherClassAssignment, UserRole
)
from newsletter.models.base import utcnow

WEEK = "2025-W47"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        yield session


@pytest.fixture
async def seed(session):
    """Two classes, one week, one user per role and a family with a child in A1"""
    users = {
        role: UserRole(id=uuid.uuid4(), email=f"{role}@school.test", role=role)
        for role in ("admin", "editor", "teacher", "parent", "student")
    }
    session.add_all(users.values())
    session.add_all([
        ClassModel(id="A1", class_name="Class A1", class_grade_year=1),
        ClassModel(id="B1", class_name="Class B1", class_grade_year=2),
        NewsletterWeek(week_number=WEEK, release_date=date(2025, 11, 21)),
    ])
    await session.flush()

    family = Family(id=uuid.uuid4(), family_code="FAM-001")
    child = UserRole(id=uuid.uuid4(), email="child@school.test", role="student")
    session.add_all([family, child])
    await session.flush()

    session.add_all([
        TeacherClassAssignment(teacher_id=users["teacher"].id, class_id="A1"),
        FamilyEnrollment(family_id=family.id, parent_id=users["parent"].id, relationship_type="mother"),
        ChildClassEnrollment(child_id=child.id, family_id=family.id, class_id="A1"),
    ])
    await session.commit()

    return SimpleNamespace(
        week=WEEK,
        admin=users["admin"].id,
        editor=users["editor"].id,
        teacher=users["teacher"].id,
        parent=users["parent"].id,
        student=users["student"].id,
        family=family.id,
        child=child.id,
    )


async def add_child(session, family_id, class_id, graduated=False):
    """Enroll a new child of the family in a class"""
    child = UserRole(id=uuid.uuid4(), email=f"{uuid.uuid4().hex[:8]}@school.test", role="student")
    session.add(child)
    await session.flush()
    enrollment = ChildClassEnrollment(child_id=child.id, family_id=family_id, class_id=class_id)
    if graduated:
        enrollment.enrolled_at = utcnow() - timedelta(days=365)
        enrollment.graduated_at = utcnow()
    session.add(enrollment)
    await session.commit()
    return child.id


@pytest.fixture
async def client(session, seed):
    from newsletter.main import app

    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
