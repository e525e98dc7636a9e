# newsletter/routers/weeks.py
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .dependencies import get_actor_id
from ..core.database import get_db, run_unit_of_work
from ..schemas.article_schemas import ArticleCreate, ArticleResponse, OrderAuditResponse, ReorderRequest
from ..schemas.week_schemas import WeekCreate, WeekResponse
from ..services.article_service import ArticleService
from ..services.permission_service import PermissionService
from ..services.week_service import WeekService

router = APIRouter(prefix="/api/v1/weeks", tags=["weeks"])

@router.post("/", response_model=WeekResponse, status_code=status.HTTP_201_CREATED)
async def create_week(
    week: WeekCreate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    await run_unit_of_work(db, lambda: PermissionService(db).assert_can_manage_weeks(actor_id))
    return await WeekService(db).create_week(week.week_number, week.release_date)

@router.get("/", response_model=List[WeekResponse])
async def list_weeks(
    published_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    service = WeekService(db)
    return await run_unit_of_work(db, lambda: service.list_weeks(published_only, skip, limit))

@router.get("/{week_number}", response_model=WeekResponse)
async def get_week(week_number: str, db: AsyncSession = Depends(get_db)):
    service = WeekService(db)
    return await run_unit_of_work(db, lambda: service.get_or_raise(week_number))

@router.post("/{week_number}/publish", response_model=WeekResponse)
async def publish_week(
    week_number: str,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    await run_unit_of_work(db, lambda: PermissionService(db).assert_can_manage_weeks(actor_id))
    return await WeekService(db).set_published(week_number, True)

@router.post("/{week_number}/unpublish", response_model=WeekResponse)
async def unpublish_week(
    week_number: str,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    await run_unit_of_work(db, lambda: PermissionService(db).assert_can_manage_weeks(actor_id))
    return await WeekService(db).set_published(week_number, False)

@router.post("/{week_number}/articles", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    week_number: str,
    article: ArticleCreate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.create_article(week_number, actor_id=actor_id, **article.model_dump())

@router.get("/{week_number}/articles", response_model=List[ArticleResponse])
async def list_week_articles(
    week_number: str,
    include_deleted: bool = False,
    published: Optional[bool] = None,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.list_week_articles(week_number, include_deleted, published, actor_id)

@router.get("/{week_number}/articles/order", response_model=OrderAuditResponse)
async def audit_article_order(week_number: str, db: AsyncSession = Depends(get_db)):
    service = ArticleService(db)
    return await service.audit_order(week_number)

@router.put("/{week_number}/articles/order", response_model=List[ArticleResponse])
async def reorder_articles(
    week_number: str,
    request: ReorderRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.reorder_articles(week_number, request.orders, actor_id)
