# newsletter/routers/reader.py
"""Read-only endpoints used by the parent and class newsletter views."""
from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..schemas.article_schemas import ArticleListResponse, FamilyArticlesResponse
from ..services.article_query_service import ArticleQueryService

router = APIRouter(prefix="/api/v1/reader", tags=["reader"])

@router.get("/families/{family_id}/weeks/{week_number}/articles", response_model=FamilyArticlesResponse)
async def get_family_articles(family_id: UUID, week_number: str, db: AsyncSession = Depends(get_db)):
    return await ArticleQueryService(db).get_articles_for_family(family_id, week_number)

@router.get("/classes/{class_id}/weeks/{week_number}/articles", response_model=ArticleListResponse)
async def get_class_articles(class_id: str, week_number: str, db: AsyncSession = Depends(get_db)):
    return await ArticleQueryService(db).get_articles_for_class(class_id, week_number)

@router.get("/weeks/{week_number}/articles", response_model=ArticleListResponse)
async def get_public_articles(week_number: str, db: AsyncSession = Depends(get_db)):
    return await ArticleQueryService(db).get_public_articles(week_number)
