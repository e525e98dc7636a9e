# newsletter/routers/articles.py
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from .dependencies import get_actor_id
from ..core.config import settings
from ..core.database import get_db
from ..schemas.article_schemas import (
    ArticleResponse, ArticleUpdate, ArticleUpdateResponse, ArticleVersion,
    ClassRestrictionRequest, ConflictReport, RevisionEntry
)
from ..services.article_service import ArticleService
from ..services.revert_service import RevertEngine

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: UUID, db: AsyncSession = Depends(get_db)):
    service = ArticleService(db)
    return await service.get_article(article_id)

@router.patch("/{article_id}", response_model=ArticleUpdateResponse)
async def update_article(
    article_id: UUID,
    update: ArticleUpdate,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    result = await service.update_article(article_id, update.changes(), update.expected_version, actor_id)
    return ArticleUpdateResponse(article=ArticleResponse.model_validate(result.article), conflict=result.conflict)

@router.post("/{article_id}/conflicts", response_model=ConflictReport)
async def detect_conflict(
    article_id: UUID,
    local_version: ArticleVersion,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.detect_conflict(article_id, local_version, actor_id)

@router.put("/{article_id}/class-restriction", response_model=ArticleResponse)
async def set_class_restriction(
    article_id: UUID,
    request: ClassRestrictionRequest,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.set_article_class_restriction(article_id, request.class_ids, actor_id)

@router.delete("/{article_id}/class-restriction", response_model=ArticleResponse)
async def remove_class_restriction(
    article_id: UUID,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.remove_article_class_restriction(article_id, actor_id)

@router.post("/{article_id}/publish", response_model=ArticleResponse)
async def publish_article(
    article_id: UUID,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.publish_article(article_id, actor_id)

@router.post("/{article_id}/unpublish", response_model=ArticleResponse)
async def unpublish_article(
    article_id: UUID,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.unpublish_article(article_id, actor_id)

@router.delete("/{article_id}", response_model=ArticleResponse)
async def delete_article(
    article_id: UUID,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.delete_article(article_id, actor_id)

@router.post("/{article_id}/restore", response_model=ArticleResponse)
async def restore_article(
    article_id: UUID,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.restore_article(article_id, actor_id)

@router.get("/{article_id}/history", response_model=List[RevisionEntry])
async def get_article_history(
    article_id: UUID,
    limit: int = Query(20, ge=1, le=settings.history_max_limit),
    offset: int = Query(0, ge=0),
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    service = ArticleService(db)
    return await service.get_article_history(article_id, limit, offset, actor_id)

@router.post("/{article_id}/revert/{entry_id}", response_model=ArticleUpdateResponse)
async def revert_article(
    article_id: UUID,
    entry_id: int,
    actor_id: Optional[UUID] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db)
):
    result = await RevertEngine(db).revert(article_id, entry_id, actor_id)
    return ArticleUpdateResponse(article=ArticleResponse.model_validate(result.article), conflict=result.conflict)
