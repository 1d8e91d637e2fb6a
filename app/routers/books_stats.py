"""
LedgerBooks - Books Stats Router
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.books import BooksStatsData, BooksStatsResponse
from app.services.books_stats_service import BooksStatsService
from app.utils.error_handling import AppException


router = APIRouter(prefix="/api/books/stats", tags=["Books - Stats"])


@router.get("", response_model=BooksStatsResponse)
async def get_books_stats(
    unit_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Cached counters; recomputed when older than the freshness window."""
    service = BooksStatsService(db)
    try:
        stats = await service.get_stats(unit_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return BooksStatsResponse(data=BooksStatsData.model_validate(stats))


@router.post("", response_model=BooksStatsResponse)
async def recalculate_books_stats(
    unit_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Force a recomputation."""
    service = BooksStatsService(db)
    try:
        stats = await service.get_stats(unit_id, force=True)
        await db.commit()
    except AppException:
        await db.rollback()
        raise
    return BooksStatsResponse(data=BooksStatsData.model_validate(stats))
