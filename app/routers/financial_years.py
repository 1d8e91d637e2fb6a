"""
LedgerBooks - Financial Years Router

API endpoints for financial year administration.
"""

import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Actor, get_current_actor
from app.schemas.books import (
    MessageResponse,
    FinancialYearCreate, FinancialYearUpdate, FinancialYearResponse,
    FinancialYearListResponse, FinancialYearMutationResponse,
    CurrentFinancialYearResponse,
)
from app.services.financial_year_service import FinancialYearService
from app.utils.error_handling import AppException


router = APIRouter(prefix="/api/books/financial-years", tags=["Books - Financial Years"])


@router.get("", response_model=FinancialYearListResponse)
async def list_financial_years(db: AsyncSession = Depends(get_db)):
    """All financial years, latest first."""
    years = await FinancialYearService(db).list_years()
    return FinancialYearListResponse(
        financial_years=[FinancialYearResponse.model_validate(y) for y in years],
    )


@router.get("/current", response_model=CurrentFinancialYearResponse)
async def get_current_financial_year(db: AsyncSession = Depends(get_db)):
    """The active financial year, falling back to the one containing today."""
    year_code, start_date, end_date, record = await FinancialYearService(db).get_current()
    return CurrentFinancialYearResponse(
        year_code=year_code,
        start_date=start_date,
        end_date=end_date,
        financial_year=FinancialYearResponse.model_validate(record) if record else None,
    )


@router.post("", response_model=FinancialYearMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_financial_year(
    data: FinancialYearCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Register a financial year."""
    service = FinancialYearService(db)
    try:
        year = await service.create_year(data, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return FinancialYearMutationResponse(
        message="Financial year created successfully",
        financial_year=FinancialYearResponse.model_validate(year),
    )


@router.put("/{year_id}", response_model=FinancialYearMutationResponse)
async def update_financial_year(
    data: FinancialYearUpdate,
    year_id: uuid.UUID = Path(..., description="Financial year ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Activate, close or describe a financial year."""
    service = FinancialYearService(db)
    try:
        year = await service.update_year(year_id, data)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return FinancialYearMutationResponse(
        message="Financial year updated successfully",
        financial_year=FinancialYearResponse.model_validate(year),
    )


@router.delete("/{year_id}", response_model=MessageResponse)
async def delete_financial_year(
    year_id: uuid.UUID = Path(..., description="Financial year ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Delete an open financial year."""
    service = FinancialYearService(db)
    try:
        await service.delete_year(year_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return MessageResponse(message="Financial year deleted successfully")
