"""
LedgerBooks - Vouchers Router

API endpoints for posting, editing and deleting vouchers.
Every response is marked uncacheable: balances move with each call.
"""

import math
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import Actor, get_current_actor, no_cache_headers
from app.schemas.books import (
    MessageResponse,
    VoucherCreate, VoucherUpdate, VoucherReconcile, VoucherResponse,
    VoucherListResponse, VoucherMutationResponse,
)
from app.services.books_stats_service import refresh_books_stats
from app.services.voucher_service import VoucherService
from app.utils.books_enums import VoucherType
from app.utils.error_handling import AppException
from app.utils.ledger_rules import current_financial_year


router = APIRouter(
    prefix="/api/books/vouchers",
    tags=["Books - Vouchers"],
    dependencies=[Depends(no_cache_headers)],
)


@router.get("", response_model=VoucherListResponse)
async def list_vouchers(
    voucher_type: Optional[VoucherType] = Query(None, description="Filter by voucher type"),
    financial_year: Optional[str] = Query(
        None, description="YYYY-YY; defaults to the current year, 'all' for every year",
    ),
    start_date: Optional[date] = Query(None, description="Vouchers on or after this date"),
    end_date: Optional[date] = Query(None, description="Vouchers on or before this date"),
    account_id: Optional[uuid.UUID] = Query(None, description="Vouchers touching this account"),
    unit_id: Optional[str] = Query(None, description="Filter by unit"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db),
):
    """List vouchers, newest first."""
    if financial_year is None:
        financial_year = current_financial_year()
    elif financial_year == "all":
        financial_year = None

    vouchers, total = await VoucherService(db).list_vouchers(
        voucher_type=voucher_type,
        financial_year=financial_year,
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        unit_id=unit_id,
        page=page,
        limit=limit,
    )
    return VoucherListResponse(
        vouchers=[VoucherResponse.model_validate(v) for v in vouchers],
        total=total,
        page=page,
        total_pages=math.ceil(total / limit) if total else 0,
    )


@router.post("", response_model=VoucherMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_voucher(
    data: VoucherCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Post a voucher and update the balances of every account it touches."""
    service = VoucherService(db)
    try:
        voucher = await service.create_voucher(data, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    background_tasks.add_task(refresh_books_stats, voucher.unit_id)
    return VoucherMutationResponse(
        message="Voucher created successfully",
        voucher=VoucherResponse.model_validate(voucher),
    )


@router.get("/{voucher_id}", response_model=VoucherMutationResponse)
async def get_voucher(
    voucher_id: uuid.UUID = Path(..., description="Voucher ID"),
    db: AsyncSession = Depends(get_db),
):
    """Get a single voucher with its entries."""
    voucher = await VoucherService(db).get_voucher(voucher_id)
    return VoucherMutationResponse(
        message="Voucher retrieved",
        voucher=VoucherResponse.model_validate(voucher),
    )


@router.put("/{voucher_id}", response_model=VoucherMutationResponse)
async def update_voucher(
    data: VoucherUpdate,
    background_tasks: BackgroundTasks,
    voucher_id: uuid.UUID = Path(..., description="Voucher ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Edit a voucher: old balance effects are reversed, new ones applied."""
    service = VoucherService(db)
    try:
        voucher = await service.update_voucher(voucher_id, data, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    background_tasks.add_task(refresh_books_stats, voucher.unit_id)
    return VoucherMutationResponse(
        message="Voucher updated successfully",
        voucher=VoucherResponse.model_validate(voucher),
    )


@router.delete("/{voucher_id}", response_model=MessageResponse)
async def delete_voucher(
    background_tasks: BackgroundTasks,
    voucher_id: uuid.UUID = Path(..., description="Voucher ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Delete a voucher after reversing its balance effects."""
    service = VoucherService(db)
    try:
        voucher = await service.delete_voucher(voucher_id)
        voucher_number, unit_id = voucher.voucher_number, voucher.unit_id
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    background_tasks.add_task(refresh_books_stats, unit_id)
    return MessageResponse(message=f"Voucher {voucher_number} deleted successfully")


@router.patch("/{voucher_id}/reconcile", response_model=VoucherMutationResponse)
async def reconcile_voucher(
    data: VoucherReconcile,
    voucher_id: uuid.UUID = Path(..., description="Voucher ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Set or clear the bank reconciliation flag."""
    service = VoucherService(db)
    try:
        voucher = await service.set_reconciled(voucher_id, data.is_reconciled, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return VoucherMutationResponse(
        message="Voucher reconciled" if data.is_reconciled else "Voucher reconciliation cleared",
        voucher=VoucherResponse.model_validate(voucher),
    )
