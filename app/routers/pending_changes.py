"""
LedgerBooks - Pending Changes Router

Approval workflow endpoints. Reviewing requires the admin role.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Actor, get_current_actor
from app.schemas.pending_change import (
    PendingChangeCreate, PendingChangeReview, PendingChangeResponse,
    PendingChangeListResponse, PendingChangeMutationResponse,
    PendingChangeStatsResponse,
)
from app.services.pending_change_service import PendingChangeService
from app.utils.books_enums import ChangeStatus, ChangeType
from app.utils.error_handling import AppException


router = APIRouter(prefix="/api/pending-changes", tags=["Pending Changes"])


@router.get("", response_model=PendingChangeListResponse)
async def list_pending_changes(
    change_status: Optional[ChangeStatus] = Query(None, alias="status"),
    change_type: Optional[ChangeType] = Query(None),
    only_mine: bool = Query(False, description="Only my own requests"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """List change requests, newest first."""
    changes = await PendingChangeService(db).list_changes(
        actor, status=change_status, change_type=change_type, only_mine=only_mine,
    )
    return PendingChangeListResponse(
        changes=[PendingChangeResponse.model_validate(c) for c in changes],
        count=len(changes),
    )


@router.get("/stats", response_model=PendingChangeStatsResponse)
async def pending_change_stats(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Counts by status and type."""
    stats = await PendingChangeService(db).get_stats(actor)
    return PendingChangeStatsResponse(stats=stats)


@router.post("", response_model=PendingChangeMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_pending_change(
    data: PendingChangeCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Submit a change for approval."""
    service = PendingChangeService(db)
    try:
        change = await service.create_change(data, actor)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return PendingChangeMutationResponse(
        message="Change submitted for approval",
        change=PendingChangeResponse.model_validate(change),
    )


@router.get("/{change_id}", response_model=PendingChangeMutationResponse)
async def get_pending_change(
    change_id: uuid.UUID = Path(..., description="Pending change ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    change = await PendingChangeService(db).get_change(change_id, actor)
    return PendingChangeMutationResponse(
        message="Change retrieved",
        change=PendingChangeResponse.model_validate(change),
    )


@router.post("/{change_id}/approve", response_model=PendingChangeMutationResponse)
async def approve_pending_change(
    change_id: uuid.UUID = Path(..., description="Pending change ID"),
    review: Optional[PendingChangeReview] = Body(None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Approve a pending change (admin only)."""
    service = PendingChangeService(db)
    try:
        change = await service.approve(change_id, actor, review.comments if review else None)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return PendingChangeMutationResponse(
        message="Change approved successfully",
        change=PendingChangeResponse.model_validate(change),
    )


@router.post("/{change_id}/reject", response_model=PendingChangeMutationResponse)
async def reject_pending_change(
    change_id: uuid.UUID = Path(..., description="Pending change ID"),
    review: Optional[PendingChangeReview] = Body(None),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Reject a pending change (admin only)."""
    service = PendingChangeService(db)
    try:
        change = await service.reject(change_id, actor, review.comments if review else None)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    return PendingChangeMutationResponse(
        message="Change rejected successfully",
        change=PendingChangeResponse.model_validate(change),
    )
