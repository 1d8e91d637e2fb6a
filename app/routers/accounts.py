"""
LedgerBooks - Accounts Router

API endpoints for the chart of accounts.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Actor, get_current_actor
from app.schemas.books import (
    AccountCreate, AccountUpdate, AccountResponse,
    AccountListResponse, AccountMutationResponse, AccountGroupsResponse,
)
from app.services.account_service import AccountService
from app.services.books_stats_service import refresh_books_stats
from app.utils.books_enums import AccountGroup, AccountType
from app.utils.error_handling import AppException


router = APIRouter(prefix="/api/books/accounts", tags=["Books - Accounts"])

_STATUS_FILTER = {"active": True, "inactive": False, "all": None}


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    search: Optional[str] = Query(None, description="Match account name or code"),
    account_group: Optional[AccountGroup] = Query(None, description="Filter by group"),
    account_type: Optional[AccountType] = Query(None, description="Filter by type"),
    account_status: str = Query(
        "active", alias="status", pattern="^(active|inactive|all)$",
        description="active, inactive or all",
    ),
    unit_id: Optional[str] = Query(None, description="Filter by unit"),
    db: AsyncSession = Depends(get_db),
):
    """Search the chart of accounts, ordered by code."""
    service = AccountService(db)
    accounts = await service.get_accounts(
        search=search,
        account_group=account_group,
        account_type=account_type,
        is_active=_STATUS_FILTER[account_status],
        unit_id=unit_id,
    )
    return AccountListResponse(
        accounts=[AccountResponse.model_validate(a) for a in accounts],
        count=len(accounts),
    )


@router.get("/groups", response_model=AccountGroupsResponse)
async def get_account_groups():
    """Account group hierarchy: group -> allowed account types."""
    return AccountGroupsResponse(groups=AccountService.get_account_groups())


@router.post("", response_model=AccountMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    data: AccountCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Register a new account."""
    service = AccountService(db)
    try:
        account = await service.create_account(data, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    background_tasks.add_task(refresh_books_stats, account.unit_id)
    return AccountMutationResponse(
        message="Account created successfully",
        account=AccountResponse.model_validate(account),
    )


@router.get("/{account_id}", response_model=AccountMutationResponse)
async def get_account(
    account_id: uuid.UUID = Path(..., description="Account ID"),
    db: AsyncSession = Depends(get_db),
):
    """Get a single account."""
    account = await AccountService(db).get_account(account_id)
    return AccountMutationResponse(
        message="Account retrieved",
        account=AccountResponse.model_validate(account),
    )


@router.put("/{account_id}", response_model=AccountMutationResponse)
async def update_account(
    data: AccountUpdate,
    background_tasks: BackgroundTasks,
    account_id: uuid.UUID = Path(..., description="Account ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Update an account (including reactivation)."""
    service = AccountService(db)
    try:
        account = await service.update_account(account_id, data, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    background_tasks.add_task(refresh_books_stats, account.unit_id)
    return AccountMutationResponse(
        message="Account updated successfully",
        account=AccountResponse.model_validate(account),
    )


@router.delete("/{account_id}", response_model=AccountMutationResponse)
async def deactivate_account(
    background_tasks: BackgroundTasks,
    account_id: uuid.UUID = Path(..., description="Account ID"),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Deactivate an account. Its voucher history is kept."""
    service = AccountService(db)
    try:
        account = await service.deactivate_account(account_id, actor.user_id)
        await db.commit()
    except AppException:
        await db.rollback()
        raise

    background_tasks.add_task(refresh_books_stats, account.unit_id)
    return AccountMutationResponse(
        message="Account deactivated successfully",
        account=AccountResponse.model_validate(account),
    )
