"""
LedgerBooks - Account Service

Chart of accounts: search, registration, updates and soft deletion.
"""

import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.books import Account
from app.schemas.books import AccountCreate, AccountUpdate
from app.utils.books_enums import AccountGroup, AccountType
from app.utils.error_handling import (
    AccountNotFoundException,
    DuplicateEntryException,
    ValidationException,
)
from app.utils.ledger_rules import ACCOUNT_GROUP_HIERARCHY, is_type_allowed, to_signed

logger = logging.getLogger(__name__)


class AccountService:
    """Service for chart of accounts operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # QUERIES
    # ===========================================

    async def get_accounts(
        self,
        search: Optional[str] = None,
        account_group: Optional[AccountGroup] = None,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = True,
        unit_id: Optional[str] = None,
    ) -> List[Account]:
        """
        List accounts ordered by code.

        `search` matches account name or code, case-insensitively.
        `is_active=None` includes deactivated accounts.
        """
        query = select(Account)

        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Account.account_name.ilike(pattern),
                    Account.account_code.ilike(pattern),
                )
            )
        if account_group:
            query = query.where(Account.account_group == account_group)
        if account_type:
            query = query.where(Account.account_type == account_type)
        if is_active is not None:
            query = query.where(Account.is_active == is_active)
        if unit_id:
            query = query.where(Account.unit_id == unit_id)

        result = await self.db.execute(query.order_by(Account.account_code))
        return list(result.scalars().all())

    async def get_account_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        result = await self.db.execute(select(Account).where(Account.id == account_id))
        return result.scalar_one_or_none()

    async def get_account_by_code(self, account_code: str) -> Optional[Account]:
        result = await self.db.execute(select(Account).where(Account.account_code == account_code))
        return result.scalar_one_or_none()

    async def get_account(self, account_id: uuid.UUID) -> Account:
        """Get an account or raise 404."""
        account = await self.get_account_by_id(account_id)
        if not account:
            raise AccountNotFoundException(account_id)
        return account

    @staticmethod
    def get_account_groups() -> Dict[str, List[str]]:
        """Account group -> account types that belong under it."""
        return {
            group.value: [account_type.value for account_type in types]
            for group, types in ACCOUNT_GROUP_HIERARCHY.items()
        }

    # ===========================================
    # MUTATIONS
    # ===========================================

    async def create_account(self, data: AccountCreate, actor_id: str) -> Account:
        """Register an account; its current balance starts at the opening balance."""
        if await self.get_account_by_code(data.account_code):
            raise DuplicateEntryException(
                "Account", "account_code", data.account_code,
                message="Account code already exists",
            )

        opening = to_signed(data.opening_balance, data.opening_balance_type)
        account = Account(
            account_code=data.account_code,
            account_name=data.account_name,
            account_group=data.account_group,
            account_type=data.account_type,
            parent_group=data.parent_group,
            description=data.description,
            unit_id=data.unit_id,
            opening_signed_balance=opening,
            signed_balance=opening,
            is_active=True,
            created_by=actor_id,
            modified_by=actor_id,
        )

        self.db.add(account)
        await self.db.flush()
        logger.info(f"Account created: {account.account_code} ({account.account_group.value})")
        return account

    async def update_account(
        self,
        account_id: uuid.UUID,
        data: AccountUpdate,
        actor_id: str,
    ) -> Account:
        """
        Update an account.

        Changing the opening balance shifts the current balance by the
        same amount so posted vouchers stay applied.
        """
        account = await self.get_account(account_id)
        update_data = data.model_dump(exclude_unset=True)

        new_code = update_data.pop("account_code", None)
        if new_code and new_code != account.account_code:
            existing = await self.get_account_by_code(new_code)
            if existing and existing.id != account.id:
                raise DuplicateEntryException(
                    "Account", "account_code", new_code,
                    message="Account code already exists",
                )
            account.account_code = new_code

        new_type = update_data.get("account_type")
        if new_type and not is_type_allowed(account.account_group, new_type):
            raise ValidationException(
                f"Account type '{AccountType(new_type).value}' does not belong to group "
                f"'{account.account_group.value}'",
                field="account_type",
            )

        opening_amount = update_data.pop("opening_balance", None)
        opening_side = update_data.pop("opening_balance_type", None)
        if opening_amount is not None or opening_side is not None:
            new_opening = to_signed(
                opening_amount if opening_amount is not None else account.opening_balance,
                opening_side or account.opening_balance_type,
            )
            delta = new_opening - account.opening_signed_balance
            account.opening_signed_balance = new_opening
            account.signed_balance = account.signed_balance + delta

        for field, value in update_data.items():
            setattr(account, field, value)

        account.modified_by = actor_id
        await self.db.flush()
        logger.info(f"Account updated: {account.account_code}")
        return account

    async def deactivate_account(self, account_id: uuid.UUID, actor_id: str) -> Account:
        """Soft delete; voucher history is kept."""
        account = await self.get_account(account_id)
        account.is_active = False
        account.modified_by = actor_id
        await self.db.flush()
        logger.info(f"Account deactivated: {account.account_code}")
        return account
