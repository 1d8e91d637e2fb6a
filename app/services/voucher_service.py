"""
LedgerBooks - Voucher Service

Voucher posting, editing and deletion.

Every operation runs inside the caller's session transaction:
- Affected accounts are resolved (and row-locked) before anything is written
- The voucher row and every balance delta are flushed together
- Any exception leaves the transaction to be rolled back by the router,
  so a failed posting never leaves partial balance changes behind

Balance deltas are applied as `signed_balance = signed_balance + delta`
statements, so concurrent postings against one account cannot lose updates.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.books import Account, Voucher, VoucherEntry
from app.schemas.books import VoucherCreate, VoucherEntryCreate, VoucherUpdate
from app.services.financial_year_service import FinancialYearService
from app.utils.books_enums import VoucherType
from app.utils.error_handling import (
    AccountNotFoundException,
    BusinessRuleException,
    ErrorCode,
    UnbalancedVoucherException,
    ValidationException,
    VoucherNotFoundException,
)
from app.utils.ledger_rules import (
    financial_year_for,
    is_balanced,
    next_voucher_number,
    round_money,
    signed_delta,
    sum_entries,
)

logger = logging.getLogger(__name__)


class VoucherService:
    """Service for double-entry voucher operations."""

    def __init__(self, db: AsyncSession, tolerance: Optional[Decimal] = None):
        self.db = db
        self.tolerance = tolerance if tolerance is not None else settings.balance_tolerance
        self.financial_years = FinancialYearService(db)

    # ===========================================
    # QUERIES
    # ===========================================

    async def list_vouchers(
        self,
        voucher_type: Optional[VoucherType] = None,
        financial_year: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[uuid.UUID] = None,
        unit_id: Optional[str] = None,
        page: int = 1,
        limit: int = 100,
    ) -> Tuple[List[Voucher], int]:
        """List vouchers newest first; returns (page of vouchers, total matches)."""
        query = select(Voucher)

        if voucher_type:
            query = query.where(Voucher.voucher_type == voucher_type)
        if financial_year:
            query = query.where(Voucher.financial_year == financial_year)
        if start_date:
            query = query.where(Voucher.voucher_date >= start_date)
        if end_date:
            query = query.where(Voucher.voucher_date <= end_date)
        if account_id:
            query = query.where(
                Voucher.id.in_(
                    select(VoucherEntry.voucher_id).where(VoucherEntry.account_id == account_id)
                )
            )
        if unit_id:
            query = query.where(Voucher.unit_id == unit_id)

        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar() or 0

        query = (
            query.order_by(Voucher.voucher_date.desc(), Voucher.voucher_number.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def get_voucher(self, voucher_id: uuid.UUID) -> Voucher:
        result = await self.db.execute(select(Voucher).where(Voucher.id == voucher_id))
        voucher = result.scalar_one_or_none()
        if not voucher:
            raise VoucherNotFoundException(voucher_id)
        return voucher

    async def _next_voucher_number(self, voucher_type: VoucherType, financial_year: str) -> str:
        """Increment the highest existing number for (type, financial year)."""
        result = await self.db.execute(
            select(Voucher.voucher_number)
            .where(
                Voucher.voucher_type == voucher_type,
                Voucher.financial_year == financial_year,
            )
            .order_by(func.length(Voucher.voucher_number).desc(), Voucher.voucher_number.desc())
            .limit(1)
        )
        return next_voucher_number(voucher_type, financial_year, result.scalar_one_or_none())

    # ===========================================
    # VALIDATION
    # ===========================================

    def validate_entries(self, entries: Sequence[VoucherEntryCreate]) -> Tuple[Decimal, Decimal]:
        """
        Check the double-entry rules and return (total_debit, total_credit).

        Raises:
            ValidationException: Fewer than two lines or a negative amount
            UnbalancedVoucherException: Debits and credits differ by more than the tolerance
        """
        if len(entries) < 2:
            raise ValidationException("A voucher needs at least two entries", field="entries")
        for index, entry in enumerate(entries):
            if entry.debit < 0 or entry.credit < 0:
                raise ValidationException(
                    "Debit and credit amounts cannot be negative",
                    field=f"entries.{index}",
                    code=ErrorCode.INVALID_INPUT,
                )

        total_debit, total_credit = sum_entries(entries)
        if not is_balanced(total_debit, total_credit, self.tolerance):
            raise UnbalancedVoucherException(total_debit, total_credit)
        return total_debit, total_credit

    async def _lock_accounts(self, account_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Account]:
        """
        Load and row-lock every referenced account.

        Raises:
            AccountNotFoundException: If any id does not resolve
        """
        wanted = list(dict.fromkeys(account_ids))
        result = await self.db.execute(
            select(Account)
            .where(Account.id.in_(wanted))
            .order_by(Account.id)
            .with_for_update()
        )
        accounts = {account.id: account for account in result.scalars().all()}
        for account_id in wanted:
            if account_id not in accounts:
                raise AccountNotFoundException(account_id)
        return accounts

    @staticmethod
    def _ensure_active(entries: Sequence[VoucherEntryCreate], accounts: Dict[uuid.UUID, Account]) -> None:
        for entry in entries:
            account = accounts[entry.account_id]
            if not account.is_active:
                raise BusinessRuleException(
                    f"Account {account.account_code} is inactive",
                    rule="inactive_account",
                    code=ErrorCode.ACCOUNT_INACTIVE,
                )

    # ===========================================
    # BALANCE APPLICATION
    # ===========================================

    async def _apply_balances(self, lines: Iterable, reverse: bool = False) -> None:
        """
        Apply (or reverse) each line's debit/credit to its account.

        One increment statement per line; accounts are refreshed by the caller.
        """
        for line in lines:
            delta = signed_delta(line.debit, line.credit)
            if reverse:
                delta = -delta
            if not delta:
                continue
            await self.db.execute(
                update(Account)
                .where(Account.id == line.account_id)
                .values(signed_balance=Account.signed_balance + delta)
                .execution_options(synchronize_session=False)
            )

    async def _refresh_accounts(self, accounts: Iterable[Account]) -> None:
        for account in accounts:
            await self.db.refresh(account)

    @staticmethod
    def _build_entries(
        entries: Sequence[VoucherEntryCreate],
        accounts: Dict[uuid.UUID, Account],
    ) -> List[VoucherEntry]:
        """Voucher lines with the account code/name copied at posting time."""
        return [
            VoucherEntry(
                line_number=index,
                account_id=entry.account_id,
                account_code=accounts[entry.account_id].account_code,
                account_name=accounts[entry.account_id].account_name,
                debit=round_money(entry.debit),
                credit=round_money(entry.credit),
                narration=entry.narration,
            )
            for index, entry in enumerate(entries, start=1)
        ]

    # ===========================================
    # MUTATIONS
    # ===========================================

    async def create_voucher(self, data: VoucherCreate, actor_id: str) -> Voucher:
        """
        Post a voucher and apply its lines to the account balances.

        The financial year comes from the voucher date (April - March).
        """
        total_debit, total_credit = self.validate_entries(data.entries)

        await self.financial_years.ensure_open(data.voucher_date, "posting")
        financial_year = financial_year_for(data.voucher_date)

        accounts = await self._lock_accounts(entry.account_id for entry in data.entries)
        self._ensure_active(data.entries, accounts)

        voucher = Voucher(
            voucher_number=await self._next_voucher_number(data.voucher_type, financial_year),
            voucher_type=data.voucher_type,
            voucher_date=data.voucher_date,
            financial_year=financial_year,
            total_debit=total_debit,
            total_credit=total_credit,
            narration=data.narration,
            reference_number=data.reference_number,
            cheque_number=data.cheque_number,
            cheque_date=data.cheque_date,
            attachments=list(data.attachments),
            is_posted=True,
            is_reconciled=False,
            unit_id=data.unit_id,
            created_by=actor_id,
            modified_by=actor_id,
            entries=self._build_entries(data.entries, accounts),
        )
        self.db.add(voucher)
        await self.db.flush()

        await self._apply_balances(voucher.entries)
        await self._refresh_accounts(accounts.values())

        logger.info(
            f"Voucher posted: {voucher.voucher_number} "
            f"(Dr {total_debit} / Cr {total_credit}, {len(voucher.entries)} entries)"
        )
        return voucher

    async def update_voucher(
        self,
        voucher_id: uuid.UUID,
        data: VoucherUpdate,
        actor_id: str,
    ) -> Voucher:
        """
        Edit a posted voucher.

        New entries are applied in two passes: the stored entries are
        reversed first, then the new set is applied.
        """
        voucher = await self.get_voucher(voucher_id)
        await self.financial_years.ensure_open(voucher.voucher_date, "editing")
        update_data = data.model_dump(exclude_unset=True)

        touched: Dict[uuid.UUID, Account] = {}
        if data.entries is not None:
            total_debit, total_credit = self.validate_entries(data.entries)

            old_ids = [entry.account_id for entry in voucher.entries]
            new_ids = [entry.account_id for entry in data.entries]
            touched = await self._lock_accounts(old_ids + new_ids)
            self._ensure_active(data.entries, touched)

            await self._apply_balances(voucher.entries, reverse=True)

            voucher.entries = self._build_entries(data.entries, touched)
            voucher.total_debit = total_debit
            voucher.total_credit = total_credit
            await self.db.flush()

            await self._apply_balances(voucher.entries)

        for field in ("narration", "reference_number", "cheque_number", "cheque_date", "attachments"):
            if field in update_data:
                setattr(voucher, field, update_data[field])

        voucher.modified_by = actor_id
        await self.db.flush()
        await self._refresh_accounts(touched.values())

        logger.info(f"Voucher updated: {voucher.voucher_number}")
        return voucher

    async def delete_voucher(self, voucher_id: uuid.UUID) -> Voucher:
        """Reverse a voucher's balance effects and remove it."""
        voucher = await self.get_voucher(voucher_id)
        await self.financial_years.ensure_open(voucher.voucher_date, "deletion")

        accounts = await self._lock_accounts(entry.account_id for entry in voucher.entries)
        await self._apply_balances(voucher.entries, reverse=True)

        await self.db.delete(voucher)
        await self.db.flush()
        await self._refresh_accounts(accounts.values())

        logger.info(f"Voucher deleted: {voucher.voucher_number}")
        return voucher

    async def set_reconciled(
        self,
        voucher_id: uuid.UUID,
        is_reconciled: bool,
        actor_id: str,
    ) -> Voucher:
        """Mark a voucher as reconciled against the bank statement (or clear it)."""
        voucher = await self.get_voucher(voucher_id)
        voucher.is_reconciled = is_reconciled
        voucher.modified_by = actor_id
        await self.db.flush()
        return voucher
