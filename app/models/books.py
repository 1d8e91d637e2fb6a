"""
LedgerBooks - Books Models

Double-entry bookkeeping records:
- Account: chart-of-accounts record with a running balance
- Voucher / VoucherEntry: a balanced transaction and its lines
- FinancialYear: April - March accounting year metadata
- BooksStats: persisted dashboard counters with a freshness timestamp

Balances are stored as a single signed decimal (debit positive). The
(magnitude, Dr/Cr) pair that clients see is derived from it.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid,
    Enum as SQLEnum, JSON, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, AuditMixin
from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType
from app.utils.ledger_rules import to_balance_pair


# =============================================================================
# ACCOUNTS
# =============================================================================

class Account(BaseModel, AuditMixin):
    """
    Chart of accounts record.

    `signed_balance` moves with every voucher line that references the
    account; `opening_signed_balance` is where ledger replays start from.
    """

    __tablename__ = "accounts"

    account_code: Mapped[str] = mapped_column(String(20), nullable=False)
    account_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Classification
    account_group: Mapped[AccountGroup] = mapped_column(
        SQLEnum(AccountGroup), nullable=False, index=True,
    )
    account_type: Mapped[AccountType] = mapped_column(
        SQLEnum(AccountType), nullable=False, index=True,
    )
    parent_group: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Balances (debit positive)
    opening_signed_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
    )
    signed_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2),
        default=Decimal("0.00"),
        nullable=False,
        comment="Current balance (updated by voucher postings)",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    unit_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint("account_code", name="uq_accounts_account_code"),
        Index("ix_accounts_group_type", "account_group", "account_type"),
    )

    @property
    def opening_balance(self) -> Decimal:
        return to_balance_pair(self.opening_signed_balance, self.account_group)[0]

    @property
    def opening_balance_type(self) -> BalanceSide:
        return to_balance_pair(self.opening_signed_balance, self.account_group)[1]

    @property
    def current_balance(self) -> Decimal:
        return to_balance_pair(self.signed_balance, self.account_group)[0]

    @property
    def balance_type(self) -> BalanceSide:
        return to_balance_pair(self.signed_balance, self.account_group)[1]

    def __repr__(self) -> str:
        return f"<Account({self.account_code}: {self.account_name})>"


# =============================================================================
# VOUCHERS
# =============================================================================

class Voucher(BaseModel, AuditMixin):
    """
    A posted double-entry transaction.

    The number encodes type and financial year ({PREFIX}/{YYYY-YY}/{0001}),
    so both are fixed once the voucher exists.
    """

    __tablename__ = "vouchers"

    voucher_number: Mapped[str] = mapped_column(String(50), nullable=False)
    voucher_type: Mapped[VoucherType] = mapped_column(SQLEnum(VoucherType), nullable=False)
    voucher_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    financial_year: Mapped[str] = mapped_column(String(7), nullable=False, index=True)

    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )

    narration: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cheque_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cheque_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    attachments: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    is_posted: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_reconciled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    unit_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    entries: Mapped[List["VoucherEntry"]] = relationship(
        "VoucherEntry",
        back_populates="voucher",
        cascade="all, delete-orphan",
        order_by="VoucherEntry.line_number",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("voucher_number", name="uq_vouchers_voucher_number"),
        Index("ix_vouchers_type_year", "voucher_type", "financial_year"),
    )

    def __repr__(self) -> str:
        return f"<Voucher({self.voucher_number})>"


class VoucherEntry(BaseModel):
    """
    One line of a voucher.

    Account code and name are copied at posting time so later renames
    do not rewrite history.
    """

    __tablename__ = "voucher_entries"

    voucher_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("vouchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    account_code: Mapped[str] = mapped_column(String(20), nullable=False)
    account_name: Mapped[str] = mapped_column(String(200), nullable=False)

    debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0.00"), nullable=False,
    )
    narration: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    voucher: Mapped["Voucher"] = relationship("Voucher", back_populates="entries")


# =============================================================================
# FINANCIAL YEARS
# =============================================================================

class FinancialYear(BaseModel):
    """
    Financial year definition. At most one year is active; closing is final.
    """

    __tablename__ = "financial_years"

    year_code: Mapped[str] = mapped_column(String(7), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    closing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    unit_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        UniqueConstraint("year_code", name="uq_financial_years_year_code"),
    )


# =============================================================================
# STATISTICS
# =============================================================================

class BooksStats(BaseModel):
    """Cached books counters, one row per unit (NULL unit = whole books)."""

    __tablename__ = "books_stats"

    unit_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    total_accounts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    active_vouchers: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_transactions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    accuracy_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2), default=Decimal("100.00"), nullable=False,
    )
    last_calculated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
