"""
LedgerBooks - Books Schemas

Pydantic schemas for accounts, vouchers, financial years and stats.
Balances are exposed as a non-negative magnitude plus a Dr/Cr side.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType
from app.utils.ledger_rules import is_type_allowed


# =============================================================================
# COMMON
# =============================================================================

class MessageResponse(BaseModel):
    """Plain success acknowledgement."""
    success: bool = True
    message: str


# =============================================================================
# ACCOUNT SCHEMAS
# =============================================================================

class AccountBase(BaseModel):
    """Base schema for accounts."""
    account_code: str = Field(..., min_length=1, max_length=20)
    account_name: str = Field(..., min_length=1, max_length=200)
    account_group: AccountGroup
    account_type: AccountType
    parent_group: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    unit_id: Optional[str] = Field(None, max_length=100)


class AccountCreate(AccountBase):
    """Schema for registering a new account."""
    opening_balance: Decimal = Field(Decimal("0.00"), ge=0, max_digits=18, decimal_places=2)
    opening_balance_type: BalanceSide = BalanceSide.DR

    @field_validator("account_code", "account_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @model_validator(mode="after")
    def check_type_in_group(self):
        if not is_type_allowed(self.account_group, self.account_type):
            raise ValueError(
                f"Account type '{self.account_type.value}' does not belong to group "
                f"'{self.account_group.value}'"
            )
        return self


class AccountUpdate(BaseModel):
    """Schema for updating an account."""
    account_code: Optional[str] = Field(None, min_length=1, max_length=20)
    account_name: Optional[str] = Field(None, min_length=1, max_length=200)
    account_type: Optional[AccountType] = None
    parent_group: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    unit_id: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    opening_balance: Optional[Decimal] = Field(None, ge=0, max_digits=18, decimal_places=2)
    opening_balance_type: Optional[BalanceSide] = None


class AccountResponse(AccountBase):
    """Schema for account response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    opening_balance: Decimal
    opening_balance_type: BalanceSide
    current_balance: Decimal
    balance_type: BalanceSide
    is_active: bool
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AccountListResponse(BaseModel):
    """Accounts matching a search."""
    success: bool = True
    accounts: List[AccountResponse]
    count: int


class AccountMutationResponse(BaseModel):
    """Result of an account create/update/deactivate."""
    success: bool = True
    message: str
    account: AccountResponse


class AccountGroupsResponse(BaseModel):
    """Account group -> allowed account types."""
    success: bool = True
    groups: Dict[str, List[str]]


# =============================================================================
# VOUCHER SCHEMAS
# =============================================================================

class VoucherEntryCreate(BaseModel):
    """One voucher line as submitted by a client."""
    account_id: UUID
    debit: Decimal = Field(Decimal("0.00"), ge=0, max_digits=18, decimal_places=2)
    credit: Decimal = Field(Decimal("0.00"), ge=0, max_digits=18, decimal_places=2)
    narration: Optional[str] = None

    @model_validator(mode="after")
    def check_one_side(self):
        if (self.debit > 0) == (self.credit > 0):
            raise ValueError("Each entry must carry either a debit or a credit amount")
        return self


class VoucherEntryResponse(BaseModel):
    """Stored voucher line."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    line_number: int
    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    narration: Optional[str] = None


class VoucherCreate(BaseModel):
    """Schema for posting a voucher."""
    voucher_type: VoucherType
    voucher_date: date
    entries: List[VoucherEntryCreate] = Field(..., min_length=2)
    narration: Optional[str] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    cheque_number: Optional[str] = Field(None, max_length=50)
    cheque_date: Optional[date] = None
    attachments: List[str] = Field(default_factory=list)
    unit_id: Optional[str] = Field(None, max_length=100)


class VoucherUpdate(BaseModel):
    """
    Schema for editing a posted voucher.

    Type and date are part of the voucher number and cannot change.
    """
    entries: Optional[List[VoucherEntryCreate]] = Field(None, min_length=2)
    narration: Optional[str] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    cheque_number: Optional[str] = Field(None, max_length=50)
    cheque_date: Optional[date] = None
    attachments: Optional[List[str]] = None


class VoucherReconcile(BaseModel):
    """Bank reconciliation flag."""
    is_reconciled: bool = True


class VoucherResponse(BaseModel):
    """Schema for voucher response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    voucher_number: str
    voucher_type: VoucherType
    voucher_date: date
    financial_year: str
    total_debit: Decimal
    total_credit: Decimal
    narration: Optional[str] = None
    reference_number: Optional[str] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[date] = None
    attachments: List[str] = []
    is_posted: bool
    is_reconciled: bool
    unit_id: Optional[str] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    entries: List[VoucherEntryResponse] = []


class VoucherListResponse(BaseModel):
    """Paginated voucher list."""
    success: bool = True
    vouchers: List[VoucherResponse]
    total: int
    page: int
    total_pages: int


class VoucherMutationResponse(BaseModel):
    """Result of a voucher create/update/reconcile."""
    success: bool = True
    message: str
    voucher: VoucherResponse


# =============================================================================
# FINANCIAL YEAR SCHEMAS
# =============================================================================

class FinancialYearCreate(BaseModel):
    """Schema for registering a financial year."""
    year_code: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="e.g. 2024-25")
    start_date: date
    end_date: date
    is_active: bool = False
    description: Optional[str] = None
    unit_id: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class FinancialYearUpdate(BaseModel):
    """Schema for updating a financial year."""
    description: Optional[str] = None
    is_active: Optional[bool] = None
    is_closed: Optional[bool] = None
    closing_date: Optional[date] = None


class FinancialYearResponse(BaseModel):
    """Schema for financial year response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    year_code: str
    start_date: date
    end_date: date
    is_active: bool
    is_closed: bool
    closing_date: Optional[date] = None
    description: Optional[str] = None
    unit_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class FinancialYearListResponse(BaseModel):
    success: bool = True
    financial_years: List[FinancialYearResponse]


class FinancialYearMutationResponse(BaseModel):
    success: bool = True
    message: str
    financial_year: FinancialYearResponse


class CurrentFinancialYearResponse(BaseModel):
    """The active financial year, or the one derived from today's date."""
    success: bool = True
    year_code: str
    start_date: date
    end_date: date
    financial_year: Optional[FinancialYearResponse] = None


# =============================================================================
# STATS SCHEMAS
# =============================================================================

class BooksStatsData(BaseModel):
    """Dashboard counters."""
    model_config = ConfigDict(from_attributes=True)

    total_accounts: int
    active_vouchers: int
    total_transactions: int
    accuracy_rate: Decimal
    last_calculated: datetime


class BooksStatsResponse(BaseModel):
    success: bool = True
    data: BooksStatsData
