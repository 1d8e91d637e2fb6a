"""
LedgerBooks - Books Report Schemas

Read-only projections: ledger, trial balance, day/journal book,
cash/bank book, profit & loss and balance sheet.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType


class ReportPeriod(BaseModel):
    """Window a report was computed for."""
    financial_year: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class AccountSummary(BaseModel):
    """Account identification carried in report headers."""
    account_id: UUID
    account_code: str
    account_name: str
    account_group: AccountGroup
    account_type: AccountType


# =============================================================================
# LEDGER
# =============================================================================

class LedgerEntry(BaseModel):
    """One posting in an account ledger with the running balance after it."""
    voucher_id: UUID
    voucher_number: str
    voucher_type: VoucherType
    voucher_date: date
    particulars: str
    counter_accounts: List[str] = []
    narration: Optional[str] = None
    debit: Decimal
    credit: Decimal
    balance: Decimal
    balance_type: BalanceSide


class LedgerSummary(BaseModel):
    opening_balance: Decimal
    opening_balance_type: BalanceSide
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal
    closing_balance_type: BalanceSide


class LedgerReport(BaseModel):
    """Account ledger replayed from the opening balance."""
    success: bool = True
    period: ReportPeriod
    account: AccountSummary
    entries: List[LedgerEntry]
    summary: LedgerSummary


# =============================================================================
# TRIAL BALANCE
# =============================================================================

class TrialBalanceEntry(BaseModel):
    account_id: UUID
    account_code: str
    account_name: str
    account_group: AccountGroup
    account_type: AccountType
    debit: Decimal
    credit: Decimal


class GroupTotal(BaseModel):
    debit: Decimal
    credit: Decimal


class TrialBalanceSummary(BaseModel):
    total_accounts: int
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    is_balanced: bool


class TrialBalanceReport(BaseModel):
    """Every active account's balance in the debit or credit column."""
    success: bool = True
    financial_year: str
    as_on_date: date
    entries: List[TrialBalanceEntry]
    grouped_entries: Dict[str, List[TrialBalanceEntry]]
    group_totals: Dict[str, GroupTotal]
    summary: TrialBalanceSummary


# =============================================================================
# DAY BOOK / JOURNAL BOOK
# =============================================================================

class DayBookLine(BaseModel):
    account_id: UUID
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal
    narration: Optional[str] = None


class DayBookEntry(BaseModel):
    voucher_id: UUID
    voucher_number: str
    voucher_type: VoucherType
    voucher_date: date
    narration: Optional[str] = None
    reference_number: Optional[str] = None
    cheque_number: Optional[str] = None
    total_debit: Decimal
    total_credit: Decimal
    entries: List[DayBookLine]


class DayBookSummary(BaseModel):
    total_vouchers: int
    total_debit: Decimal
    total_credit: Decimal


class DayBookReport(BaseModel):
    """Vouchers in a window with their line breakdown."""
    success: bool = True
    period: ReportPeriod
    voucher_type: Optional[VoucherType] = None
    entries: List[DayBookEntry]
    summary: DayBookSummary


# =============================================================================
# CASH BOOK / BANK BOOK
# =============================================================================

class BookAccount(BaseModel):
    """A cash or bank account covered by the book."""
    account_id: UUID
    account_code: str
    account_name: str
    opening_balance: Decimal
    opening_balance_type: BalanceSide
    current_balance: Decimal
    balance_type: BalanceSide


class CashBookEntry(BaseModel):
    voucher_id: UUID
    voucher_number: str
    voucher_type: VoucherType
    voucher_date: date
    book_accounts: List[str]
    particulars: str
    counter_accounts: List[str] = []
    reference_number: Optional[str] = None
    narration: Optional[str] = None
    receipt: Decimal
    payment: Decimal


class BankBookEntry(BaseModel):
    voucher_id: UUID
    voucher_number: str
    voucher_type: VoucherType
    voucher_date: date
    book_accounts: List[str]
    particulars: str
    counter_accounts: List[str] = []
    reference_number: Optional[str] = None
    cheque_number: Optional[str] = None
    cheque_date: Optional[date] = None
    narration: Optional[str] = None
    deposit: Decimal
    withdrawal: Decimal
    is_reconciled: bool


class CashBookSummary(BaseModel):
    """Opening and closing are signed, debit positive."""
    total_vouchers: int
    opening_balance: Decimal
    total_receipts: Decimal
    total_payments: Decimal
    closing_balance: Decimal


class BankBookSummary(BaseModel):
    """Opening and closing are signed, debit positive."""
    total_vouchers: int
    opening_balance: Decimal
    total_deposits: Decimal
    total_withdrawals: Decimal
    closing_balance: Decimal
    unreconciled_count: int


class CashBookReport(BaseModel):
    success: bool = True
    period: ReportPeriod
    accounts: List[BookAccount]
    entries: List[CashBookEntry]
    summary: CashBookSummary


class BankBookReport(BaseModel):
    success: bool = True
    period: ReportPeriod
    account_id: Optional[UUID] = None
    accounts: List[BookAccount]
    entries: List[BankBookEntry]
    summary: BankBookSummary


# =============================================================================
# PROFIT & LOSS / BALANCE SHEET
# =============================================================================

class StatementLine(BaseModel):
    """
    Account line in a financial statement.

    `amount` is the balance measured on the group's normal side, so a
    contra balance shows as negative.
    """
    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    balance: Decimal
    balance_type: BalanceSide
    amount: Decimal


class ProfitLossSummary(BaseModel):
    total_income: Decimal
    total_expenses: Decimal
    net_result: Decimal = Field(..., description="Absolute net profit or loss")
    is_profit: bool
    profit_percentage: Decimal


class ProfitLossReport(BaseModel):
    success: bool = True
    financial_year: str
    income: Dict[str, List[StatementLine]]
    expenses: Dict[str, List[StatementLine]]
    income_type_totals: Dict[str, Decimal]
    expense_type_totals: Dict[str, Decimal]
    summary: ProfitLossSummary


class ProfitLossPosition(BaseModel):
    amount: Decimal
    is_profit: bool


class BalanceSheetSummary(BaseModel):
    total_assets: Decimal
    total_liabilities: Decimal
    total_capital: Decimal
    net_profit_loss: Decimal
    is_profit: bool
    total_liabilities_and_capital: Decimal
    difference: Decimal
    is_balanced: bool


class BalanceSheetReport(BaseModel):
    success: bool = True
    financial_year: str
    as_on_date: date
    assets: Dict[str, List[StatementLine]]
    liabilities: Dict[str, List[StatementLine]]
    capital: List[StatementLine]
    asset_type_totals: Dict[str, Decimal]
    liability_type_totals: Dict[str, Decimal]
    profit_loss: ProfitLossPosition
    summary: BalanceSheetSummary
