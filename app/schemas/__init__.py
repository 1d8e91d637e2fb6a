"""
LedgerBooks - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.books import (
    MessageResponse,
    # Accounts
    AccountCreate,
    AccountUpdate,
    AccountResponse,
    AccountListResponse,
    AccountMutationResponse,
    AccountGroupsResponse,
    # Vouchers
    VoucherEntryCreate,
    VoucherEntryResponse,
    VoucherCreate,
    VoucherUpdate,
    VoucherReconcile,
    VoucherResponse,
    VoucherListResponse,
    VoucherMutationResponse,
    # Financial years
    FinancialYearCreate,
    FinancialYearUpdate,
    FinancialYearResponse,
    FinancialYearListResponse,
    FinancialYearMutationResponse,
    CurrentFinancialYearResponse,
    # Stats
    BooksStatsData,
    BooksStatsResponse,
)
from app.schemas.books_reports import (
    LedgerReport,
    TrialBalanceReport,
    DayBookReport,
    CashBookReport,
    BankBookReport,
    ProfitLossReport,
    BalanceSheetReport,
)
from app.schemas.pending_change import (
    PendingChangeCreate,
    PendingChangeReview,
    PendingChangeResponse,
    PendingChangeListResponse,
    PendingChangeMutationResponse,
    PendingChangeStatsResponse,
)
