"""
LedgerBooks - Routers Package

FastAPI route handlers.

Routers:
- accounts: Chart of accounts
- vouchers: Voucher posting, editing and reconciliation
- financial_years: Financial year administration
- books_reports: Ledger, trial balance, books and statements
- books_stats: Cached book statistics
- pending_changes: Change approval workflow
"""

from app.routers import (
    accounts,
    vouchers,
    financial_years,
    books_reports,
    books_stats,
    pending_changes,
)

__all__ = [
    "accounts",
    "vouchers",
    "financial_years",
    "books_reports",
    "books_stats",
    "pending_changes",
]
