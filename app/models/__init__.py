"""
LedgerBooks - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, AuditMixin
from app.utils.books_enums import (
    AccountGroup,
    AccountType,
    BalanceSide,
    VoucherType,
    ChangeType,
    ChangeStatus,
)
from app.models.books import (
    Account,
    Voucher,
    VoucherEntry,
    FinancialYear,
    BooksStats,
)
from app.models.pending_change import PendingChange

__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",
    # Enums
    "AccountGroup",
    "AccountType",
    "BalanceSide",
    "VoucherType",
    "ChangeType",
    "ChangeStatus",
    # Books
    "Account",
    "Voucher",
    "VoucherEntry",
    "FinancialYear",
    "BooksStats",
    # Workflow
    "PendingChange",
]
