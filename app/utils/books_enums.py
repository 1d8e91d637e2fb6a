"""
LedgerBooks - Books Enums

Enumerations shared by the books models, schemas and ledger rules.
Kept in their own module so the ledger rules can use them without
importing the ORM models.
"""

from enum import Enum


class AccountGroup(str, Enum):
    """Top-level account classification; decides the normal balance side."""
    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    INCOME = "Income"
    EXPENSES = "Expenses"
    CAPITAL = "Capital"


class AccountType(str, Enum):
    """Finer account category within a group."""
    BANK_ACCOUNT = "Bank Account"
    CASH = "Cash"
    SUNDRY_DEBTORS = "Sundry Debtors"
    SUNDRY_CREDITORS = "Sundry Creditors"
    FIXED_ASSETS = "Fixed Assets"
    CURRENT_ASSETS = "Current Assets"
    CURRENT_LIABILITIES = "Current Liabilities"
    DIRECT_INCOME = "Direct Income"
    INDIRECT_INCOME = "Indirect Income"
    DIRECT_EXPENSES = "Direct Expenses"
    INDIRECT_EXPENSES = "Indirect Expenses"
    CAPITAL_ACCOUNT = "Capital Account"
    LOANS = "Loans"
    DUTIES_AND_TAXES = "Duties & Taxes"
    PROVISIONS = "Provisions"
    OTHER = "Other"


class BalanceSide(str, Enum):
    """Side of a balance: debit or credit."""
    DR = "Dr"
    CR = "Cr"


class VoucherType(str, Enum):
    """Kinds of voucher that can be posted to the books."""
    PAYMENT = "Payment"
    RECEIPT = "Receipt"
    JOURNAL = "Journal"
    CONTRA = "Contra"
    SALES = "Sales"
    PURCHASE = "Purchase"
    DEBIT_NOTE = "Debit Note"
    CREDIT_NOTE = "Credit Note"


class ChangeType(str, Enum):
    """Kinds of change routed through the approval workflow."""
    EMPLOYEE_REGISTRATION = "employee_registration"
    EMPLOYEE_UPDATE = "employee_update"
    UNIT_REGISTRATION = "unit_registration"
    UNIT_UPDATE = "unit_update"
    ATTENDANCE_MARK = "attendance_mark"
    BULK_UPLOAD = "bulk_upload"


class ChangeStatus(str, Enum):
    """Review status of a pending change."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
