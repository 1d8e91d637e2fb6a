"""
LedgerBooks - Books Reports Router

Read-only report endpoints. Every report defaults to the current
financial year.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.books_reports import (
    LedgerReport, TrialBalanceReport, DayBookReport,
    CashBookReport, BankBookReport, ProfitLossReport, BalanceSheetReport,
)
from app.services.books_report_service import BooksReportService
from app.utils.books_enums import VoucherType
from app.utils.error_handling import ValidationException
from app.utils.ledger_rules import current_financial_year


router = APIRouter(prefix="/api/books/reports", tags=["Books - Reports"])


def _year(financial_year: Optional[str]) -> str:
    return financial_year or current_financial_year()


@router.get("/ledger", response_model=LedgerReport)
async def account_ledger(
    account_id: Optional[uuid.UUID] = Query(None, description="Account to replay"),
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Account ledger with a running balance after every posting."""
    if account_id is None:
        raise ValidationException("Account ID is required", field="account_id")
    return await BooksReportService(db).ledger(
        account_id, _year(financial_year), start_date, end_date,
    )


@router.get("/trial-balance", response_model=TrialBalanceReport)
async def trial_balance(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    as_on_date: Optional[date] = Query(None, description="Reporting date, defaults to today"),
    unit_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Trial balance of all active accounts."""
    return await BooksReportService(db).trial_balance(_year(financial_year), as_on_date, unit_id)


@router.get("/daybook", response_model=DayBookReport)
async def day_book(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    voucher_type: Optional[VoucherType] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """All vouchers in the window with their entries."""
    return await BooksReportService(db).day_book(
        _year(financial_year), start_date, end_date, voucher_type,
    )


@router.get("/journalbook", response_model=DayBookReport)
async def journal_book(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Journal vouchers in the window."""
    return await BooksReportService(db).journal_book(_year(financial_year), start_date, end_date)


@router.get("/cashbook", response_model=CashBookReport)
async def cash_book(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Receipts and payments through Cash accounts."""
    return await BooksReportService(db).cash_book(_year(financial_year), start_date, end_date)


@router.get("/bankbook", response_model=BankBookReport)
async def bank_book(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    account_id: Optional[uuid.UUID] = Query(None, description="Limit to one bank account"),
    db: AsyncSession = Depends(get_db),
):
    """Deposits and withdrawals through Bank Account accounts."""
    return await BooksReportService(db).bank_book(
        _year(financial_year), start_date, end_date, account_id,
    )


@router.get("/profit-loss", response_model=ProfitLossReport)
async def profit_loss(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    db: AsyncSession = Depends(get_db),
):
    """Profit & loss statement."""
    return await BooksReportService(db).profit_loss(_year(financial_year))


@router.get("/balance-sheet", response_model=BalanceSheetReport)
async def balance_sheet(
    financial_year: Optional[str] = Query(None, description="YYYY-YY, defaults to current"),
    as_on_date: Optional[date] = Query(None, description="Reporting date, defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Balance sheet with the net result folded into liabilities and capital."""
    return await BooksReportService(db).balance_sheet(_year(financial_year), as_on_date)
