"""
LedgerBooks - Services Package

Business logic services.
"""

from app.services.account_service import AccountService
from app.services.voucher_service import VoucherService
from app.services.financial_year_service import FinancialYearService
from app.services.books_report_service import BooksReportService
from app.services.books_stats_service import BooksStatsService, refresh_books_stats
from app.services.pending_change_service import PendingChangeService
