"""
LedgerBooks - Books Report Service

Read-only projections recomputed on every request:
- Account ledger (replayed from the opening balance)
- Trial balance
- Day book / journal book
- Cash book / bank book
- Profit & loss and balance sheet

Nothing here writes to the database.
"""

import logging
import uuid
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.books import Account, Voucher, VoucherEntry
from app.schemas.books_reports import (
    AccountSummary,
    BankBookEntry,
    BankBookReport,
    BankBookSummary,
    BalanceSheetReport,
    BalanceSheetSummary,
    BookAccount,
    CashBookEntry,
    CashBookReport,
    CashBookSummary,
    DayBookEntry,
    DayBookLine,
    DayBookReport,
    DayBookSummary,
    GroupTotal,
    LedgerEntry,
    LedgerReport,
    LedgerSummary,
    ProfitLossPosition,
    ProfitLossReport,
    ProfitLossSummary,
    ReportPeriod,
    StatementLine,
    TrialBalanceEntry,
    TrialBalanceReport,
    TrialBalanceSummary,
)
from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType
from app.utils.error_handling import (
    AccountNotFoundException,
    ErrorCode,
    ValidationException,
)
from app.utils.ledger_rules import (
    ZERO,
    is_balanced,
    normal_amount,
    parse_financial_year,
    round_money,
    signed_delta,
    to_balance_pair,
)

logger = logging.getLogger(__name__)


def _counter_accounts(voucher: Voucher, excluded: Set[uuid.UUID]) -> List[str]:
    """Names of the voucher's other accounts, in line order, without repeats."""
    names = OrderedDict()
    for entry in voucher.entries:
        if entry.account_id not in excluded:
            names[entry.account_name] = None
    return list(names)


def _statement_line(account: Account) -> StatementLine:
    balance, side = to_balance_pair(account.signed_balance, account.account_group)
    return StatementLine(
        account_id=account.id,
        account_code=account.account_code,
        account_name=account.account_name,
        account_type=account.account_type,
        balance=balance,
        balance_type=side,
        amount=normal_amount(account.signed_balance, account.account_group),
    )


def _group_by_type(accounts: Sequence[Account]) -> Tuple[Dict[str, List[StatementLine]], Dict[str, Decimal]]:
    grouped: Dict[str, List[StatementLine]] = {}
    totals: Dict[str, Decimal] = {}
    for account in accounts:
        line = _statement_line(account)
        key = account.account_type.value
        grouped.setdefault(key, []).append(line)
        totals[key] = totals.get(key, ZERO) + line.amount
    return grouped, totals


class BooksReportService:
    """Service for books report projections."""

    def __init__(self, db: AsyncSession, tolerance: Optional[Decimal] = None):
        self.db = db
        self.tolerance = tolerance if tolerance is not None else settings.balance_tolerance

    # ===========================================
    # HELPERS
    # ===========================================

    @staticmethod
    def _period(
        financial_year: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ReportPeriod:
        try:
            parse_financial_year(financial_year)
        except ValueError as e:
            raise ValidationException(
                str(e), field="financial_year", code=ErrorCode.INVALID_FINANCIAL_YEAR,
            )
        if start_date and end_date and end_date < start_date:
            raise ValidationException("end_date must not be before start_date", field="end_date")
        return ReportPeriod(financial_year=financial_year, start_date=start_date, end_date=end_date)

    async def _vouchers(
        self,
        period: ReportPeriod,
        voucher_type: Optional[VoucherType] = None,
        account_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> List[Voucher]:
        """Vouchers in the window, oldest first."""
        query = select(Voucher).where(
            Voucher.financial_year == period.financial_year,
            Voucher.is_posted.is_(True),
        )
        if period.start_date:
            query = query.where(Voucher.voucher_date >= period.start_date)
        if period.end_date:
            query = query.where(Voucher.voucher_date <= period.end_date)
        if voucher_type:
            query = query.where(Voucher.voucher_type == voucher_type)
        if account_ids is not None:
            query = query.where(
                Voucher.id.in_(
                    select(VoucherEntry.voucher_id).where(VoucherEntry.account_id.in_(account_ids))
                )
            )

        result = await self.db.execute(
            query.order_by(Voucher.voucher_date.asc(), Voucher.voucher_number.asc())
        )
        return list(result.scalars().all())

    async def _get_account(self, account_id: uuid.UUID) -> Account:
        result = await self.db.execute(select(Account).where(Account.id == account_id))
        account = result.scalar_one_or_none()
        if not account:
            raise AccountNotFoundException(account_id)
        return account

    @staticmethod
    def _reportable():
        """Active accounts plus deactivated ones still carrying a balance."""
        return or_(Account.is_active.is_(True), Account.signed_balance != 0)

    async def _statement_accounts(self, groups: Sequence[AccountGroup]) -> List[Account]:
        result = await self.db.execute(
            select(Account)
            .where(Account.account_group.in_(groups), self._reportable())
            .order_by(Account.account_code)
        )
        return list(result.scalars().all())

    # ===========================================
    # LEDGER
    # ===========================================

    async def ledger(
        self,
        account_id: uuid.UUID,
        financial_year: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> LedgerReport:
        """
        Replay every posting to an account, in date order, from its
        opening balance. Each line of a voucher that hits the account
        becomes its own ledger row.
        """
        period = self._period(financial_year, start_date, end_date)
        account = await self._get_account(account_id)
        group = account.account_group

        running = account.opening_signed_balance
        total_debit = ZERO
        total_credit = ZERO
        rows: List[LedgerEntry] = []

        for voucher in await self._vouchers(period, account_ids=[account.id]):
            counters = _counter_accounts(voucher, {account.id})
            for entry in voucher.entries:
                if entry.account_id != account.id:
                    continue
                running = running + signed_delta(entry.debit, entry.credit)
                total_debit += entry.debit
                total_credit += entry.credit
                balance, side = to_balance_pair(running, group)
                rows.append(LedgerEntry(
                    voucher_id=voucher.id,
                    voucher_number=voucher.voucher_number,
                    voucher_type=voucher.voucher_type,
                    voucher_date=voucher.voucher_date,
                    particulars=", ".join(counters) or account.account_name,
                    counter_accounts=counters,
                    narration=entry.narration or voucher.narration,
                    debit=entry.debit,
                    credit=entry.credit,
                    balance=balance,
                    balance_type=side,
                ))

        opening, opening_side = to_balance_pair(account.opening_signed_balance, group)
        closing, closing_side = to_balance_pair(running, group)
        return LedgerReport(
            period=period,
            account=AccountSummary(
                account_id=account.id,
                account_code=account.account_code,
                account_name=account.account_name,
                account_group=account.account_group,
                account_type=account.account_type,
            ),
            entries=rows,
            summary=LedgerSummary(
                opening_balance=opening,
                opening_balance_type=opening_side,
                total_debit=round_money(total_debit),
                total_credit=round_money(total_credit),
                closing_balance=closing,
                closing_balance_type=closing_side,
            ),
        )

    # ===========================================
    # TRIAL BALANCE
    # ===========================================

    async def trial_balance(
        self,
        financial_year: str,
        as_on_date: Optional[date] = None,
        unit_id: Optional[str] = None,
    ) -> TrialBalanceReport:
        """
        Every active account's current balance in its Dr or Cr column.

        Deactivated accounts that still hold a balance are listed too.
        """
        self._period(financial_year)
        query = select(Account).where(self._reportable())
        if unit_id:
            query = query.where(Account.unit_id == unit_id)
        result = await self.db.execute(query.order_by(Account.account_code))

        entries: List[TrialBalanceEntry] = []
        grouped: Dict[str, List[TrialBalanceEntry]] = {}
        group_totals: Dict[str, GroupTotal] = {}
        total_debit = ZERO
        total_credit = ZERO

        for account in result.scalars().all():
            balance, side = to_balance_pair(account.signed_balance, account.account_group)
            debit = balance if side == BalanceSide.DR else ZERO
            credit = balance if side == BalanceSide.CR else ZERO
            row = TrialBalanceEntry(
                account_id=account.id,
                account_code=account.account_code,
                account_name=account.account_name,
                account_group=account.account_group,
                account_type=account.account_type,
                debit=debit,
                credit=credit,
            )
            entries.append(row)

            key = account.account_group.value
            grouped.setdefault(key, []).append(row)
            totals = group_totals.setdefault(key, GroupTotal(debit=ZERO, credit=ZERO))
            totals.debit += debit
            totals.credit += credit

            total_debit += debit
            total_credit += credit

        return TrialBalanceReport(
            financial_year=financial_year,
            as_on_date=as_on_date or date.today(),
            entries=entries,
            grouped_entries=grouped,
            group_totals=group_totals,
            summary=TrialBalanceSummary(
                total_accounts=len(entries),
                total_debit=round_money(total_debit),
                total_credit=round_money(total_credit),
                difference=round_money(abs(total_debit - total_credit)),
                is_balanced=is_balanced(total_debit, total_credit, self.tolerance),
            ),
        )

    # ===========================================
    # DAY BOOK / JOURNAL BOOK
    # ===========================================

    async def day_book(
        self,
        financial_year: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        voucher_type: Optional[VoucherType] = None,
    ) -> DayBookReport:
        period = self._period(financial_year, start_date, end_date)
        vouchers = await self._vouchers(period, voucher_type=voucher_type)

        entries = [
            DayBookEntry(
                voucher_id=voucher.id,
                voucher_number=voucher.voucher_number,
                voucher_type=voucher.voucher_type,
                voucher_date=voucher.voucher_date,
                narration=voucher.narration,
                reference_number=voucher.reference_number,
                cheque_number=voucher.cheque_number,
                total_debit=voucher.total_debit,
                total_credit=voucher.total_credit,
                entries=[
                    DayBookLine(
                        account_id=line.account_id,
                        account_code=line.account_code,
                        account_name=line.account_name,
                        debit=line.debit,
                        credit=line.credit,
                        narration=line.narration,
                    )
                    for line in voucher.entries
                ],
            )
            for voucher in vouchers
        ]

        return DayBookReport(
            period=period,
            voucher_type=voucher_type,
            entries=entries,
            summary=DayBookSummary(
                total_vouchers=len(entries),
                total_debit=round_money(sum((v.total_debit for v in vouchers), ZERO)),
                total_credit=round_money(sum((v.total_credit for v in vouchers), ZERO)),
            ),
        )

    async def journal_book(
        self,
        financial_year: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> DayBookReport:
        """Day book restricted to Journal vouchers."""
        return await self.day_book(financial_year, start_date, end_date, VoucherType.JOURNAL)

    # ===========================================
    # CASH BOOK / BANK BOOK
    # ===========================================

    async def _book_accounts(
        self,
        account_type: AccountType,
        account_id: Optional[uuid.UUID] = None,
    ) -> List[Account]:
        if account_id:
            account = await self._get_account(account_id)
            if account.account_type != account_type:
                raise ValidationException(
                    f"Account {account.account_code} is not a {account_type.value} account",
                    field="account_id",
                )
            return [account]
        result = await self.db.execute(
            select(Account)
            .where(Account.account_type == account_type)
            .order_by(Account.account_code)
        )
        return list(result.scalars().all())

    async def _book_rows(
        self,
        period: ReportPeriod,
        accounts: Sequence[Account],
    ) -> List[Tuple[Voucher, List[str], List[str], Decimal, Decimal]]:
        """
        Per voucher touching the book: (voucher, book account names,
        counter account names, money in, money out). All book legs of a
        voucher are aggregated.
        """
        if not accounts:
            return []
        book_ids = {account.id for account in accounts}
        rows = []
        for voucher in await self._vouchers(period, account_ids=list(book_ids)):
            money_in = ZERO
            money_out = ZERO
            book_names = OrderedDict()
            for entry in voucher.entries:
                if entry.account_id in book_ids:
                    money_in += entry.debit
                    money_out += entry.credit
                    book_names[entry.account_name] = None
            rows.append((
                voucher,
                list(book_names),
                _counter_accounts(voucher, book_ids),
                round_money(money_in),
                round_money(money_out),
            ))
        return rows

    @staticmethod
    def _book_account(account: Account) -> BookAccount:
        return BookAccount(
            account_id=account.id,
            account_code=account.account_code,
            account_name=account.account_name,
            opening_balance=account.opening_balance,
            opening_balance_type=account.opening_balance_type,
            current_balance=account.current_balance,
            balance_type=account.balance_type,
        )

    async def cash_book(
        self,
        financial_year: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> CashBookReport:
        """Receipts (debits) and payments (credits) on Cash accounts."""
        period = self._period(financial_year, start_date, end_date)
        accounts = await self._book_accounts(AccountType.CASH)
        rows = await self._book_rows(period, accounts)

        entries = [
            CashBookEntry(
                voucher_id=voucher.id,
                voucher_number=voucher.voucher_number,
                voucher_type=voucher.voucher_type,
                voucher_date=voucher.voucher_date,
                book_accounts=book_names,
                particulars=", ".join(counters or book_names),
                counter_accounts=counters,
                reference_number=voucher.reference_number,
                narration=voucher.narration,
                receipt=money_in,
                payment=money_out,
            )
            for voucher, book_names, counters, money_in, money_out in rows
        ]

        opening = round_money(sum((a.opening_signed_balance for a in accounts), ZERO))
        total_in = round_money(sum((e.receipt for e in entries), ZERO))
        total_out = round_money(sum((e.payment for e in entries), ZERO))
        return CashBookReport(
            period=period,
            accounts=[self._book_account(a) for a in accounts],
            entries=entries,
            summary=CashBookSummary(
                total_vouchers=len(entries),
                opening_balance=opening,
                total_receipts=total_in,
                total_payments=total_out,
                closing_balance=round_money(opening + total_in - total_out),
            ),
        )

    async def bank_book(
        self,
        financial_year: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[uuid.UUID] = None,
    ) -> BankBookReport:
        """Deposits (debits) and withdrawals (credits) on Bank Account accounts."""
        period = self._period(financial_year, start_date, end_date)
        accounts = await self._book_accounts(AccountType.BANK_ACCOUNT, account_id)
        rows = await self._book_rows(period, accounts)

        entries = [
            BankBookEntry(
                voucher_id=voucher.id,
                voucher_number=voucher.voucher_number,
                voucher_type=voucher.voucher_type,
                voucher_date=voucher.voucher_date,
                book_accounts=book_names,
                particulars=", ".join(counters or book_names),
                counter_accounts=counters,
                reference_number=voucher.reference_number,
                cheque_number=voucher.cheque_number,
                cheque_date=voucher.cheque_date,
                narration=voucher.narration,
                deposit=money_in,
                withdrawal=money_out,
                is_reconciled=voucher.is_reconciled,
            )
            for voucher, book_names, counters, money_in, money_out in rows
        ]

        opening = round_money(sum((a.opening_signed_balance for a in accounts), ZERO))
        total_in = round_money(sum((e.deposit for e in entries), ZERO))
        total_out = round_money(sum((e.withdrawal for e in entries), ZERO))
        return BankBookReport(
            period=period,
            account_id=account_id,
            accounts=[self._book_account(a) for a in accounts],
            entries=entries,
            summary=BankBookSummary(
                total_vouchers=len(entries),
                opening_balance=opening,
                total_deposits=total_in,
                total_withdrawals=total_out,
                closing_balance=round_money(opening + total_in - total_out),
                unreconciled_count=sum(1 for e in entries if not e.is_reconciled),
            ),
        )

    # ===========================================
    # PROFIT & LOSS / BALANCE SHEET
    # ===========================================

    async def _net_profit(self) -> Tuple[List[Account], List[Account], Decimal, Decimal]:
        """(income accounts, expense accounts, total income, total expenses)"""
        income = await self._statement_accounts([AccountGroup.INCOME])
        expenses = await self._statement_accounts([AccountGroup.EXPENSES])
        total_income = sum((normal_amount(a.signed_balance, a.account_group) for a in income), ZERO)
        total_expenses = sum((normal_amount(a.signed_balance, a.account_group) for a in expenses), ZERO)
        return income, expenses, round_money(total_income), round_money(total_expenses)

    async def profit_loss(self, financial_year: str) -> ProfitLossReport:
        """Income minus expenses, each grouped by account type."""
        self._period(financial_year)
        income, expenses, total_income, total_expenses = await self._net_profit()
        net = total_income - total_expenses

        income_grouped, income_totals = _group_by_type(income)
        expense_grouped, expense_totals = _group_by_type(expenses)

        if total_income:
            percentage = round_money(net / total_income * 100)
        else:
            percentage = ZERO

        return ProfitLossReport(
            financial_year=financial_year,
            income=income_grouped,
            expenses=expense_grouped,
            income_type_totals=income_totals,
            expense_type_totals=expense_totals,
            summary=ProfitLossSummary(
                total_income=total_income,
                total_expenses=total_expenses,
                net_result=abs(net),
                is_profit=net >= 0,
                profit_percentage=percentage,
            ),
        )

    async def balance_sheet(
        self,
        financial_year: str,
        as_on_date: Optional[date] = None,
    ) -> BalanceSheetReport:
        """
        Assets against liabilities + capital + net profit (a loss reduces
        the right-hand side).
        """
        self._period(financial_year)
        assets = await self._statement_accounts([AccountGroup.ASSETS])
        liabilities = await self._statement_accounts([AccountGroup.LIABILITIES])
        capital = await self._statement_accounts([AccountGroup.CAPITAL])
        _, _, total_income, total_expenses = await self._net_profit()
        net = total_income - total_expenses

        asset_grouped, asset_totals = _group_by_type(assets)
        liability_grouped, liability_totals = _group_by_type(liabilities)
        capital_lines = [_statement_line(a) for a in capital]

        total_assets = round_money(sum(asset_totals.values(), ZERO))
        total_liabilities = round_money(sum(liability_totals.values(), ZERO))
        total_capital = round_money(sum((line.amount for line in capital_lines), ZERO))
        right_side = round_money(total_liabilities + total_capital + net)
        difference = round_money(total_assets - right_side)

        return BalanceSheetReport(
            financial_year=financial_year,
            as_on_date=as_on_date or date.today(),
            assets=asset_grouped,
            liabilities=liability_grouped,
            capital=capital_lines,
            asset_type_totals=asset_totals,
            liability_type_totals=liability_totals,
            profit_loss=ProfitLossPosition(amount=abs(net), is_profit=net >= 0),
            summary=BalanceSheetSummary(
                total_assets=total_assets,
                total_liabilities=total_liabilities,
                total_capital=total_capital,
                net_profit_loss=abs(net),
                is_profit=net >= 0,
                total_liabilities_and_capital=right_side,
                difference=difference,
                is_balanced=abs(difference) <= self.tolerance,
            ),
        )
