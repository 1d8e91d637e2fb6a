"""
LedgerBooks - Books Stats Service

Dashboard counters for the books module, persisted in `books_stats`
with a freshness timestamp:
- total_accounts: active accounts
- active_vouchers: posted vouchers in the current financial year
- total_transactions: voucher lines across those vouchers
- accuracy_rate: share of those vouchers whose debits equal credits

Reads reuse the stored row while it is younger than the TTL. Voucher and
account mutations schedule a best-effort refresh that never fails the
request that triggered it.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app import database
from app.config import settings
from app.models.books import Account, BooksStats, Voucher, VoucherEntry
from app.utils.ledger_rules import current_financial_year, round_money

logger = logging.getLogger(__name__)


class BooksStatsService:
    """Computes and caches books statistics."""

    def __init__(self, db: AsyncSession, ttl_seconds: Optional[int] = None):
        self.db = db
        self.ttl = timedelta(
            seconds=ttl_seconds if ttl_seconds is not None else settings.books_stats_ttl_seconds
        )

    async def compute(self, unit_id: Optional[str] = None) -> Dict[str, object]:
        """Recount everything from the accounts and vouchers tables."""
        accounts_query = select(func.count(Account.id)).where(Account.is_active.is_(True))
        if unit_id:
            accounts_query = accounts_query.where(Account.unit_id == unit_id)
        total_accounts = (await self.db.execute(accounts_query)).scalar() or 0

        voucher_filter = [
            Voucher.is_posted.is_(True),
            Voucher.financial_year == current_financial_year(),
        ]
        if unit_id:
            voucher_filter.append(Voucher.unit_id == unit_id)

        active_vouchers = (
            await self.db.execute(select(func.count(Voucher.id)).where(*voucher_filter))
        ).scalar() or 0

        balanced_vouchers = (
            await self.db.execute(
                select(func.count(Voucher.id)).where(
                    *voucher_filter,
                    func.abs(Voucher.total_debit - Voucher.total_credit) < settings.balance_tolerance,
                )
            )
        ).scalar() or 0

        total_transactions = (
            await self.db.execute(
                select(func.count(VoucherEntry.id))
                .join(Voucher, VoucherEntry.voucher_id == Voucher.id)
                .where(*voucher_filter)
            )
        ).scalar() or 0

        if active_vouchers:
            accuracy_rate = round_money(Decimal(balanced_vouchers * 100) / Decimal(active_vouchers))
        else:
            accuracy_rate = Decimal("100.00")

        return {
            "total_accounts": total_accounts,
            "active_vouchers": active_vouchers,
            "total_transactions": total_transactions,
            "accuracy_rate": accuracy_rate,
        }

    async def _get_row(self, unit_id: Optional[str]) -> Optional[BooksStats]:
        query = select(BooksStats)
        if unit_id:
            query = query.where(BooksStats.unit_id == unit_id)
        else:
            query = query.where(BooksStats.unit_id.is_(None))
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()

    def is_fresh(self, stats: BooksStats, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        last = stats.last_calculated
        if last.tzinfo is None:
            # SQLite hands back naive timestamps
            last = last.replace(tzinfo=timezone.utc)
        return now - last < self.ttl

    async def refresh(self, unit_id: Optional[str] = None) -> BooksStats:
        """Recompute and upsert the stats row for a unit."""
        values = await self.compute(unit_id)
        stats = await self._get_row(unit_id)
        if stats is None:
            stats = BooksStats(unit_id=unit_id)
            self.db.add(stats)
        for field, value in values.items():
            setattr(stats, field, value)
        stats.last_calculated = datetime.now(timezone.utc)
        await self.db.flush()
        return stats

    async def get_stats(self, unit_id: Optional[str] = None, force: bool = False) -> BooksStats:
        """Stored stats if still fresh, otherwise a recomputed row."""
        if not force:
            stats = await self._get_row(unit_id)
            if stats is not None and self.is_fresh(stats):
                return stats
        return await self.refresh(unit_id)


async def refresh_books_stats(unit_id: Optional[str] = None) -> None:
    """
    Background refresh on a session of its own.

    Errors are logged and swallowed: the mutation that scheduled this
    has already committed.
    """
    try:
        async with database.async_session_maker() as session:
            await BooksStatsService(session).refresh(unit_id)
            await session.commit()
    except Exception as e:
        logger.warning(f"Books stats refresh failed (unit={unit_id}): {e}")
