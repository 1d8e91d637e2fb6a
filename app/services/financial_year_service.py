"""
LedgerBooks - Financial Year Service

Financial year registry:
- At most one year is active; activating one deactivates the rest
- Closing is one-way and blocks postings dated inside the year
- Closed years cannot be deleted
"""

import logging
import uuid
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.books import FinancialYear
from app.schemas.books import FinancialYearCreate, FinancialYearUpdate
from app.utils.error_handling import (
    BusinessRuleException,
    DuplicateEntryException,
    ErrorCode,
    FinancialYearClosedException,
    NotFoundException,
    ValidationException,
)
from app.utils.ledger_rules import current_financial_year, parse_financial_year

logger = logging.getLogger(__name__)


class FinancialYearService:
    """Service for financial year administration."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # QUERIES
    # ===========================================

    async def list_years(self) -> List[FinancialYear]:
        result = await self.db.execute(
            select(FinancialYear).order_by(FinancialYear.start_date.desc())
        )
        return list(result.scalars().all())

    async def get_year(self, year_id: uuid.UUID) -> FinancialYear:
        result = await self.db.execute(select(FinancialYear).where(FinancialYear.id == year_id))
        year = result.scalar_one_or_none()
        if not year:
            raise NotFoundException(
                "Financial year", year_id, code=ErrorCode.FINANCIAL_YEAR_NOT_FOUND,
            )
        return year

    async def get_year_by_code(self, year_code: str) -> Optional[FinancialYear]:
        result = await self.db.execute(
            select(FinancialYear).where(FinancialYear.year_code == year_code)
        )
        return result.scalar_one_or_none()

    async def get_active_year(self) -> Optional[FinancialYear]:
        result = await self.db.execute(
            select(FinancialYear)
            .where(FinancialYear.is_active.is_(True))
            .order_by(FinancialYear.start_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_current(self) -> Tuple[str, date, date, Optional[FinancialYear]]:
        """
        The active financial year record, or the year derived from today's
        date when none is marked active.
        """
        active = await self.get_active_year()
        if active:
            return active.year_code, active.start_date, active.end_date, active
        year_code = current_financial_year()
        start_date, end_date = parse_financial_year(year_code)
        return year_code, start_date, end_date, await self.get_year_by_code(year_code)

    async def find_year_covering(self, value: date) -> Optional[FinancialYear]:
        result = await self.db.execute(
            select(FinancialYear).where(
                and_(
                    FinancialYear.start_date <= value,
                    FinancialYear.end_date >= value,
                )
            )
        )
        return result.scalars().first()

    async def ensure_open(self, value: date, operation: str = "posting") -> None:
        """
        Raises:
            FinancialYearClosedException: If a closed year covers the date
        """
        year = await self.find_year_covering(value)
        if year and year.is_closed:
            raise FinancialYearClosedException(year.year_code, operation)

    # ===========================================
    # MUTATIONS
    # ===========================================

    async def _deactivate_others(self, keep_id: Optional[uuid.UUID]) -> None:
        result = await self.db.execute(
            select(FinancialYear).where(FinancialYear.is_active.is_(True))
        )
        for year in result.scalars().all():
            if year.id != keep_id:
                year.is_active = False

    async def create_year(self, data: FinancialYearCreate, actor_id: str) -> FinancialYear:
        """Register a financial year; duplicate codes and overlapping ranges are rejected."""
        try:
            parse_financial_year(data.year_code)
        except ValueError as e:
            raise ValidationException(str(e), field="year_code", code=ErrorCode.INVALID_FINANCIAL_YEAR)

        if await self.get_year_by_code(data.year_code):
            raise DuplicateEntryException(
                "Financial year", "year_code", data.year_code,
                message="Financial year code already exists",
            )

        overlap = await self.db.execute(
            select(FinancialYear).where(
                and_(
                    FinancialYear.start_date <= data.end_date,
                    FinancialYear.end_date >= data.start_date,
                )
            )
        )
        if overlap.scalars().first():
            raise BusinessRuleException(
                "Financial year dates overlap with an existing financial year",
                rule="financial_year_overlap",
            )

        if data.is_active:
            await self._deactivate_others(None)

        year = FinancialYear(
            year_code=data.year_code,
            start_date=data.start_date,
            end_date=data.end_date,
            is_active=data.is_active,
            is_closed=False,
            description=data.description,
            unit_id=data.unit_id,
            created_by=actor_id,
        )
        self.db.add(year)
        await self.db.flush()
        logger.info(f"Financial year created: {year.year_code}")
        return year

    async def update_year(self, year_id: uuid.UUID, data: FinancialYearUpdate) -> FinancialYear:
        """Activate, close or describe a financial year. Closing cannot be undone."""
        year = await self.get_year(year_id)
        update_data = data.model_dump(exclude_unset=True)

        if year.is_closed and update_data.get("is_closed") is False:
            raise BusinessRuleException(
                "Cannot reopen a closed financial year",
                rule="closed_financial_year",
            )

        if update_data.get("is_active"):
            await self._deactivate_others(year.id)
            year.is_active = True
        elif update_data.get("is_active") is False:
            year.is_active = False

        if update_data.get("is_closed") and not year.is_closed:
            year.is_closed = True
            year.closing_date = update_data.get("closing_date") or date.today()
            logger.info(f"Financial year closed: {year.year_code}")
        elif "closing_date" in update_data and year.is_closed and update_data["closing_date"]:
            year.closing_date = update_data["closing_date"]

        if "description" in update_data:
            year.description = update_data["description"]

        await self.db.flush()
        return year

    async def delete_year(self, year_id: uuid.UUID) -> None:
        year = await self.get_year(year_id)
        if year.is_closed:
            raise BusinessRuleException(
                "Cannot delete a closed financial year",
                rule="closed_financial_year",
            )
        await self.db.delete(year)
        await self.db.flush()
        logger.info(f"Financial year deleted: {year.year_code}")
