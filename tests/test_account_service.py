"""
LedgerBooks - Account Service Tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from app.schemas.books import AccountCreate, AccountUpdate
from app.services.account_service import AccountService
from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType
from app.utils.error_handling import (
    AccountNotFoundException,
    DuplicateEntryException,
    ValidationException,
)


class TestAccountService:
    """Test cases for AccountService."""

    @pytest.mark.asyncio
    async def test_create_account_starts_at_opening(self, db_session):
        service = AccountService(db_session)

        account = await service.create_account(
            AccountCreate(
                account_code=" 2001 ",
                account_name="Trade Creditors",
                account_group=AccountGroup.LIABILITIES,
                account_type=AccountType.SUNDRY_CREDITORS,
                opening_balance=Decimal("250.00"),
                opening_balance_type=BalanceSide.CR,
            ),
            "accountant-1",
        )

        assert account.account_code == "2001"
        assert account.opening_balance == Decimal("250.00")
        assert account.opening_balance_type == BalanceSide.CR
        assert account.current_balance == Decimal("250.00")
        assert account.balance_type == BalanceSide.CR
        assert account.is_active is True
        assert account.created_by == "accountant-1"

    @pytest.mark.asyncio
    async def test_duplicate_code_is_rejected(self, db_session, cash_account):
        with pytest.raises(DuplicateEntryException) as exc_info:
            await AccountService(db_session).create_account(
                AccountCreate(
                    account_code="1001",
                    account_name="Petty Cash",
                    account_group=AccountGroup.ASSETS,
                    account_type=AccountType.CASH,
                ),
                "u",
            )
        assert exc_info.value.message == "Account code already exists"

    def test_type_must_belong_to_group(self):
        with pytest.raises(ValidationError):
            AccountCreate(
                account_code="9000",
                account_name="Odd",
                account_group=AccountGroup.INCOME,
                account_type=AccountType.CASH,
            )

    def test_negative_opening_balance_is_rejected(self):
        with pytest.raises(ValidationError):
            AccountCreate(
                account_code="9001",
                account_name="Odd",
                account_group=AccountGroup.ASSETS,
                account_type=AccountType.CASH,
                opening_balance=Decimal("-1"),
            )

    @pytest.mark.asyncio
    async def test_search_by_name_or_code(self, db_session, cash_account, bank_account, sales_account):
        service = AccountService(db_session)

        by_name = await service.get_accounts(search="bank")
        assert [a.account_code for a in by_name] == ["1002"]

        by_code = await service.get_accounts(search="100")
        assert [a.account_code for a in by_code] == ["1001", "1002"]

        by_group = await service.get_accounts(account_group=AccountGroup.INCOME)
        assert [a.account_name for a in by_group] == ["Sales"]

    @pytest.mark.asyncio
    async def test_deactivate_hides_from_default_listing(self, db_session, cash_account, sales_account):
        service = AccountService(db_session)

        account = await service.deactivate_account(sales_account.id, "u")
        assert account.is_active is False

        active = await service.get_accounts()
        assert [a.account_code for a in active] == ["1001"]

        inactive = await service.get_accounts(is_active=False)
        assert [a.account_code for a in inactive] == ["4001"]

        everything = await service.get_accounts(is_active=None)
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_reactivate(self, db_session, sales_account):
        service = AccountService(db_session)
        await service.deactivate_account(sales_account.id, "u")

        account = await service.update_account(sales_account.id, AccountUpdate(is_active=True), "u")
        assert account.is_active is True

    @pytest.mark.asyncio
    async def test_opening_change_shifts_current_balance(
        self, db_session, cash_account, sales_account, post_voucher,
    ):
        """Raising the opening balance keeps posted vouchers applied on top."""
        await post_voucher(
            VoucherType.RECEIPT, date(2024, 6, 1),
            [(cash_account, "200", "0"), (sales_account, "0", "200")],
        )

        account = await AccountService(db_session).update_account(
            cash_account.id, AccountUpdate(opening_balance=Decimal("1500.00")), "u",
        )

        assert account.opening_balance == Decimal("1500.00")
        assert account.current_balance == Decimal("1700.00")

    @pytest.mark.asyncio
    async def test_update_rejects_type_outside_group(self, db_session, cash_account):
        with pytest.raises(ValidationException):
            await AccountService(db_session).update_account(
                cash_account.id, AccountUpdate(account_type=AccountType.DIRECT_INCOME), "u",
            )

    @pytest.mark.asyncio
    async def test_update_rejects_taken_code(self, db_session, cash_account, bank_account):
        with pytest.raises(DuplicateEntryException):
            await AccountService(db_session).update_account(
                cash_account.id, AccountUpdate(account_code="1002"), "u",
            )

    @pytest.mark.asyncio
    async def test_get_missing_account(self, db_session):
        with pytest.raises(AccountNotFoundException):
            await AccountService(db_session).get_account(uuid4())

    def test_account_groups(self):
        groups = AccountService.get_account_groups()
        assert set(groups) == {"Assets", "Liabilities", "Income", "Expenses", "Capital"}
        assert "Cash" in groups["Assets"]
        assert groups["Capital"] == ["Capital Account"]
