"""
LedgerBooks - Test Configuration

Pytest fixtures and configuration.
"""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

import app.models  # noqa: F401
from app import database
from app.database import Base, get_async_session
from app.dependencies import Actor
from app.models.books import Account
from app.schemas.books import AccountCreate, VoucherCreate, VoucherEntryCreate
from app.services.account_service import AccountService
from app.services.voucher_service import VoucherService
from app.utils.books_enums import AccountGroup, AccountType, BalanceSide, VoucherType
from main import app


TEST_USER = "accountant-1"
TEST_ADMIN = "admin-1"


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """A throwaway SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledgerbooks_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(test_engine, monkeypatch) -> async_sessionmaker:
    """Session factory bound to the test database, also used by background refreshes."""
    maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    monkeypatch.setattr(database, "async_session_maker", maker)
    return maker


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": TEST_USER, "X-User-Role": "accountant"},
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# ACTORS
# ===========================================

@pytest.fixture
def user_actor() -> Actor:
    return Actor(user_id=TEST_USER, role="accountant")


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(user_id=TEST_ADMIN, role="admin")


@pytest.fixture
def admin_headers() -> dict:
    return {"X-User-Id": TEST_ADMIN, "X-User-Role": "admin"}


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest.fixture
def make_account(db_session: AsyncSession) -> Callable:
    """Factory that registers an account through the service."""

    async def _make(
        code: str,
        name: str,
        group: AccountGroup,
        account_type: AccountType,
        opening: str = "0.00",
        side: BalanceSide = BalanceSide.DR,
    ) -> Account:
        account = await AccountService(db_session).create_account(
            AccountCreate(
                account_code=code,
                account_name=name,
                account_group=group,
                account_type=account_type,
                opening_balance=Decimal(opening),
                opening_balance_type=side,
            ),
            TEST_USER,
        )
        await db_session.commit()
        return account

    return _make


@pytest_asyncio.fixture
async def cash_account(make_account) -> Account:
    """Cash in hand, opening 1000.00 Dr."""
    return await make_account(
        "1001", "Cash in Hand", AccountGroup.ASSETS, AccountType.CASH, "1000.00", BalanceSide.DR,
    )


@pytest_asyncio.fixture
async def bank_account(make_account) -> Account:
    """Bank account, opening 5000.00 Dr."""
    return await make_account(
        "1002", "City Bank", AccountGroup.ASSETS, AccountType.BANK_ACCOUNT, "5000.00", BalanceSide.DR,
    )


@pytest_asyncio.fixture
async def sales_account(make_account) -> Account:
    """Income account with no opening balance."""
    return await make_account(
        "4001", "Sales", AccountGroup.INCOME, AccountType.DIRECT_INCOME, "0.00", BalanceSide.CR,
    )


@pytest_asyncio.fixture
async def rent_account(make_account) -> Account:
    """Expense account with no opening balance."""
    return await make_account(
        "5001", "Office Rent", AccountGroup.EXPENSES, AccountType.INDIRECT_EXPENSES,
    )


@pytest_asyncio.fixture
async def capital_account(make_account) -> Account:
    """Owner's capital, opening 6000.00 Cr."""
    return await make_account(
        "3001", "Owner's Capital", AccountGroup.CAPITAL, AccountType.CAPITAL_ACCOUNT,
        "6000.00", BalanceSide.CR,
    )


@pytest.fixture
def post_voucher(db_session: AsyncSession) -> Callable:
    """Factory that posts a voucher from (account, debit, credit) tuples."""

    async def _post(
        voucher_type: VoucherType,
        voucher_date: date,
        lines,
        narration: str = None,
        **extra,
    ):
        voucher = await VoucherService(db_session).create_voucher(
            VoucherCreate(
                voucher_type=voucher_type,
                voucher_date=voucher_date,
                narration=narration,
                entries=[
                    VoucherEntryCreate(
                        account_id=account.id,
                        debit=Decimal(debit),
                        credit=Decimal(credit),
                    )
                    for account, debit, credit in lines
                ],
                **extra,
            ),
            TEST_USER,
        )
        await db_session.commit()
        return voucher

    return _post
