"""
LedgerBooks - API Integration Tests

Integration tests for the REST endpoints and the error envelope.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from httpx import AsyncClient


def _receipt_payload(debit_account, credit_account, debit="500.00", credit="500.00"):
    return {
        "voucher_type": "Receipt",
        "voucher_date": "2024-06-15",
        "narration": "Cash sale",
        "entries": [
            {"account_id": str(debit_account.id), "debit": debit, "credit": "0"},
            {"account_id": str(credit_account.id), "debit": "0", "credit": credit},
        ],
    }


class TestHealthEndpoint:
    """Test health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAccountsAPI:
    """Test chart of accounts endpoints."""

    @pytest.mark.asyncio
    async def test_create_account(self, client: AsyncClient):
        response = await client.post(
            "/api/books/accounts",
            json={
                "account_code": "1001",
                "account_name": "Cash in Hand",
                "account_group": "Assets",
                "account_type": "Cash",
                "opening_balance": "1000.00",
                "opening_balance_type": "Dr",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["account"]["account_code"] == "1001"
        assert Decimal(data["account"]["current_balance"]) == Decimal("1000.00")
        assert data["account"]["balance_type"] == "Dr"
        assert data["account"]["created_by"] == "accountant-1"

    @pytest.mark.asyncio
    async def test_create_requires_identity(self, client: AsyncClient):
        response = await client.post(
            "/api/books/accounts",
            headers={"X-User-Id": ""},
            json={
                "account_code": "1001",
                "account_name": "Cash",
                "account_group": "Assets",
                "account_type": "Cash",
            },
        )

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_duplicate_code(self, client: AsyncClient, cash_account):
        response = await client.post(
            "/api/books/accounts",
            json={
                "account_code": "1001",
                "account_name": "Another Cash",
                "account_group": "Assets",
                "account_type": "Cash",
            },
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Account code already exists"

    @pytest.mark.asyncio
    async def test_type_outside_group_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/books/accounts",
            json={
                "account_code": "4001",
                "account_name": "Sales",
                "account_group": "Income",
                "account_type": "Cash",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_status_filter(self, client: AsyncClient, cash_account, sales_account):
        await client.delete(f"/api/books/accounts/{sales_account.id}")

        active = (await client.get("/api/books/accounts")).json()
        assert [a["account_code"] for a in active["accounts"]] == ["1001"]

        inactive = (await client.get("/api/books/accounts", params={"status": "inactive"})).json()
        assert [a["account_code"] for a in inactive["accounts"]] == ["4001"]

        everything = (await client.get("/api/books/accounts", params={"status": "all"})).json()
        assert everything["count"] == 2

    @pytest.mark.asyncio
    async def test_groups(self, client: AsyncClient):
        response = await client.get("/api/books/accounts/groups")

        assert response.status_code == 200
        assert "Bank Account" in response.json()["groups"]["Assets"]

    @pytest.mark.asyncio
    async def test_missing_account_is_404(self, client: AsyncClient):
        response = await client.get(f"/api/books/accounts/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ACCOUNT_NOT_FOUND"


class TestVouchersAPI:
    """Test voucher endpoints."""

    @pytest.mark.asyncio
    async def test_post_receipt(self, client: AsyncClient, cash_account, sales_account):
        response = await client.post(
            "/api/books/vouchers", json=_receipt_payload(cash_account, sales_account),
        )

        assert response.status_code == 201
        assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        voucher = response.json()["voucher"]
        assert voucher["voucher_number"] == "REC/2024-25/0001"
        assert len(voucher["entries"]) == 2

        account = (await client.get(f"/api/books/accounts/{cash_account.id}")).json()["account"]
        assert Decimal(account["current_balance"]) == Decimal("1500.00")
        assert account["balance_type"] == "Dr"

        sales = (await client.get(f"/api/books/accounts/{sales_account.id}")).json()["account"]
        assert Decimal(sales["current_balance"]) == Decimal("500.00")
        assert sales["balance_type"] == "Cr"

    @pytest.mark.asyncio
    async def test_unbalanced_is_400(self, client: AsyncClient, cash_account, sales_account):
        response = await client.post(
            "/api/books/vouchers",
            json=_receipt_payload(cash_account, sales_account, debit="500.00", credit="400.00"),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Total Debit must equal Total Credit"
        assert body["error"]["code"] == "UNBALANCED_VOUCHER"

        account = (await client.get(f"/api/books/accounts/{cash_account.id}")).json()["account"]
        assert Decimal(account["current_balance"]) == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_single_entry_is_400(self, client: AsyncClient, cash_account):
        payload = _receipt_payload(cash_account, cash_account)
        payload["entries"] = payload["entries"][:1]

        response = await client.post("/api/books/vouchers", json=payload)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_oversized_amount_is_400(self, client: AsyncClient, cash_account, sales_account):
        response = await client.post(
            "/api/books/vouchers",
            json=_receipt_payload(cash_account, sales_account, debit="1e30", credit="1e30"),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        account = await client.post(
            "/api/books/accounts",
            json={
                "account_code": "1099",
                "account_name": "Suspense",
                "account_group": "Assets",
                "account_type": "Current Assets",
                "opening_balance": "12345678901234567.00",
            },
        )
        assert account.status_code == 400

    @pytest.mark.asyncio
    async def test_zero_line_is_400(self, client: AsyncClient, cash_account, sales_account):
        response = await client.post(
            "/api/books/vouchers",
            json=_receipt_payload(cash_account, sales_account, debit="0", credit="0"),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

        posted = await client.post(
            "/api/books/vouchers", json=_receipt_payload(cash_account, sales_account),
        )
        assert posted.json()["voucher"]["voucher_number"] == "REC/2024-25/0001"

    @pytest.mark.asyncio
    async def test_list_and_delete(self, client: AsyncClient, cash_account, sales_account):
        created = (
            await client.post("/api/books/vouchers", json=_receipt_payload(cash_account, sales_account))
        ).json()["voucher"]

        listing = await client.get("/api/books/vouchers", params={"financial_year": "2024-25"})
        assert listing.status_code == 200
        assert listing.headers["Pragma"] == "no-cache"
        assert listing.json()["total"] == 1
        assert listing.json()["total_pages"] == 1

        everything = await client.get("/api/books/vouchers", params={"financial_year": "all"})
        assert everything.json()["total"] == 1

        deleted = await client.delete(f"/api/books/vouchers/{created['id']}")
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "Voucher REC/2024-25/0001 deleted successfully"

        account = (await client.get(f"/api/books/accounts/{cash_account.id}")).json()["account"]
        assert Decimal(account["current_balance"]) == Decimal("1000.00")

        missing = await client.get(f"/api/books/vouchers/{created['id']}")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "VOUCHER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reconcile(self, client: AsyncClient, bank_account, sales_account):
        created = (
            await client.post("/api/books/vouchers", json=_receipt_payload(bank_account, sales_account))
        ).json()["voucher"]

        response = await client.patch(
            f"/api/books/vouchers/{created['id']}/reconcile", json={"is_reconciled": True},
        )

        assert response.status_code == 200
        assert response.json()["voucher"]["is_reconciled"] is True


class TestReportsAPI:
    """Test report endpoints."""

    @pytest.mark.asyncio
    async def test_ledger_requires_account(self, client: AsyncClient):
        response = await client.get("/api/books/reports/ledger")

        assert response.status_code == 400
        assert response.json()["error"]["field"] == "account_id"

    @pytest.mark.asyncio
    async def test_ledger(self, client: AsyncClient, cash_account, sales_account):
        await client.post("/api/books/vouchers", json=_receipt_payload(cash_account, sales_account))

        response = await client.get(
            "/api/books/reports/ledger",
            params={"account_id": str(cash_account.id), "financial_year": "2024-25"},
        )

        assert response.status_code == 200
        entries = response.json()["entries"]
        assert len(entries) == 1
        assert Decimal(entries[0]["balance"]) == Decimal("1500.00")
        assert entries[0]["balance_type"] == "Dr"

    @pytest.mark.asyncio
    async def test_trial_balance_and_statements(
        self, client: AsyncClient, cash_account, bank_account, sales_account, capital_account,
    ):
        await client.post("/api/books/vouchers", json=_receipt_payload(cash_account, sales_account))
        params = {"financial_year": "2024-25"}

        trial = (await client.get("/api/books/reports/trial-balance", params=params)).json()
        assert trial["summary"]["is_balanced"] is True

        pnl = (await client.get("/api/books/reports/profit-loss", params=params)).json()
        assert Decimal(pnl["summary"]["net_result"]) == Decimal("500.00")
        assert pnl["summary"]["is_profit"] is True

        sheet = (await client.get("/api/books/reports/balance-sheet", params=params)).json()
        assert sheet["summary"]["is_balanced"] is True

    @pytest.mark.asyncio
    async def test_invalid_financial_year(self, client: AsyncClient):
        response = await client.get("/api/books/reports/daybook", params={"financial_year": "24-25"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_FINANCIAL_YEAR"


class TestFinancialYearsAPI:
    """Test financial year endpoints."""

    @pytest.mark.asyncio
    async def test_create_and_current(self, client: AsyncClient):
        created = await client.post(
            "/api/books/financial-years",
            json={
                "year_code": "2024-25",
                "start_date": "2024-04-01",
                "end_date": "2025-03-31",
                "is_active": True,
            },
        )
        assert created.status_code == 201

        current = (await client.get("/api/books/financial-years/current")).json()
        assert current["year_code"] == "2024-25"
        assert current["financial_year"]["is_active"] is True

    @pytest.mark.asyncio
    async def test_closed_year_blocks_posting(self, client: AsyncClient, cash_account, sales_account):
        year = (
            await client.post(
                "/api/books/financial-years",
                json={"year_code": "2024-25", "start_date": "2024-04-01", "end_date": "2025-03-31"},
            )
        ).json()["financial_year"]
        closed = await client.put(
            f"/api/books/financial-years/{year['id']}", json={"is_closed": True},
        )
        assert closed.json()["financial_year"]["is_closed"] is True

        response = await client.post(
            "/api/books/vouchers", json=_receipt_payload(cash_account, sales_account),
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FINANCIAL_YEAR_CLOSED"


class TestPendingChangesAPI:
    """Test the approval workflow endpoints."""

    @pytest.mark.asyncio
    async def test_non_admin_cannot_approve(self, client: AsyncClient, admin_headers):
        created = (
            await client.post(
                "/api/pending-changes",
                json={"change_type": "unit_update", "change_data": {"unit_id": "U-1"}},
            )
        ).json()["change"]

        forbidden = await client.post(f"/api/pending-changes/{created['id']}/approve")
        assert forbidden.status_code == 403
        assert forbidden.json()["error"]["code"] == "FORBIDDEN"

        approved = await client.post(
            f"/api/pending-changes/{created['id']}/approve",
            headers=admin_headers,
            json={"comments": "ok"},
        )
        assert approved.status_code == 200
        assert approved.json()["change"]["status"] == "approved"

        again = await client.post(
            f"/api/pending-changes/{created['id']}/reject", headers=admin_headers,
        )
        assert again.status_code == 400
        assert again.json()["message"] == "This change has already been processed"

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient):
        await client.post("/api/pending-changes", json={"change_type": "bulk_upload"})

        response = await client.get("/api/pending-changes/stats")

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["total"]["pending"] == 1
        assert stats["my_pending"] == 1


class TestStatsAPI:
    """Test the books stats endpoints."""

    @pytest.mark.asyncio
    async def test_get_and_recalculate(self, client: AsyncClient, cash_account):
        response = await client.get("/api/books/stats")

        assert response.status_code == 200
        assert response.json()["data"]["total_accounts"] == 1

        forced = await client.post("/api/books/stats")
        assert forced.status_code == 200
        assert Decimal(forced.json()["data"]["accuracy_rate"]) == Decimal("100.00")
