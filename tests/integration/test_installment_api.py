"""
Integration tests for the installment API.

These tests verify:
1. POST /v1/installments - plan creation and validation
2. GET /v1/installments[/...] - lookups and list filters
3. POST /v1/installments/{id}/payments/... - payment recording
4. Upcoming, overdue and statistics reports
5. DELETE /v1/installments - guarded reset
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient


async def create_plan(client: AsyncClient, body: dict) -> dict:
    response = await client.post("/v1/installments", json=body)
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# POST /v1/installments Tests
# =============================================================================

class TestCreateInstallment:
    """Tests for POST /v1/installments endpoint."""

    @pytest.mark.asyncio
    async def test_create_returns_plan_with_schedule(
        self,
        client: AsyncClient,
        plan_request: dict,
    ):
        data = await create_plan(client, plan_request)

        assert data["id"].startswith("INST")
        assert data["quotation_id"] == plan_request["quotation_id"]
        assert data["status"] == "active"
        assert Decimal(data["monthly_payment"]) == Decimal("10300000")
        assert Decimal(data["total_payable"]) == Decimal("123600000")
        assert Decimal(data["interest_amount"]) == Decimal("3600000")
        assert data["paid_months"] == 0
        assert data["remaining_months"] == 12
        assert Decimal(data["remaining_amount"]) == Decimal("120000000")

        schedule = data["payment_schedule"]
        assert [entry["month"] for entry in schedule] == list(range(1, 13))
        assert all(entry["status"] == "pending" for entry in schedule)
        assert data["next_payment_date"] == schedule[0]["due_date"]
        assert data["end_date"] == schedule[-1]["due_date"]

    @pytest.mark.asyncio
    async def test_bare_start_date_is_midnight_utc(
        self,
        client: AsyncClient,
        plan_request: dict,
    ):
        body = {**plan_request, "start_date": "2024-01-31", "installment_months": 2}

        data = await create_plan(client, body)

        start = datetime.fromisoformat(data["start_date"].replace("Z", "+00:00"))
        first_due = datetime.fromisoformat(
            data["payment_schedule"][0]["due_date"].replace("Z", "+00:00")
        )
        assert start == datetime(2024, 1, 31, tzinfo=timezone.utc)
        assert first_due == datetime(2024, 2, 29, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_defaults_applied(self, client: AsyncClient, plan_request: dict):
        body = {k: v for k, v in plan_request.items() if k not in ("interest_rate", "start_date")}

        data = await create_plan(client, body)

        assert Decimal(data["interest_rate"]) == Decimal("6")
        assert data["created_by"] == "Dealer Staff"
        assert data["dealer_id"] == "dealer001"

    @pytest.mark.asyncio
    async def test_duplicate_quotation_returns_409(
        self,
        client: AsyncClient,
        plan_request: dict,
    ):
        await create_plan(client, plan_request)

        response = await client.post("/v1/installments", json=plan_request)

        assert response.status_code == 409
        assert response.json()["error"] == "DUPLICATE_INSTALLMENT"

    @pytest.mark.asyncio
    async def test_term_above_maximum_returns_400(
        self,
        client: AsyncClient,
        plan_request: dict,
    ):
        response = await client.post(
            "/v1/installments",
            json={**plan_request, "installment_months": 121},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "INVALID_INSTALLMENT_REQUEST"
        assert "installment_months" in data["message"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field, value",
        [
            ("installment_months", 0),
            ("total_amount", "0"),
            ("interest_rate", "-1"),
            ("customer_name", "   "),
        ],
    )
    async def test_schema_validation_returns_422(
        self,
        client: AsyncClient,
        plan_request: dict,
        field: str,
        value,
    ):
        response = await client.post("/v1/installments", json={**plan_request, field: value})

        assert response.status_code == 422


# =============================================================================
# Lookup Tests
# =============================================================================

class TestLookups:
    """Tests for GET endpoints returning plans."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(client, plan_request)

        response = await client.get(f"/v1/installments/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    async def test_get_by_quotation(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(client, plan_request)

        response = await client.get(
            f"/v1/installments/by-quotation/{plan_request['quotation_id']}"
        )

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_unknown_id_returns_404(self, client: AsyncClient):
        response = await client.get("/v1/installments/INST0MISSING")

        assert response.status_code == 404
        assert response.json()["error"] == "INSTALLMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_list_with_filters(
        self,
        client: AsyncClient,
        plan_request: dict,
        lagging_plan_request: dict,
        due_soon_plan_request: dict,
    ):
        await create_plan(client, plan_request)
        lagging = await create_plan(client, lagging_plan_request)
        await create_plan(client, due_soon_plan_request)
        await client.get("/v1/installments/overdue")

        everything = (await client.get("/v1/installments")).json()
        assert everything["count"] == 3

        by_name = (await client.get("/v1/installments", params={"search": "tran thi"})).json()
        assert [p["id"] for p in by_name["installments"]] == [lagging["id"]]

        overdue = (await client.get("/v1/installments", params={"has_overdue": "true"})).json()
        assert [p["id"] for p in overdue["installments"]] == [lagging["id"]]

        completed = (await client.get("/v1/installments", params={"status": "completed"})).json()
        assert completed["count"] == 0

    @pytest.mark.asyncio
    async def test_list_by_dealer_newest_first(
        self,
        client: AsyncClient,
        plan_request: dict,
        lagging_plan_request: dict,
        due_soon_plan_request: dict,
    ):
        first = await create_plan(client, {**plan_request, "dealer_id": "dealer002"})
        await create_plan(client, lagging_plan_request)
        third = await create_plan(client, {**due_soon_plan_request, "dealer_id": "dealer002"})

        response = await client.get("/v1/installments", params={"dealer_id": "dealer002"})

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["installments"]] == [third["id"], first["id"]]

        everything = (await client.get("/v1/installments")).json()["installments"]
        assert everything[0]["id"] == third["id"]
        assert everything[-1]["id"] == first["id"]

    @pytest.mark.asyncio
    async def test_list_rejects_unknown_status(self, client: AsyncClient):
        response = await client.get("/v1/installments", params={"status": "archived"})

        assert response.status_code == 422


# =============================================================================
# Payment Tests
# =============================================================================

class TestPayments:
    """Tests for the payment endpoints."""

    @pytest.mark.asyncio
    async def test_record_payment(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(client, plan_request)

        response = await client.post(f"/v1/installments/{created['id']}/payments/1")

        assert response.status_code == 200
        data = response.json()
        assert data["payment_schedule"][0]["status"] == "paid"
        assert Decimal(data["payment_schedule"][0]["paid_amount"]) == Decimal("10300000")
        assert data["paid_months"] == 1
        assert data["remaining_months"] == 11
        assert Decimal(data["remaining_amount"]) == Decimal("110000000")
        assert data["next_payment_date"] == data["payment_schedule"][1]["due_date"]
        assert data["last_payment_date"] is not None

    @pytest.mark.asyncio
    async def test_payments_in_any_order_complete_plan(
        self,
        client: AsyncClient,
        plan_request: dict,
    ):
        created = await create_plan(
            client,
            {**plan_request, "installment_months": 3, "total_amount": "3000000"},
        )

        for month in (3, 1, 2):
            response = await client.post(f"/v1/installments/{created['id']}/payments/{month}")
            assert response.status_code == 200

        data = response.json()
        assert data["status"] == "completed"
        assert [e["status"] for e in data["payment_schedule"]] == ["paid", "paid", "paid"]
        assert Decimal(data["remaining_amount"]) == 0
        assert data["next_payment_date"] is None

    @pytest.mark.asyncio
    async def test_record_payment_with_body(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(client, plan_request)

        response = await client.post(
            f"/v1/installments/{created['id']}/payments/1",
            json={"paid_amount": "10000000", "paid_date": "2024-02-14T10:00:00Z"},
        )

        assert response.status_code == 200
        entry = response.json()["payment_schedule"][0]
        assert Decimal(entry["paid_amount"]) == Decimal("10000000")
        assert entry["paid_date"].startswith("2024-02-14T10:00:00")

    @pytest.mark.asyncio
    async def test_paying_twice_returns_409(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(client, plan_request)
        await client.post(f"/v1/installments/{created['id']}/payments/1")

        response = await client.post(f"/v1/installments/{created['id']}/payments/1")

        assert response.status_code == 409
        assert response.json()["error"] == "PAYMENT_ALREADY_MADE"

    @pytest.mark.asyncio
    async def test_unknown_month_returns_404(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(client, plan_request)

        response = await client.post(f"/v1/installments/{created['id']}/payments/13")

        assert response.status_code == 404
        assert response.json()["error"] == "PAYMENT_MONTH_NOT_FOUND"

        stored = (await client.get(f"/v1/installments/{created['id']}")).json()
        assert stored == created

    @pytest.mark.asyncio
    async def test_unknown_plan_returns_404(self, client: AsyncClient):
        response = await client.post("/v1/installments/INST0MISSING/payments/1")

        assert response.status_code == 404
        assert response.json()["error"] == "INSTALLMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_next_payment_until_completed(self, client: AsyncClient, plan_request: dict):
        created = await create_plan(
            client,
            {**plan_request, "installment_months": 2, "total_amount": "20000000"},
        )
        url = f"/v1/installments/{created['id']}/payments/next"

        first = (await client.post(url)).json()
        second = (await client.post(url)).json()
        third = await client.post(url)

        assert first["paid_months"] == 1
        assert second["status"] == "completed"
        assert Decimal(second["remaining_amount"]) == 0
        assert second["remaining_months"] == 0
        assert second["next_payment_date"] is None
        assert third.status_code == 409
        assert third.json()["error"] == "NO_OUTSTANDING_PAYMENT"


# =============================================================================
# Report Tests
# =============================================================================

class TestReports:
    """Tests for upcoming, overdue and statistics endpoints."""

    @pytest.mark.asyncio
    async def test_upcoming_payments(
        self,
        client: AsyncClient,
        plan_request: dict,
        due_soon_plan_request: dict,
    ):
        await create_plan(client, plan_request)
        soon = await create_plan(client, due_soon_plan_request)

        response = await client.get("/v1/installments/upcoming")

        assert response.status_code == 200
        data = response.json()
        assert data["days_ahead"] == 7
        assert data["count"] == 1
        payment = data["payments"][0]
        assert payment["installment_id"] == soon["id"]
        assert payment["month"] == 1
        assert 1 <= payment["days_until_due"] <= 5

    @pytest.mark.asyncio
    async def test_upcoming_window_bounds(self, client: AsyncClient):
        assert (await client.get("/v1/installments/upcoming", params={"days_ahead": 366})).status_code == 422
        assert (await client.get("/v1/installments/upcoming", params={"days_ahead": -1})).status_code == 422
        assert (await client.get("/v1/installments/upcoming", params={"days_ahead": 0})).status_code == 200

    @pytest.mark.asyncio
    async def test_overdue_payments_transition_once(
        self,
        client: AsyncClient,
        lagging_plan_request: dict,
    ):
        lagging = await create_plan(client, lagging_plan_request)

        first = (await client.get("/v1/installments/overdue")).json()
        second = (await client.get("/v1/installments/overdue")).json()

        assert first["count"] == 2
        assert [p["month"] for p in first["payments"]] == [1, 2]
        assert first["payments"][0]["days_overdue"] > first["payments"][1]["days_overdue"]
        assert second["count"] == 0

        plan = (await client.get(f"/v1/installments/{lagging['id']}")).json()
        assert [e["status"] for e in plan["payment_schedule"][:3]] == ["overdue", "overdue", "pending"]

    @pytest.mark.asyncio
    async def test_statistics(
        self,
        client: AsyncClient,
        plan_request: dict,
        lagging_plan_request: dict,
        due_soon_plan_request: dict,
    ):
        paid = await create_plan(client, plan_request)
        await create_plan(client, lagging_plan_request)
        await create_plan(client, due_soon_plan_request)
        await client.post(f"/v1/installments/{paid['id']}/payments/1")

        response = await client.get("/v1/installments/statistics")

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_installments"] == 3
        assert stats["active_installments"] == 3
        assert stats["completed_installments"] == 0
        assert stats["overdue_payments"] == 2
        assert stats["upcoming_payments"] == 1
        assert Decimal(stats["total_installment_value"]) == Decimal("360000000")
        assert Decimal(stats["total_collected"]) == Decimal("10000000")
        assert Decimal(stats["total_remaining"]) == Decimal("350000000")


# =============================================================================
# DELETE /v1/installments Tests
# =============================================================================

class TestClearAll:

    @pytest.mark.asyncio
    async def test_disabled_by_default(self, client: AsyncClient, plan_request: dict):
        await create_plan(client, plan_request)

        response = await client.delete("/v1/installments")

        assert response.status_code == 403
        assert response.json()["error"] == "CLEAR_ALL_DISABLED"
        assert (await client.get("/v1/installments")).json()["count"] == 1

    @pytest.mark.asyncio
    async def test_clears_when_enabled(
        self,
        client_with_clear_all: AsyncClient,
        plan_request: dict,
    ):
        await create_plan(client_with_clear_all, plan_request)

        response = await client_with_clear_all.delete("/v1/installments")

        assert response.status_code == 204
        assert (await client_with_clear_all.get("/v1/installments")).json()["count"] == 0
