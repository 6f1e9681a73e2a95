"""
Dashboard Overview Tests
"""
import pytest
from decimal import Decimal
from httpx import AsyncClient

from conftest import as_decimal, create_patient, pay, save_plan, sign_contract


@pytest.mark.asyncio
class TestDashboardOverview:
    async def test_empty_dashboard(self, client: AsyncClient):
        response = await client.get("/api/dashboard/overview")

        assert response.status_code == 200
        data = response.json()
        assert data["patients"]["total"] == 0
        assert data["bookings"]["total"] == 0
        assert data["billing"]["treatment_plans"] == 0
        assert as_decimal(data["billing"]["total_revenue"]) == Decimal("0")

    async def test_counts_and_sums(self, client: AsyncClient, booking_date):
        paid_up = await create_patient(client, email="paid@example.com")
        paying = await create_patient(client, email="paying@example.com")
        await create_patient(client, email="new@example.com")

        await client.post(
            "/api/assessment", json={"patient_id": paid_up["id"], "data": {"questions": {}}}
        )
        await sign_contract(client, paid_up["id"])
        await client.post(
            "/api/bookings",
            json={
                "patient_id": paid_up["id"],
                "service_type": "PRP Therapy",
                "date": booking_date.isoformat(),
                "time_slot": "11:00",
            },
        )

        await save_plan(client, paid_up["id"], service_id="prp", base_cost="800")
        await pay(client, paid_up["id"], "800", payment_type="One-time")
        await save_plan(client, paying["id"], base_cost="2500")
        await pay(client, paying["id"], "1000")

        data = (await client.get("/api/dashboard/overview")).json()

        assert data["patients"]["total"] == 3
        assert data["patients"]["registered_this_month"] == 3
        assert data["patients"]["assessments_completed"] == 1
        assert data["patients"]["contracts_signed"] == 1
        assert data["bookings"]["total"] == 1
        assert data["bookings"]["upcoming"] == 1

        billing = data["billing"]
        assert billing["treatment_plans"] == 2
        assert as_decimal(billing["total_revenue"]) == Decimal("1800")
        assert as_decimal(billing["revenue_this_month"]) == Decimal("1800")
        assert as_decimal(billing["outstanding_balance"]) == Decimal("1500")
        assert billing["plans_paid_in_full"] == 1
        assert billing["plans_pending_payment"] == 1
