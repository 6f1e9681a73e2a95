"""
Application-level Tests

Health check, root endpoint and error handling.
"""
import pytest
import uuid
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError

from crm.repositories.billing_repo import BillingRepository
from crm.repositories.contract_repo import ContractRepository
from crm.repositories.dashboard_repo import DashboardRepository
from crm.repositories.patient_repo import PatientRepository


async def _database_down(*args, **kwargs):
    raise SQLAlchemyError("connection dropped")


READ_ENDPOINTS = [
    (PatientRepository, "get_patient_by_id", "/api/patients/{id}"),
    (PatientRepository, "get_intake_by_patient", "/api/assessment/{id}"),
    (ContractRepository, "get_contract_by_patient", "/api/contract/{id}"),
    (ContractRepository, "get_patient_by_id", "/api/bookings/patient/{id}"),
    (BillingRepository, "get_plan_by_patient", "/api/treatment-plan/{id}"),
    (BillingRepository, "get_transaction_by_receipt", "/api/receipts/CS-RC-20240101-ABCDEF"),
    (BillingRepository, "get_transaction_by_receipt", "/api/receipts/CS-RC-20240101-ABCDEF/html"),
    (DashboardRepository, "get_overview_stats", "/api/dashboard/overview"),
]
@pytest.mark.asyncio
class TestApplication:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    async def test_unknown_route_returns_generic_404(self, client: AsyncClient):
        response = await client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"detail": "Resource not found"}

    async def test_resource_404_keeps_detail(self, client: AsyncClient):
        response = await client.get("/api/receipts/CS-RC-00000000-ABCDEF")

        assert response.status_code == 404
        assert response.json() == {"detail": "Receipt not found"}

    @pytest.mark.parametrize("repository, method, path", READ_ENDPOINTS)
    async def test_database_failure_on_read_returns_400(
        self, client: AsyncClient, monkeypatch, repository, method, path
    ):
        monkeypatch.setattr(repository, method, _database_down)

        response = await client.get(path.format(id=uuid.uuid4()))

        assert response.status_code == 400
        assert "connection dropped" in response.json()["detail"]
