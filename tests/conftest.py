"""
Shared test fixtures and configuration for pytest.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from crm.main import app
from crm.db.base import Base
from crm.config.config import settings
from crm.api.dependencies import get_db
from crm.models.patient_model import Patient


# Test database configuration
TEST_DATABASE_URL = "sqlite+aiosqlite://"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Write uploads to a temporary folder and keep email in mock mode."""
    monkeypatch.setattr(settings, "MEDIA_ROOT", tmp_path / "media")
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    return settings


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh in-memory database for each test.

    A single shared connection (StaticPool) keeps the database alive for the
    whole test; the engine is disposed afterwards.
    """
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    event.listen(test_engine.sync_engine, "connect", _enable_foreign_keys)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def override_get_db(db_session: AsyncSession):
    """Override the get_db dependency for testing."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
async def client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """Test client bound to the test database."""
    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def sample_patient_data() -> dict:
    """Sample patient registration payload."""
    return {
        "first_name": "Amelia",
        "last_name": "Hart",
        "email": "amelia.hart@example.com",
        "phone": "+44 7700 900123",
        "dob": "1988-04-12",
        "gender": "Female",
    }


@pytest.fixture
async def test_patient(db_session: AsyncSession) -> Patient:
    """Create a patient directly in the database."""
    patient = Patient(
        first_name="Oliver",
        last_name="Grant",
        email="oliver.grant@example.com",
        phone="07700900456",
        dob=date(1979, 9, 3),
        gender="Male",
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient


@pytest.fixture
def booking_date() -> date:
    """A weekday comfortably in the future."""
    return date.today() + timedelta(days=14)


# Helper functions for tests
async def create_patient(client: AsyncClient, **overrides) -> dict:
    payload = {
        "first_name": "Test",
        "last_name": "Patient",
        "email": "test.patient@example.com",
        "phone": "07700900000",
    }
    payload.update(overrides)
    response = await client.post("/api/patients", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def sign_contract(client: AsyncClient, patient_id: str, content: bytes = PNG_BYTES):
    return await client.post(
        "/api/contract",
        data={"patient_id": str(patient_id)},
        files={"signature": ("signature.png", content, "image/png")},
    )


async def save_plan(
    client: AsyncClient,
    patient_id: str,
    service_id: str = "fue",
    base_cost: str = "2500",
    discount: str = "0",
):
    return await client.post(
        "/api/treatment-plan",
        json={
            "patient_id": str(patient_id),
            "service_id": service_id,
            "base_cost": base_cost,
            "discount": discount,
        },
    )


async def pay(
    client: AsyncClient,
    patient_id: str,
    amount: str,
    payment_type: str = "Installment",
    proof: Optional[bytes] = PDF_BYTES,
    payment_date: Optional[str] = None,
):
    data = {"patient_id": str(patient_id), "amount": amount, "type": payment_type}
    if payment_date:
        data["date"] = payment_date
    files = {"proof": ("proof.pdf", proof, "application/pdf")} if proof is not None else None
    return await client.post("/api/transactions", data=data, files=files)


def as_decimal(value) -> Decimal:
    """Money values are serialised as strings."""
    return Decimal(str(value))


def assert_paginated_response(data: dict):
    """Assert that response is a valid paginated response."""
    assert "items" in data
    assert "page_info" in data
    assert "total_items" in data["page_info"]
    assert "total_pages" in data["page_info"]
    assert "current_page" in data["page_info"]
    assert "page_size" in data["page_info"]
    assert "has_next" in data["page_info"]
    assert "has_previous" in data["page_info"]
