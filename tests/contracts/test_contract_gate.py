"""
Contract Signing and Booking Gate Tests

A surgery booking is only accepted once the patient's contract is on file.
"""
import pytest
import uuid
from datetime import date, timedelta
from httpx import AsyncClient
from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config.config import settings
from crm.models.contract_model import Booking, Contract
from crm.core.utils import utc_now
from crm.models.patient_model import Patient
from crm.repositories.contract_repo import ContractRepository
from crm.schemas.booking_schemas import BookingCreateSchema
from crm.services.booking_service import BookingService
from conftest import PDF_BYTES, create_patient, sign_contract


def booking_payload(patient_id, day: date, time_slot: str = "10:00") -> dict:
    return {
        "patient_id": str(patient_id),
        "service_type": "FUE Hair Transplant",
        "date": day.isoformat(),
        "time_slot": time_slot,
    }


@pytest.mark.asyncio
@pytest.mark.gate
class TestContractSigning:
    async def test_sign_contract(self, client: AsyncClient, test_patient: Patient, isolated_settings):
        response = await sign_contract(client, test_patient.id)

        assert response.status_code == 201
        data = response.json()
        assert data["patient_id"] == str(test_patient.id)
        assert data["signature_url"].startswith("/media/signatures/")
        assert data["signed_at"]

        stored = isolated_settings.MEDIA_ROOT / data["signature_url"][len("/media/"):]
        assert stored.exists()

    async def test_contract_status_unsigned(self, client: AsyncClient, test_patient: Patient):
        response = await client.get(f"/api/contract/{test_patient.id}")

        assert response.status_code == 200
        assert response.json() == {"signed": False, "contract": None}

    async def test_contract_status_signed(self, client: AsyncClient, test_patient: Patient):
        await sign_contract(client, test_patient.id)

        response = await client.get(f"/api/contract/{test_patient.id}")

        data = response.json()
        assert data["signed"] is True
        assert data["contract"]["patient_id"] == str(test_patient.id)

    async def test_resign_keeps_single_contract(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        test_patient: Patient,
        isolated_settings,
    ):
        first = (await sign_contract(client, test_patient.id)).json()
        second = (await sign_contract(client, test_patient.id)).json()

        assert second["id"] == first["id"]
        assert second["signature_url"] != first["signature_url"]

        count = await db_session.scalar(
            select(func.count()).select_from(Contract).where(
                Contract.patient_id == test_patient.id
            )
        )
        assert count == 1

        # The replaced signature image is removed
        old_file = isolated_settings.MEDIA_ROOT / first["signature_url"][len("/media/"):]
        assert not old_file.exists()

    async def test_sign_unknown_patient(self, client: AsyncClient):
        response = await sign_contract(client, uuid.uuid4())

        assert response.status_code == 404

    async def test_signature_must_be_image(self, client: AsyncClient, test_patient: Patient):
        response = await client.post(
            "/api/contract",
            data={"patient_id": str(test_patient.id)},
            files={"signature": ("contract.pdf", PDF_BYTES, "application/pdf")},
        )

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["detail"]

    async def test_empty_signature_rejected(self, client: AsyncClient, test_patient: Patient):
        response = await sign_contract(client, test_patient.id, content=b"")

        assert response.status_code == 400
        assert response.json()["detail"] == "Uploaded file is empty"

    async def test_missing_signature(self, client: AsyncClient, test_patient: Patient):
        response = await client.post("/api/contract", data={"patient_id": str(test_patient.id)})

        assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.gate
class TestBookingGate:
    async def test_booking_without_contract_rejected(
        self, client: AsyncClient, db_session: AsyncSession, test_patient: Patient, booking_date
    ):
        response = await client.post("/api/bookings", json=booking_payload(test_patient.id, booking_date))

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "CONTRACT_REQUIRED"

        count = await db_session.scalar(select(func.count()).select_from(Booking))
        assert count == 0

    async def test_booking_after_signing(
        self, client: AsyncClient, test_patient: Patient, booking_date
    ):
        contract = (await sign_contract(client, test_patient.id)).json()

        response = await client.post("/api/bookings", json=booking_payload(test_patient.id, booking_date))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "Confirmed"
        assert data["contract_id"] == contract["id"]
        assert data["time_slot"] == "10:00"
        assert data["date"] == booking_date.isoformat()

    async def test_booking_unknown_patient(self, client: AsyncClient, booking_date):
        response = await client.post("/api/bookings", json=booking_payload(uuid.uuid4(), booking_date))

        assert response.status_code == 404

    async def test_slot_cannot_be_double_booked(self, client: AsyncClient, booking_date):
        first = await create_patient(client, email="first@example.com")
        second = await create_patient(client, email="second@example.com")
        await sign_contract(client, first["id"])
        await sign_contract(client, second["id"])

        ok = await client.post("/api/bookings", json=booking_payload(first["id"], booking_date))
        taken = await client.post("/api/bookings", json=booking_payload(second["id"], booking_date))

        assert ok.status_code == 201
        assert taken.status_code == 409
        assert taken.json()["detail"]["code"] == "SLOT_TAKEN"

    async def test_unknown_slot_rejected(
        self, client: AsyncClient, test_patient: Patient, booking_date
    ):
        await sign_contract(client, test_patient.id)

        response = await client.post(
            "/api/bookings", json=booking_payload(test_patient.id, booking_date, "13:00")
        )

        assert response.status_code == 400

    async def test_malformed_slot_rejected(
        self, client: AsyncClient, test_patient: Patient, booking_date
    ):
        response = await client.post(
            "/api/bookings", json=booking_payload(test_patient.id, booking_date, "9am")
        )

        assert response.status_code == 422

    async def test_past_date_rejected(self, client: AsyncClient, test_patient: Patient):
        await sign_contract(client, test_patient.id)
        yesterday = date.today() - timedelta(days=1)

        response = await client.post("/api/bookings", json=booking_payload(test_patient.id, yesterday))

        assert response.status_code == 400
        assert "past" in response.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.gate
class TestSlotsAndBookingLists:
    async def test_all_slots_free(self, client: AsyncClient, booking_date):
        response = await client.get("/api/slots", params={"date": booking_date.isoformat()})

        assert response.status_code == 200
        data = response.json()
        assert data["booked"] == []
        assert data["available"] == settings.TIME_SLOTS

    async def test_booked_slot_not_available(
        self, client: AsyncClient, test_patient: Patient, booking_date
    ):
        await sign_contract(client, test_patient.id)
        await client.post("/api/bookings", json=booking_payload(test_patient.id, booking_date, "14:00"))

        data = (await client.get("/api/slots", params={"date": booking_date.isoformat()})).json()

        assert data["booked"] == ["14:00"]
        assert "14:00" not in data["available"]
        assert len(data["available"]) == len(settings.TIME_SLOTS) - 1

    async def test_slots_require_date(self, client: AsyncClient):
        response = await client.get("/api/slots")

        assert response.status_code == 422

    async def test_patient_bookings(self, client: AsyncClient, test_patient: Patient, booking_date):
        await sign_contract(client, test_patient.id)
        await client.post("/api/bookings", json=booking_payload(test_patient.id, booking_date, "09:00"))
        await client.post("/api/bookings", json=booking_payload(test_patient.id, booking_date, "15:00"))

        response = await client.get(f"/api/bookings/patient/{test_patient.id}")

        assert response.status_code == 200
        assert [b["time_slot"] for b in response.json()] == ["09:00", "15:00"]

    async def test_patient_bookings_unknown_patient(self, client: AsyncClient):
        response = await client.get(f"/api/bookings/patient/{uuid.uuid4()}")

        assert response.status_code == 404


async def add_contract(db_session: AsyncSession, patient: Patient) -> Contract:
    contract = Contract(
        patient_id=patient.id,
        signature_url=f"/media/signatures/{patient.id}.png",
        signed_at=utc_now(),
    )
    db_session.add(contract)
    await db_session.commit()
    await db_session.refresh(contract)
    return contract


@pytest.mark.asyncio
@pytest.mark.gate
@pytest.mark.unit
class TestBookingConstraints:
    async def test_booking_with_unknown_contract_rejected_by_database(
        self, db_session: AsyncSession, test_patient: Patient, booking_date
    ):
        db_session.add(
            Booking(
                patient_id=test_patient.id,
                contract_id=uuid.uuid4(),
                service_type="FUE Hair Transplant",
                date=booking_date,
                time_slot="10:00",
            )
        )

        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    async def test_booking_without_contract_id_rejected_by_database(
        self, db_session: AsyncSession, test_patient: Patient, booking_date
    ):
        db_session.add(
            Booking(
                patient_id=test_patient.id,
                service_type="FUE Hair Transplant",
                date=booking_date,
                time_slot="10:00",
            )
        )

        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()

    async def test_slot_taken_between_check_and_insert(
        self, db_session: AsyncSession, test_patient: Patient, booking_date, monkeypatch
    ):
        rival = Patient(first_name="Rival", last_name="Patient", email="rival@example.com")
        db_session.add(rival)
        await db_session.commit()
        await add_contract(db_session, test_patient)
        await add_contract(db_session, rival)

        service = BookingService(db_session)
        await service.create_booking(
            BookingCreateSchema(
                patient_id=rival.id,
                service_type="PRP Therapy",
                date=booking_date,
                time_slot="11:00",
            )
        )

        # The availability check misses the rival booking, the unique constraint does not
        async def slot_looks_free(*args, **kwargs):
            return None

        monkeypatch.setattr(ContractRepository, "get_booking_for_slot", slot_looks_free)

        with pytest.raises(HTTPException) as exc_info:
            await service.create_booking(
                BookingCreateSchema(
                    patient_id=test_patient.id,
                    service_type="FUE Hair Transplant",
                    date=booking_date,
                    time_slot="11:00",
                )
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail["code"] == "SLOT_TAKEN"

        count = await db_session.scalar(select(func.count()).select_from(Booking))
        assert count == 1
