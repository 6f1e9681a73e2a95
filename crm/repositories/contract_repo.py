from datetime import date
from typing import List, Optional
import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from crm.models.contract_model import Booking, Contract
from crm.models.patient_model import Patient


class ContractRepository:
    """Repository layer for contracts and surgery bookings."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============= Patient Operations =============
    async def get_patient_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        result = await self.db.execute(select(Patient).where(Patient.id == patient_id))
        return result.scalars().first()

    # ============= Contract Operations =============
    async def get_contract_by_patient(self, patient_id: uuid.UUID) -> Optional[Contract]:
        """Get the patient's signed contract, if any."""
        result = await self.db.execute(
            select(Contract).where(Contract.patient_id == patient_id)
        )
        return result.scalars().first()

    async def save_contract(self, contract: Contract) -> Contract:
        """Insert or update a contract."""
        self.db.add(contract)
        await self.db.commit()
        await self.db.refresh(contract)
        return contract

    # ============= Booking Operations =============
    async def get_booked_slots(self, day: date) -> List[str]:
        """Time slots already taken on a date."""
        result = await self.db.execute(
            select(Booking.time_slot)
            .where(Booking.date == day)
            .order_by(Booking.time_slot.asc())
        )
        return list(result.scalars().all())

    async def get_booking_for_slot(self, day: date, time_slot: str) -> Optional[Booking]:
        result = await self.db.execute(
            select(Booking).where(Booking.date == day, Booking.time_slot == time_slot)
        )
        return result.scalars().first()

    async def add_booking(self, booking: Booking) -> Booking:
        """
        Stage a booking and flush it.

        The caller commits, so the contract check and the insert share a
        transaction.
        """
        self.db.add(booking)
        await self.db.flush()
        return booking

    async def get_patient_bookings(self, patient_id: uuid.UUID) -> List[Booking]:
        result = await self.db.execute(
            select(Booking)
            .where(Booking.patient_id == patient_id)
            .order_by(Booking.date.desc(), Booking.time_slot.asc())
        )
        return list(result.scalars().all())
