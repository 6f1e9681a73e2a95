from datetime import date
from typing import List
import uuid
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config.config import settings
from crm.core.notifications import NotificationService
from crm.core.utils import LoggerMixin
from crm.models.contract_model import Booking
from crm.models.patient_model import Patient
from crm.schemas.booking_schemas import (
    BookingCreateSchema,
    BookingStatus,
    SlotAvailabilitySchema,
)
from crm.repositories.contract_repo import ContractRepository


def slot_taken_error(day: date, time_slot: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "code": "SLOT_TAKEN",
            "message": f"The {time_slot} slot on {day.isoformat()} is already booked",
        },
    )


class BookingService(LoggerMixin):
    """Service layer for surgery booking behind the contract gate."""

    def __init__(self, db: AsyncSession):
        super().__init__()
        self.db = db
        self.repo = ContractRepository(self.db)

    async def get_slots(self, day: date) -> SlotAvailabilitySchema:
        booked = await self.repo.get_booked_slots(day)
        available = [slot for slot in settings.TIME_SLOTS if slot not in booked]
        return SlotAvailabilitySchema(date=day, booked=booked, available=available)

    async def create_booking(self, booking_data: BookingCreateSchema) -> Booking:
        """
        Reserve a slot for a patient with a signed contract.

        Raises:
            HTTPException: 404 unknown patient, 403 no contract, 400 invalid
                slot or past date, 409 slot already booked
        """
        patient = await self.repo.get_patient_by_id(booking_data.patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )

        contract = await self.repo.get_contract_by_patient(booking_data.patient_id)
        if not contract:
            self.log_warning(
                {"event": "booking_blocked_no_contract", "patient_id": str(patient.id)}
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "CONTRACT_REQUIRED",
                    "message": "The patient must sign the contract before booking surgery",
                },
            )

        if booking_data.time_slot not in settings.TIME_SLOTS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid time slot. Available slots: {', '.join(settings.TIME_SLOTS)}",
            )

        if booking_data.date < date.today():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot book a date in the past",
            )

        if await self.repo.get_booking_for_slot(booking_data.date, booking_data.time_slot):
            raise slot_taken_error(booking_data.date, booking_data.time_slot)

        booking = Booking(
            patient_id=patient.id,
            contract_id=contract.id,
            service_type=booking_data.service_type,
            date=booking_data.date,
            time_slot=booking_data.time_slot,
            status=BookingStatus.CONFIRMED.value,
        )
        try:
            await self.repo.add_booking(booking)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise slot_taken_error(booking_data.date, booking_data.time_slot)
        await self.db.refresh(booking)

        self.log_info(
            {
                "event": "booking_created",
                "booking_id": str(booking.id),
                "patient_id": str(patient.id),
                "date": booking.date.isoformat(),
                "time_slot": booking.time_slot,
            }
        )

        await self._notify(patient, booking)
        return booking

    async def _notify(self, patient: Patient, booking: Booking) -> None:
        sent = await NotificationService.send_booking_confirmation(
            patient_name=patient.full_name,
            patient_email=patient.email,
            service=booking.service_type,
            date_label=booking.date.strftime("%A %d %B %Y"),
            time_slot=booking.time_slot,
        )
        if not sent:
            self.log_warning(
                {"event": "booking_confirmation_not_sent", "booking_id": str(booking.id)}
            )

    async def get_patient_bookings(self, patient_id: uuid.UUID) -> List[Booking]:
        patient = await self.repo.get_patient_by_id(patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )
        return await self.repo.get_patient_bookings(patient_id)
