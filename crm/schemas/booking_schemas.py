import datetime as dt
from enum import Enum
import re
from typing import List
import uuid
from pydantic import BaseModel, field_validator


class BookingStatus(str, Enum):
    """Booking status enumeration"""

    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


TIME_SLOT_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


class BookingCreateSchema(BaseModel):
    """
    Schema for reserving a surgery slot.

    Slot membership, past dates and the contract requirement are checked by
    BookingService, since they depend on configuration and stored state.
    """

    patient_id: uuid.UUID
    service_type: str
    date: dt.date
    time_slot: str

    @field_validator("service_type")
    @classmethod
    def validate_service_type(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Service type cannot be empty")
        v = v.strip()
        if len(v) > 150:
            raise ValueError("Service type cannot exceed 150 characters")
        return v

    @field_validator("time_slot")
    @classmethod
    def validate_time_slot(cls, v: str) -> str:
        v = v.strip()
        if not TIME_SLOT_PATTERN.match(v):
            raise ValueError("Time slot must be in HH:MM format")
        return v


class BookingResponseSchema(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    contract_id: uuid.UUID
    service_type: str
    date: dt.date
    time_slot: str
    status: str
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class SlotAvailabilitySchema(BaseModel):
    """Booked and free surgery slots for one day."""

    date: dt.date
    booked: List[str]
    available: List[str]
