import traceback
import uuid
import datetime as dt
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.schemas.booking_schemas import (
    BookingCreateSchema,
    BookingResponseSchema,
    SlotAvailabilitySchema,
)
from crm.services.booking_service import BookingService
from crm.core.utils import logger


router = APIRouter(tags=["bookings"])


@router.get("/slots", response_model=SlotAvailabilitySchema)
async def get_slots(
    date: dt.date = Query(..., description="Day to check (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """Booked and available surgery slots for a day."""
    service = BookingService(db)
    try:
        return await service.get_slots(date)

    except SQLAlchemyError as e:
        logger.log_warning({"event": "slot_lookup_failed", "date": str(date), "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "slot_lookup_error",
                "date": str(date),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving slots",
        )


@router.post(
    "/bookings",
    response_model=BookingResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    booking_data: BookingCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    """
    Book a surgery slot.

    The patient must have signed the contract (403 ``CONTRACT_REQUIRED``
    otherwise) and the slot must still be free (409 ``SLOT_TAKEN``).

    Args:
        booking_data: Patient, service, date and time slot
        db: Database session

    Returns:
        BookingResponseSchema: The confirmed booking
    """
    service = BookingService(db)
    try:
        return await service.create_booking(booking_data)

    except HTTPException:
        raise

    except (ValueError, SQLAlchemyError) as e:
        logger.log_warning(
            {
                "event": "booking_creation_failed",
                "patient_id": str(booking_data.patient_id),
                "reason": type(e).__name__,
                "error": str(e),
            }
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "booking_creation_error",
                "patient_id": str(booking_data.patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating booking",
        )


@router.get("/bookings/patient/{patient_id}", response_model=List[BookingResponseSchema])
async def list_patient_bookings(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    service = BookingService(db)
    try:
        return await service.get_patient_bookings(patient_id)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "list_bookings_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "list_bookings_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving bookings",
        )
