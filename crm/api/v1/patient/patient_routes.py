import traceback
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.core.pagination import (
    PaginatedResponse,
    PaginationParams,
    get_pagination_params,
)
from crm.schemas.patient_schemas import (
    PatientCreateSchema,
    PatientUpdateSchema,
    PatientResponseSchema,
    PatientDeleteResponseSchema,
)
from crm.core.storage import FileStorage, get_storage
from crm.services.patient_service import PatientService
from crm.core.utils import logger


router = APIRouter(prefix="/patients", tags=["patients"])


@router.get("", response_model=PaginatedResponse[PatientResponseSchema])
async def list_patients(
    search: Optional[str] = Query(
        None, description="Match first name, last name, email or phone"
    ),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db),
):
    """
    List patients, newest first.

    Args:
        search: Case-insensitive substring filter
        pagination: Page number and size
        db: Database session

    Returns:
        PaginatedResponse[PatientResponseSchema]: One page of patients
    """
    service = PatientService(db)
    try:
        return await service.list_patients(pagination, search)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "patient_list_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "patient_list_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while listing patients",
        )


@router.post(
    "",
    response_model=PatientResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_patient(
    patient_data: PatientCreateSchema,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new patient.

    Args:
        patient_data: Patient registration data
        db: Database session

    Returns:
        PatientResponseSchema: Created patient information
    """
    service = PatientService(db)
    try:
        patient = await service.create_patient(patient_data)

        logger.log_info(
            {
                "event": "patient_created",
                "patient_id": str(patient.id),
            }
        )

        return patient

    except HTTPException:
        raise

    except (ValueError, SQLAlchemyError) as e:
        logger.log_warning(
            {
                "event": "patient_creation_failed",
                "reason": type(e).__name__,
                "error": str(e),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except Exception as e:
        logger.log_error(
            {
                "event": "patient_creation_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while creating patient",
        )


@router.get("/{patient_id}", response_model=PatientResponseSchema)
async def get_patient(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get patient by ID."""
    service = PatientService(db)
    try:
        return await service.get_patient(patient_id)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "get_patient_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "get_patient_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving patient",
        )


@router.put("/{patient_id}", response_model=PatientResponseSchema)
async def update_patient(
    patient_id: uuid.UUID,
    update_data: PatientUpdateSchema,
    db: AsyncSession = Depends(get_db),
):
    """
    Update patient details.

    Only the fields present in the request body are changed.
    """
    service = PatientService(db)
    try:
        patient = await service.update_patient(patient_id, update_data)

        logger.log_info(
            {
                "event": "patient_updated",
                "patient_id": str(patient_id),
                "updated_fields": list(update_data.model_dump(exclude_unset=True).keys()),
            }
        )

        return patient

    except HTTPException:
        raise

    except (ValueError, SQLAlchemyError) as e:
        logger.log_warning(
            {
                "event": "patient_update_failed",
                "patient_id": str(patient_id),
                "reason": type(e).__name__,
                "error": str(e),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    except Exception as e:
        logger.log_error(
            {
                "event": "patient_update_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while updating patient",
        )


@router.delete("/{patient_id}", response_model=PatientDeleteResponseSchema)
async def delete_patient(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
):
    """
    Permanently delete a patient.

    The assessment, contract, bookings, treatment plan and transactions of
    the patient are deleted with it, along with the uploaded files.
    """
    service = PatientService(db, storage)
    try:
        deleted_id = await service.delete_patient(patient_id)

        logger.log_info({"event": "patient_deleted", "patient_id": str(deleted_id)})

        return PatientDeleteResponseSchema(
            message="Patient and related records deleted",
            patient_id=deleted_id,
        )

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning(
            {"event": "patient_delete_failed", "patient_id": str(patient_id), "error": str(e)}
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "patient_delete_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while deleting patient",
        )
