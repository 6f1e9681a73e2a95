import traceback
import uuid
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.schemas.billing_schemas import (
    ServiceSchema,
    TreatmentPlanSaveSchema,
    TreatmentPlanResponseSchema,
)
from crm.services.billing_service import BillingService
from crm.core.utils import logger


router = APIRouter(prefix="/treatment-plan", tags=["treatment-plans"])


@router.get("/services", response_model=List[ServiceSchema])
async def list_services():
    """Service catalog with default prices and included items."""
    return BillingService.list_services()


@router.post(
    "",
    response_model=TreatmentPlanResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def save_treatment_plan(
    plan_data: TreatmentPlanSaveSchema,
    db: AsyncSession = Depends(get_db),
):
    """
    Create or replace a patient's treatment plan.

    ``total_to_pay`` is base cost minus discount, never below zero.

    Args:
        plan_data: Service and pricing
        db: Database session

    Returns:
        TreatmentPlanResponseSchema: The saved plan
    """
    service = BillingService(db)
    try:
        plan = await service.save_treatment_plan(plan_data)
        return service.plan_response(plan)

    except HTTPException:
        raise

    except (ValueError, SQLAlchemyError) as e:
        logger.log_warning(
            {
                "event": "treatment_plan_save_failed",
                "patient_id": str(plan_data.patient_id),
                "reason": type(e).__name__,
                "error": str(e),
            }
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "treatment_plan_save_error",
                "patient_id": str(plan_data.patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while saving treatment plan",
        )


@router.get("/{patient_id}", response_model=TreatmentPlanResponseSchema)
async def get_treatment_plan(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    service = BillingService(db)
    try:
        plan = await service.get_treatment_plan(patient_id)
        return service.plan_response(plan)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "get_treatment_plan_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "get_treatment_plan_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving treatment plan",
        )
