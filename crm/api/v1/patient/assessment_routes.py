import traceback
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.core.catalog import QUESTIONNAIRE, QUESTION_KEYS
from crm.schemas.assessment_schemas import (
    AssessmentSaveSchema,
    AssessmentResponseSchema,
    QuestionnaireSchema,
)
from crm.services.patient_service import PatientService
from crm.core.utils import logger


router = APIRouter(prefix="/assessment", tags=["assessment"])


@router.get("/questions", response_model=QuestionnaireSchema)
async def get_questionnaire():
    """Sections and questions of the medical history form."""
    return QuestionnaireSchema(sections=QUESTIONNAIRE)


@router.post(
    "",
    response_model=AssessmentResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def save_assessment(
    assessment: AssessmentSaveSchema,
    db: AsyncSession = Depends(get_db),
):
    """
    Save a patient's medical assessment.

    A second save for the same patient replaces the stored answers.

    Args:
        assessment: Patient ID and questionnaire answers
        db: Database session

    Returns:
        AssessmentResponseSchema: The stored document
    """
    service = PatientService(db)
    try:
        intake = await service.save_assessment(assessment)

        logger.log_info(
            {
                "event": "assessment_saved",
                "patient_id": str(assessment.patient_id),
                "answered": len(set(QUESTION_KEYS) & set(assessment.data.get("questions") or {})),
            }
        )

        return intake

    except HTTPException:
        raise

    except (ValueError, SQLAlchemyError) as e:
        logger.log_warning(
            {
                "event": "assessment_save_failed",
                "patient_id": str(assessment.patient_id),
                "error": str(e),
            }
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "assessment_save_error",
                "patient_id": str(assessment.patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while saving assessment",
        )


@router.get("/{patient_id}", response_model=AssessmentResponseSchema)
async def get_assessment(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    service = PatientService(db)
    try:
        return await service.get_assessment(patient_id)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "get_assessment_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "get_assessment_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving assessment",
        )
