import traceback
import uuid
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.core.storage import FileStorage, StorageError, get_storage
from crm.schemas.contract_schemas import ContractResponseSchema, ContractStatusSchema
from crm.services.contract_service import ContractService
from crm.core.utils import logger


router = APIRouter(prefix="/contract", tags=["contract"])


@router.post(
    "",
    response_model=ContractResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def sign_contract(
    patient_id: uuid.UUID = Form(...),
    signature: UploadFile = File(..., description="Signature image (PNG, JPEG or WebP)"),
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
):
    """
    Sign the treatment contract with an uploaded signature image.

    Signing again replaces the stored signature; a patient never has more
    than one contract.

    Args:
        patient_id: Patient UUID
        signature: Signature image
        db: Database session
        storage: File storage for the image

    Returns:
        ContractResponseSchema: The signed contract
    """
    service = ContractService(db, storage)
    try:
        return await service.sign_contract(patient_id, signature)

    except HTTPException:
        raise

    except (StorageError, SQLAlchemyError, ValueError) as e:
        logger.log_warning(
            {
                "event": "contract_sign_failed",
                "patient_id": str(patient_id),
                "reason": type(e).__name__,
                "error": str(e),
            }
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "contract_sign_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while signing contract",
        )


@router.get("/{patient_id}", response_model=ContractStatusSchema)
async def get_contract_status(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Whether the patient has signed, with the contract if so."""
    service = ContractService(db)
    try:
        contract = await service.get_contract(patient_id)
        return ContractStatusSchema(
            signed=contract is not None,
            contract=ContractResponseSchema.model_validate(contract) if contract else None,
        )

    except SQLAlchemyError as e:
        logger.log_warning({"event": "get_contract_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "get_contract_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving contract",
        )
