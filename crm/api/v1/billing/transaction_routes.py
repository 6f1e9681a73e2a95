import traceback
import uuid
from typing import Optional
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    UploadFile,
    status,
)
from fastapi.responses import HTMLResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.core.receipts import render_receipt_html
from crm.core.storage import FileStorage, StorageError, get_storage
from crm.schemas.billing_schemas import (
    FinancialSummarySchema,
    PaymentRecordedSchema,
    ReceiptSchema,
    TransactionCreateSchema,
    TransactionType,
)
from crm.services.billing_service import BillingService
from crm.core.utils import logger


router = APIRouter(tags=["billing"])


# ============= Financial Summary =============
@router.get("/financials/{patient_id}", response_model=FinancialSummarySchema)
async def get_financials(
    patient_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Treatment plan, payments and running balance for a patient.

    ``total_paid`` is the sum of the recorded transactions and ``status`` is
    derived from it.
    """
    service = BillingService(db)
    try:
        return await service.get_financials(patient_id)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning(
            {"event": "financials_failed", "patient_id": str(patient_id), "error": str(e)}
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "financials_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving financials",
        )


# ============= Payments =============
@router.post(
    "/transactions",
    response_model=PaymentRecordedSchema,
    status_code=status.HTTP_201_CREATED,
)
async def record_transaction(
    patient_id: uuid.UUID = Form(...),
    amount: str = Form(..., description="Amount paid"),
    payment_type: TransactionType = Form(TransactionType.INSTALLMENT, alias="type"),
    date: Optional[str] = Form(None, description="Payment date (YYYY-MM-DD), defaults to today"),
    proof: Optional[UploadFile] = File(None, description="Proof of payment (image or PDF)"),
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
):
    """
    Record a payment against the patient's treatment plan.

    Args:
        patient_id: Patient UUID
        amount: Amount paid, must be positive
        payment_type: One-time or Installment
        date: Payment date
        proof: Proof of payment file
        db: Database session
        storage: File storage for the proof

    Returns:
        PaymentRecordedSchema: Transaction with the updated totals
    """
    service = BillingService(db, storage)
    try:
        payment = TransactionCreateSchema(
            patient_id=patient_id,
            amount=amount,
            type=payment_type,
            date=date or None,
        )
        return await service.record_payment(payment, proof)

    except HTTPException:
        raise

    except (ValueError, StorageError, SQLAlchemyError) as e:
        logger.log_warning(
            {
                "event": "payment_failed",
                "patient_id": str(patient_id),
                "reason": type(e).__name__,
                "error": str(e),
            }
        )
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "payment_error",
                "patient_id": str(patient_id),
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while recording payment",
        )


# ============= Receipts =============
@router.get("/receipts/{receipt_number}", response_model=ReceiptSchema)
async def get_receipt(
    receipt_number: str,
    db: AsyncSession = Depends(get_db),
):
    service = BillingService(db)
    try:
        return await service.get_receipt(receipt_number)

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "get_receipt_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "get_receipt_error",
                "receipt_number": receipt_number,
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while retrieving receipt",
        )


@router.get("/receipts/{receipt_number}/html", response_class=HTMLResponse)
async def get_receipt_html(
    receipt_number: str,
    db: AsyncSession = Depends(get_db),
):
    """Printable receipt."""
    service = BillingService(db)
    try:
        receipt = await service.get_receipt(receipt_number)
        return HTMLResponse(content=render_receipt_html(receipt))

    except HTTPException:
        raise

    except SQLAlchemyError as e:
        logger.log_warning({"event": "render_receipt_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "render_receipt_error",
                "receipt_number": receipt_number,
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while rendering receipt",
        )
