from decimal import Decimal
from typing import List, Optional
import uuid
from fastapi import HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config.config import settings
from crm.core.catalog import SERVICES, get_service
from crm.core.receipts import generate_receipt_number
from crm.core.storage import FileStorage, StoredFile
from crm.core.utils import LoggerMixin, money
from crm.models.billing_model import TreatmentPlan, Transaction
from crm.models.patient_model import Patient
from crm.schemas.billing_schemas import (
    FinancialSummarySchema,
    PaymentRecordedSchema,
    ReceiptSchema,
    ServiceSchema,
    TransactionCreateSchema,
    TransactionResponseSchema,
    TreatmentPlanResponseSchema,
    TreatmentPlanSaveSchema,
)
from crm.repositories.billing_repo import BillingRepository


RECEIPT_NUMBER_ATTEMPTS = 5


class BillingService(LoggerMixin):
    """Service layer for treatment plans, payments and receipts."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorage] = None):
        super().__init__()
        self.db = db
        self.repo = BillingRepository(self.db)
        self.storage = storage or FileStorage()

    async def _get_patient(self, patient_id: uuid.UUID) -> Patient:
        patient = await self.repo.get_patient_by_id(patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )
        return patient

    # ============= Treatment Plan Services =============
    @staticmethod
    def list_services() -> List[ServiceSchema]:
        return [ServiceSchema(**service) for service in SERVICES]

    async def save_treatment_plan(self, plan_data: TreatmentPlanSaveSchema) -> TreatmentPlan:
        """Create or replace the patient's plan. The total is computed here."""
        await self._get_patient(plan_data.patient_id)

        service = get_service(plan_data.service_id)
        if not service:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown service '{plan_data.service_id}'",
            )

        plan = await self.repo.get_plan_by_patient(plan_data.patient_id)
        if plan is None:
            plan = TreatmentPlan(patient_id=plan_data.patient_id)

        plan.service_id = service["id"]
        plan.service_name = (plan_data.service_name or "").strip() or service["name"]
        plan.apply_pricing(money(plan_data.base_cost), money(plan_data.discount))

        plan = await self.repo.save_plan(plan)
        self.log_info(
            {
                "event": "treatment_plan_saved",
                "patient_id": str(plan.patient_id),
                "service_id": plan.service_id,
                "total_to_pay": str(plan.total_to_pay),
            }
        )
        return plan

    async def get_treatment_plan(self, patient_id: uuid.UUID) -> TreatmentPlan:
        plan = await self.repo.get_plan_by_patient(patient_id)
        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Treatment plan not found for this patient",
            )
        return plan

    def plan_response(self, plan: TreatmentPlan) -> TreatmentPlanResponseSchema:
        return TreatmentPlanResponseSchema.from_plan(plan, settings.APPROVAL_THRESHOLD)

    # ============= Ledger Services =============
    async def get_financials(self, patient_id: uuid.UUID) -> FinancialSummarySchema:
        """Plan, payments and the balance derived from them."""
        patient = await self._get_patient(patient_id)
        plan = await self.get_treatment_plan(patient_id)

        transactions = await self.repo.get_transactions(patient_id)
        total_paid = await self.repo.get_total_paid(patient_id)

        return FinancialSummarySchema(
            patient_id=patient.id,
            patient_name=patient.full_name,
            treatment_plan=self.plan_response(plan),
            transactions=[
                TransactionResponseSchema.model_validate(t) for t in transactions
            ],
            total_paid=total_paid,
            balance=plan.balance_for(total_paid),
            status=plan.payment_status_for(total_paid),
        )

    async def record_payment(
        self,
        payment: TransactionCreateSchema,
        proof: Optional[UploadFile] = None,
    ) -> PaymentRecordedSchema:
        """
        Record a payment against the patient's treatment plan.

        The plan row is locked while paid-to-date is recomputed, so two
        concurrent payments cannot both slip under the total.

        Raises:
            HTTPException: 404 unknown patient or no plan, 400 overpayment
            StorageError: the proof file was rejected
        """
        await self._get_patient(payment.patient_id)

        plan = await self.repo.get_plan_for_update(payment.patient_id)
        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Treatment plan not found for this patient",
            )

        amount = money(payment.amount)
        total_paid = await self.repo.get_total_paid(payment.patient_id)
        balance = plan.balance_for(total_paid)

        if balance <= 0:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Treatment plan is already paid in full",
            )
        if amount > balance:
            await self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Payment of {amount} exceeds the outstanding balance of {balance}",
            )

        stored: Optional[StoredFile] = None
        if proof is not None and proof.filename:
            stored = await self.storage.save_upload(
                proof,
                folder=settings.PROOF_FOLDER,
                prefix=str(payment.patient_id),
            )

        transaction = Transaction(
            patient_id=payment.patient_id,
            amount=amount,
            type=payment.type,
            proof_url=stored.url if stored else None,
            proof_name=stored.name if stored else None,
            receipt_number=await self._new_receipt_number(),
        )
        if payment.date is not None:
            transaction.date = payment.date

        try:
            transaction = await self.repo.add_transaction(transaction)
        except IntegrityError:
            await self.db.rollback()
            if stored:
                await self.storage.delete_url(stored.url)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Payment could not be recorded, please retry",
            )

        total_paid = money(total_paid + amount)
        self.log_info(
            {
                "event": "payment_recorded",
                "patient_id": str(payment.patient_id),
                "receipt_number": transaction.receipt_number,
                "amount": str(amount),
                "total_paid": str(total_paid),
            }
        )

        return PaymentRecordedSchema(
            transaction=TransactionResponseSchema.model_validate(transaction),
            total_paid=total_paid,
            balance=plan.balance_for(total_paid),
            status=plan.payment_status_for(total_paid),
        )

    async def _new_receipt_number(self) -> str:
        for _ in range(RECEIPT_NUMBER_ATTEMPTS):
            receipt_number = generate_receipt_number()
            if not await self.repo.receipt_number_exists(receipt_number):
                return receipt_number
        # The unique column rejects a final collision
        return generate_receipt_number()

    # ============= Receipt Services =============
    async def get_receipt(self, receipt_number: str) -> ReceiptSchema:
        transaction = await self.repo.get_transaction_by_receipt(receipt_number)
        if not transaction:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Receipt not found",
            )

        patient = await self._get_patient(transaction.patient_id)
        plan = await self.repo.get_plan_by_patient(transaction.patient_id)
        total_paid = await self.repo.get_total_paid(transaction.patient_id)
        total_amount = plan.total_to_pay if plan else Decimal("0.00")

        return ReceiptSchema(
            receipt_number=transaction.receipt_number,
            patient_name=patient.full_name,
            patient_email=patient.email,
            service_name=plan.service_name if plan else "",
            total_amount=money(total_amount),
            amount_paid=money(transaction.amount),
            total_paid_to_date=total_paid,
            balance=max(Decimal("0.00"), money(total_amount) - total_paid),
            payment_type=transaction.type,
            date=transaction.date,
            clinic_name=settings.CLINIC_NAME,
            currency=settings.CURRENCY_SYMBOL,
        )
