from decimal import Decimal
from typing import List, Optional
import uuid
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from crm.core.utils import money
from crm.models.billing_model import TreatmentPlan, Transaction
from crm.models.patient_model import Patient


class BillingRepository:
    """Repository layer for treatment plans and the payment ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============= Patient Operations =============
    async def get_patient_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        result = await self.db.execute(select(Patient).where(Patient.id == patient_id))
        return result.scalars().first()

    # ============= Treatment Plan Operations =============
    async def get_plan_by_patient(self, patient_id: uuid.UUID) -> Optional[TreatmentPlan]:
        """Get a patient's treatment plan."""
        result = await self.db.execute(
            select(TreatmentPlan).where(TreatmentPlan.patient_id == patient_id)
        )
        return result.scalars().first()

    async def get_plan_for_update(self, patient_id: uuid.UUID) -> Optional[TreatmentPlan]:
        """
        Get a patient's treatment plan with a row lock.

        Serialises concurrent payments against the same plan on backends that
        support SELECT ... FOR UPDATE.
        """
        result = await self.db.execute(
            select(TreatmentPlan)
            .where(TreatmentPlan.patient_id == patient_id)
            .with_for_update()
        )
        return result.scalars().first()

    async def save_plan(self, plan: TreatmentPlan) -> TreatmentPlan:
        self.db.add(plan)
        await self.db.commit()
        await self.db.refresh(plan)
        return plan

    # ============= Transaction Operations =============
    async def get_transactions(self, patient_id: uuid.UUID) -> List[Transaction]:
        """Patient's payments, newest first."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.patient_id == patient_id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_total_paid(self, patient_id: uuid.UUID) -> Decimal:
        """Sum of every transaction recorded for the patient."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.patient_id == patient_id
            )
        )
        return money(result.scalar())

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        await self.db.commit()
        await self.db.refresh(transaction)
        return transaction

    async def get_transaction_by_receipt(self, receipt_number: str) -> Optional[Transaction]:
        result = await self.db.execute(
            select(Transaction).where(Transaction.receipt_number == receipt_number)
        )
        return result.scalars().first()

    async def receipt_number_exists(self, receipt_number: str) -> bool:
        result = await self.db.execute(
            select(func.count(Transaction.id)).where(
                Transaction.receipt_number == receipt_number
            )
        )
        return (result.scalar() or 0) > 0
