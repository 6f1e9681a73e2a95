"""
Billing Service and Model Tests

Pricing rules, payment status derivation and receipt numbering.
"""
import pytest
import re
import uuid
from datetime import date
from decimal import Decimal
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.receipts import generate_receipt_number
from crm.models.billing_model import TreatmentPlan
from crm.models.patient_model import Patient
from crm.schemas.billing_schemas import (
    PaymentStatusLabel,
    TransactionCreateSchema,
    TreatmentPlanSaveSchema,
)
from crm.services.billing_service import BillingService


@pytest.mark.unit
class TestTreatmentPlanModel:
    def test_calculate_total(self):
        assert TreatmentPlan.calculate_total(Decimal("2500"), Decimal("250")) == Decimal("2250")

    def test_discount_never_makes_total_negative(self):
        assert TreatmentPlan.calculate_total(Decimal("100"), Decimal("150")) == Decimal("0.00")

    def test_balance_and_status(self):
        plan = TreatmentPlan()
        plan.apply_pricing(Decimal("1000"), Decimal("0"))

        assert plan.balance_for(Decimal("400")) == Decimal("600")
        assert plan.payment_status_for(Decimal("400")) == PaymentStatusLabel.PENDING
        assert plan.balance_for(Decimal("1000")) == Decimal("0.00")
        assert plan.payment_status_for(Decimal("1000")) == PaymentStatusLabel.DONE

    def test_needs_approval_below_threshold(self):
        plan = TreatmentPlan()
        plan.apply_pricing(Decimal("1499.99"), Decimal("0"))

        assert plan.needs_approval(Decimal("1500")) is True

        plan.apply_pricing(Decimal("1500"), Decimal("0"))
        assert plan.needs_approval(Decimal("1500")) is False


@pytest.mark.unit
class TestReceiptNumbers:
    def test_format(self):
        number = generate_receipt_number(on=date(2024, 2, 15))

        assert re.fullmatch(r"CS-RC-20240215-[0-9A-F]{6}", number)

    def test_custom_prefix(self):
        assert generate_receipt_number(prefix="INV").startswith("INV-")


@pytest.mark.asyncio
@pytest.mark.unit
class TestBillingService:
    async def test_save_plan_computes_total(self, db_session: AsyncSession, test_patient: Patient):
        service = BillingService(db_session)

        plan = await service.save_treatment_plan(
            TreatmentPlanSaveSchema(
                patient_id=test_patient.id,
                service_id="prp",
                base_cost=Decimal("800"),
                discount=Decimal("900"),
            )
        )

        assert plan.total_to_pay == Decimal("0")
        assert plan.service_name == "PRP Therapy"

    async def test_record_payment_updates_totals(
        self, db_session: AsyncSession, test_patient: Patient
    ):
        service = BillingService(db_session)
        await service.save_treatment_plan(
            TreatmentPlanSaveSchema(
                patient_id=test_patient.id, service_id="fue", base_cost=Decimal("2500")
            )
        )

        first = await service.record_payment(
            TransactionCreateSchema(patient_id=test_patient.id, amount=Decimal("1000"))
        )
        second = await service.record_payment(
            TransactionCreateSchema(patient_id=test_patient.id, amount=Decimal("1500"))
        )

        assert first.total_paid == Decimal("1000")
        assert second.total_paid == Decimal("2500")
        assert second.balance == Decimal("0")
        assert second.status == PaymentStatusLabel.DONE

        summary = await service.get_financials(test_patient.id)
        assert summary.total_paid == Decimal("2500")
        assert len(summary.transactions) == 2

    async def test_overpayment_raises(self, db_session: AsyncSession, test_patient: Patient):
        service = BillingService(db_session)
        await service.save_treatment_plan(
            TreatmentPlanSaveSchema(
                patient_id=test_patient.id, service_id="botox", base_cost=Decimal("300")
            )
        )

        with pytest.raises(HTTPException) as exc_info:
            await service.record_payment(
                TransactionCreateSchema(patient_id=test_patient.id, amount=Decimal("300.50"))
            )

        assert exc_info.value.status_code == 400

    async def test_amount_must_be_positive(self):
        with pytest.raises(ValueError):
            TransactionCreateSchema(patient_id=uuid.uuid4(), amount=Decimal("-5"))
