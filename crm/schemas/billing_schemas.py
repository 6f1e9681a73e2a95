import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import List, Optional
import uuid
from pydantic import BaseModel, field_validator


class TransactionType(str, Enum):
    """How the patient is settling the plan"""

    ONE_TIME = "One-time"
    INSTALLMENT = "Installment"


class PlanStatus(str, Enum):
    """Treatment plan lifecycle"""

    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentStatusLabel(str, Enum):
    """Derived payment status shown on financial summaries"""

    PENDING = "Payment Pending"
    DONE = "Payment Done"


MAX_AMOUNT = Decimal("99999999.99")
CENT = Decimal("0.01")


def check_amount(v: Decimal, label: str) -> Decimal:
    """Reject values outside the ledger range or finer than one cent."""
    if v > MAX_AMOUNT:
        raise ValueError(f"{label} is too large")
    if v != v.quantize(CENT):
        raise ValueError(f"{label} cannot have more than 2 decimal places")
    return v


# ============= Service Catalog Schemas =============
class ServiceSchema(BaseModel):
    id: str
    name: str
    default_price: Decimal
    included_items: List[str]


# ============= Treatment Plan Schemas =============
class TreatmentPlanSaveSchema(BaseModel):
    """
    Schema for creating or replacing a patient's treatment plan.

    ``total_to_pay`` is always computed server-side.
    """

    patient_id: uuid.UUID
    service_id: str
    service_name: Optional[str] = None
    base_cost: Decimal
    discount: Decimal = Decimal("0.00")

    @field_validator("service_id")
    @classmethod
    def validate_service_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Service is required")
        return v.strip()

    @field_validator("base_cost")
    @classmethod
    def validate_base_cost(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Base cost cannot be negative")
        return check_amount(v, "Base cost")

    @field_validator("discount")
    @classmethod
    def validate_discount(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Discount cannot be negative")
        return check_amount(v, "Discount")


class TreatmentPlanResponseSchema(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    service_id: str
    service_name: str
    base_cost: Decimal
    discount: Decimal
    total_to_pay: Decimal
    status: str
    requires_approval: bool = False
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_plan(cls, plan, approval_threshold: Decimal) -> "TreatmentPlanResponseSchema":
        response = cls.model_validate(plan, from_attributes=True)
        response.requires_approval = plan.needs_approval(approval_threshold)
        return response


# ============= Transaction Schemas =============
class TransactionCreateSchema(BaseModel):
    """
    Payment fields submitted alongside the proof-of-payment upload.

    Built by the route from multipart form fields.
    """

    patient_id: uuid.UUID
    amount: Decimal
    type: TransactionType = TransactionType.INSTALLMENT
    date: Optional[dt.date] = None

    model_config = {"use_enum_values": True}

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Payment amount must be greater than zero")
        return check_amount(v, "Payment amount")


class TransactionResponseSchema(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    amount: Decimal
    type: str
    proof_url: Optional[str] = None
    proof_name: Optional[str] = None
    receipt_number: str
    date: dt.date
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class PaymentRecordedSchema(BaseModel):
    """Result of recording a payment: the transaction plus the updated totals."""

    transaction: TransactionResponseSchema
    total_paid: Decimal
    balance: Decimal
    status: PaymentStatusLabel


class FinancialSummarySchema(BaseModel):
    patient_id: uuid.UUID
    patient_name: str
    treatment_plan: TreatmentPlanResponseSchema
    transactions: List[TransactionResponseSchema]
    total_paid: Decimal
    balance: Decimal
    status: PaymentStatusLabel


# ============= Receipt Schemas =============
class ReceiptSchema(BaseModel):
    receipt_number: str
    patient_name: str
    patient_email: str
    service_name: str
    total_amount: Decimal
    amount_paid: Decimal
    total_paid_to_date: Decimal
    balance: Decimal
    payment_type: str
    date: dt.date
    clinic_name: str
    currency: str
