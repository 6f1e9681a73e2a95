import uuid
import datetime as dt
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from sqlalchemy import (
    TIMESTAMP,
    Date,
    ForeignKey,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from crm.db.base import Base
from crm.schemas.billing_schemas import PaymentStatusLabel, PlanStatus, TransactionType

if TYPE_CHECKING:
    from crm.models.patient_model import Patient


class TreatmentPlan(Base):
    """
    Priced service bundle assigned to a patient.

    The plan total is the basis for billing. Payment status is never stored:
    it is derived from the sum of the patient's transactions.
    """

    __tablename__ = "treatment_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    service_id: Mapped[str] = mapped_column(String(50), nullable=False)
    service_name: Mapped[str] = mapped_column(String(150), nullable=False)
    base_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    discount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    total_to_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=PlanStatus.ACTIVE.value
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="treatment_plan")

    # Business Logic Methods
    @staticmethod
    def calculate_total(base_cost: Decimal, discount: Decimal) -> Decimal:
        """Total to pay after discount, floored at zero."""
        return max(Decimal("0.00"), base_cost - discount)

    def apply_pricing(self, base_cost: Decimal, discount: Decimal) -> None:
        self.base_cost = base_cost
        self.discount = discount
        self.total_to_pay = self.calculate_total(base_cost, discount)

    def balance_for(self, total_paid: Decimal) -> Decimal:
        """Outstanding amount given what has been paid so far (never negative)."""
        return max(Decimal("0.00"), self.total_to_pay - total_paid)

    def payment_status_for(self, total_paid: Decimal) -> PaymentStatusLabel:
        if total_paid >= self.total_to_pay:
            return PaymentStatusLabel.DONE
        return PaymentStatusLabel.PENDING

    def needs_approval(self, threshold: Decimal) -> bool:
        return self.total_to_pay < threshold

    def __repr__(self) -> str:
        return f"<TreatmentPlan patient_id={self.patient_id} total={self.total_to_pay}>"


class Transaction(Base):
    """Individual payment recorded against a patient's treatment plan."""

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=TransactionType.INSTALLMENT.value
    )
    proof_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    proof_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    receipt_number: Mapped[str] = mapped_column(
        String(40), nullable=False, unique=True, index=True
    )
    date: Mapped[dt.date] = mapped_column(
        Date, nullable=False, default=dt.date.today, index=True
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="transactions")

    def __repr__(self) -> str:
        return f"<Transaction receipt={self.receipt_number} amount={self.amount}>"
