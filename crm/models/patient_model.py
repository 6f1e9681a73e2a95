import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from sqlalchemy import (
    JSON,
    TIMESTAMP,
    Date,
    ForeignKey,
    String,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from crm.db.base import Base

if TYPE_CHECKING:
    from crm.models.contract_model import Booking, Contract
    from crm.models.billing_model import TreatmentPlan, Transaction


# Plain JSON everywhere, JSONB on PostgreSQL
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Patient(Base):
    """Registered clinic patient."""

    __tablename__ = "patients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        index=True,
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    dob: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Dependent records are removed by the database (ON DELETE CASCADE)
    # and explicitly by PatientRepository.delete_patient.
    medical_intake: Mapped[Optional["MedicalIntake"]] = relationship(
        "MedicalIntake",
        back_populates="patient",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    contract: Mapped[Optional["Contract"]] = relationship(
        "Contract",
        back_populates="patient",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    treatment_plan: Mapped[Optional["TreatmentPlan"]] = relationship(
        "TreatmentPlan",
        back_populates="patient",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    transactions: Mapped[List["Transaction"]] = relationship(
        "Transaction",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Patient id={self.id} name={self.full_name} email={self.email}>"


class MedicalIntake(Base):
    """Medical history questionnaire answers, one document per patient."""

    __tablename__ = "medical_intakes"

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

    data: Mapped[Dict[str, Any]] = mapped_column(JSONDocument, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="medical_intake")

    def __repr__(self) -> str:
        return f"<MedicalIntake patient_id={self.patient_id}>"
