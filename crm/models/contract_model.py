import uuid
import datetime as dt
from typing import List, TYPE_CHECKING
from sqlalchemy import (
    TIMESTAMP,
    Date,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from crm.db.base import Base
from crm.schemas.booking_schemas import BookingStatus

if TYPE_CHECKING:
    from crm.models.patient_model import Patient


class Contract(Base):
    """
    Signed treatment contract.

    One row per patient; its existence is the "signed" flag that opens the
    booking calendar. Re-signing updates the row in place.
    """

    __tablename__ = "contracts"

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

    signature_url: Mapped[str] = mapped_column(Text, nullable=False)

    signed_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="contract")

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="contract",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Contract patient_id={self.patient_id} signed_at={self.signed_at}>"


class Booking(Base):
    """Surgery booking for a date and time slot."""

    __tablename__ = "bookings"
    __table_args__ = (
        # One surgery per slot
        UniqueConstraint("date", "time_slot", name="uq_bookings_date_time_slot"),
    )

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

    # A booking cannot exist without the patient's contract
    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    service_type: Mapped[str] = mapped_column(String(150), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time_slot: Mapped[str] = mapped_column(String(5), nullable=False)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=BookingStatus.CONFIRMED.value
    )

    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="bookings")
    contract: Mapped["Contract"] = relationship("Contract", back_populates="bookings")

    def __repr__(self) -> str:
        return f"<Booking id={self.id} date={self.date} slot={self.time_slot}>"
