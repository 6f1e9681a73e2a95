from typing import Any, Dict, List, Optional
import uuid
from sqlalchemy import Select, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from crm.models.patient_model import Patient, MedicalIntake
from crm.models.contract_model import Booking, Contract
from crm.models.billing_model import TreatmentPlan, Transaction


class PatientRepository:
    """Repository layer for patient and assessment data access."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============= Patient Operations =============
    async def get_patient_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        """Get patient by ID."""
        result = await self.db.execute(select(Patient).where(Patient.id == patient_id))
        return result.scalars().first()

    async def get_patient_by_email(self, email: str) -> Optional[Patient]:
        """Get patient by (lower-cased) email."""
        result = await self.db.execute(
            select(Patient).where(Patient.email == email.strip().lower())
        )
        return result.scalars().first()

    def search_query(self, search: Optional[str] = None) -> Select:
        """
        Build the patient listing query, newest first.

        ``search`` is a case-insensitive substring matched against first name,
        last name, email and phone.
        """
        query = select(Patient)

        if search and search.strip():
            escaped = (
                search.strip()
                .replace("\\", "\\\\")
                .replace("%", "\\%")
                .replace("_", "\\_")
            )
            pattern = f"%{escaped}%"
            query = query.where(
                or_(
                    Patient.first_name.ilike(pattern, escape="\\"),
                    Patient.last_name.ilike(pattern, escape="\\"),
                    Patient.email.ilike(pattern, escape="\\"),
                    Patient.phone.ilike(pattern, escape="\\"),
                )
            )

        return query.order_by(Patient.created_at.desc(), Patient.last_name.asc())

    async def create_patient(self, patient: Patient) -> Patient:
        """Create a new patient."""
        self.db.add(patient)
        await self.db.commit()
        await self.db.refresh(patient)
        return patient

    async def update_patient(self, patient: Patient) -> Patient:
        """Persist changes to a patient."""
        self.db.add(patient)
        await self.db.commit()
        await self.db.refresh(patient)
        return patient

    async def get_media_urls(self, patient_id: uuid.UUID) -> List[str]:
        """Signature and proof-of-payment URLs stored for a patient."""
        signatures = await self.db.execute(
            select(Contract.signature_url).where(Contract.patient_id == patient_id)
        )
        proofs = await self.db.execute(
            select(Transaction.proof_url).where(
                Transaction.patient_id == patient_id,
                Transaction.proof_url.is_not(None),
            )
        )
        return [url for url in [*signatures.scalars(), *proofs.scalars()] if url]

    async def delete_patient(self, patient: Patient) -> None:
        """
        Hard delete a patient and every dependent record in one transaction.

        Children are removed explicitly so the cascade holds on backends that
        do not enforce ON DELETE CASCADE.
        """
        patient_id = patient.id
        try:
            await self.db.execute(delete(Transaction).where(Transaction.patient_id == patient_id))
            await self.db.execute(delete(Booking).where(Booking.patient_id == patient_id))
            await self.db.execute(delete(Contract).where(Contract.patient_id == patient_id))
            await self.db.execute(
                delete(TreatmentPlan).where(TreatmentPlan.patient_id == patient_id)
            )
            await self.db.execute(
                delete(MedicalIntake).where(MedicalIntake.patient_id == patient_id)
            )
            await self.db.execute(delete(Patient).where(Patient.id == patient_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # ============= Medical Intake Operations =============
    async def get_intake_by_patient(self, patient_id: uuid.UUID) -> Optional[MedicalIntake]:
        """Get a patient's medical intake document."""
        result = await self.db.execute(
            select(MedicalIntake).where(MedicalIntake.patient_id == patient_id)
        )
        return result.scalars().first()

    async def upsert_intake(
        self, patient_id: uuid.UUID, data: Dict[str, Any]
    ) -> MedicalIntake:
        """Create the intake document or replace the stored answers."""
        intake = await self.get_intake_by_patient(patient_id)
        if intake is None:
            intake = MedicalIntake(patient_id=patient_id, data=data)
        else:
            intake.data = data
        self.db.add(intake)
        await self.db.commit()
        await self.db.refresh(intake)
        return intake
