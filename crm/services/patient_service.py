from typing import Optional
import uuid
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.pagination import PaginatedResponse, PaginationParams, Paginator
from crm.core.storage import FileStorage
from crm.models.patient_model import MedicalIntake, Patient
from crm.schemas.assessment_schemas import AssessmentSaveSchema
from crm.schemas.patient_schemas import (
    PatientCreateSchema,
    PatientResponseSchema,
    PatientUpdateSchema,
)
from crm.repositories.patient_repo import PatientRepository


def duplicate_email_error(email: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "code": "DUPLICATE_EMAIL",
            "message": f"A patient with email {email} already exists",
        },
    )


class PatientService:
    """Service layer for patient and assessment business logic."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorage] = None):
        self.db = db
        self.repo = PatientRepository(self.db)
        self.storage = storage or FileStorage()

    # ============= Patient Services =============
    async def create_patient(self, patient_data: PatientCreateSchema) -> Patient:
        """Register a new patient. Emails are unique across the registry."""
        existing = await self.repo.get_patient_by_email(patient_data.email)
        if existing:
            raise duplicate_email_error(patient_data.email)

        db_patient = Patient(**patient_data.model_dump())
        try:
            return await self.repo.create_patient(db_patient)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise duplicate_email_error(patient_data.email)

    async def get_patient(self, patient_id: uuid.UUID) -> Patient:
        """Get patient by ID."""
        patient = await self.repo.get_patient_by_id(patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )
        return patient

    async def list_patients(
        self, params: PaginationParams, search: Optional[str] = None
    ) -> PaginatedResponse:
        query = self.repo.search_query(search)
        return await Paginator.paginate(self.db, query, params, PatientResponseSchema)

    async def update_patient(
        self, patient_id: uuid.UUID, update_data: PatientUpdateSchema
    ) -> Patient:
        """Update patient."""
        patient = await self.get_patient(patient_id)

        update_dict = update_data.model_dump(exclude_unset=True)

        # Required columns cannot be cleared
        for field in ("first_name", "last_name", "email"):
            if field in update_dict and update_dict[field] is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"{field} cannot be empty",
                )

        if "email" in update_dict and update_dict["email"] != patient.email:
            existing = await self.repo.get_patient_by_email(update_dict["email"])
            if existing and existing.id != patient.id:
                raise duplicate_email_error(update_dict["email"])

        for field, value in update_dict.items():
            setattr(patient, field, value)

        try:
            return await self.repo.update_patient(patient)
        except IntegrityError:
            await self.db.rollback()
            raise duplicate_email_error(update_dict.get("email", patient.email))

    async def delete_patient(self, patient_id: uuid.UUID) -> uuid.UUID:
        """
        Delete a patient with their assessment, contract, bookings and billing.

        Signature and proof files are removed once the rows are gone.
        """
        patient = await self.get_patient(patient_id)
        media_urls = await self.repo.get_media_urls(patient_id)
        await self.repo.delete_patient(patient)
        for url in media_urls:
            await self.storage.delete_url(url)
        return patient_id

    # ============= Assessment Services =============
    async def save_assessment(self, assessment: AssessmentSaveSchema) -> MedicalIntake:
        await self.get_patient(assessment.patient_id)
        return await self.repo.upsert_intake(assessment.patient_id, assessment.data)

    async def get_assessment(self, patient_id: uuid.UUID) -> MedicalIntake:
        intake = await self.repo.get_intake_by_patient(patient_id)
        if not intake:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Assessment not found for this patient",
            )
        return intake
