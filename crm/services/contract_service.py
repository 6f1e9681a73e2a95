from typing import Optional
import uuid
from fastapi import HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config.config import settings
from crm.core.storage import IMAGE_TYPES, FileStorage
from crm.core.utils import LoggerMixin, utc_now
from crm.models.contract_model import Contract
from crm.repositories.contract_repo import ContractRepository


class ContractService(LoggerMixin):
    """Service layer for the contract signing workflow."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorage] = None):
        super().__init__()
        self.db = db
        self.repo = ContractRepository(self.db)
        self.storage = storage or FileStorage()

    async def sign_contract(self, patient_id: uuid.UUID, signature: UploadFile) -> Contract:
        """
        Store a signature image and mark the patient's contract as signed.

        Re-signing replaces the signature on the existing contract and removes
        the previous image.

        Raises:
            HTTPException: 404 if the patient does not exist
            StorageError: the upload is not a usable image
        """
        patient = await self.repo.get_patient_by_id(patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )

        stored = await self.storage.save_upload(
            signature,
            folder=settings.SIGNATURE_FOLDER,
            prefix=str(patient_id),
            allowed_types=IMAGE_TYPES,
        )

        contract = await self.repo.get_contract_by_patient(patient_id)
        previous_url = None
        if contract is None:
            contract = Contract(patient_id=patient_id, signature_url=stored.url)
        else:
            previous_url = contract.signature_url
            contract.signature_url = stored.url
        contract.signed_at = utc_now()

        try:
            contract = await self.repo.save_contract(contract)
        except Exception:
            await self.db.rollback()
            await self.storage.delete_url(stored.url)
            raise

        if previous_url and previous_url != stored.url:
            await self.storage.delete_url(previous_url)

        self.log_info(
            {
                "event": "contract_signed",
                "patient_id": str(patient_id),
                "resigned": previous_url is not None,
            }
        )
        return contract

    async def get_contract(self, patient_id: uuid.UUID) -> Optional[Contract]:
        """The patient's contract, or None when unsigned."""
        return await self.repo.get_contract_by_patient(patient_id)
