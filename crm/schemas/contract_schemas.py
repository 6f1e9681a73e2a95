from datetime import datetime
from typing import Optional
import uuid
from pydantic import BaseModel


class ContractResponseSchema(BaseModel):
    """Signed contract record."""

    id: uuid.UUID
    patient_id: uuid.UUID
    signature_url: str
    signed_at: datetime

    model_config = {"from_attributes": True}


class ContractStatusSchema(BaseModel):
    """Whether the patient has signed, with the contract when one exists."""

    signed: bool
    contract: Optional[ContractResponseSchema] = None
