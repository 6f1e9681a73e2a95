from datetime import date, datetime
from enum import Enum
import re
from typing import Optional
import uuid
from pydantic import BaseModel, EmailStr, field_validator


class Gender(str, Enum):
    """Gender options offered at registration"""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\s\-()]{5,24}$")


def _clean_name(v: str, field: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{field} cannot be empty")
    v = v.strip()
    if len(v) > 100:
        raise ValueError(f"{field} cannot exceed 100 characters")
    return v


def _clean_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        return None
    if not PHONE_PATTERN.match(v):
        raise ValueError("Invalid phone number format")
    return v


def _clean_dob(v: Optional[date]) -> Optional[date]:
    if v is not None and v > date.today():
        raise ValueError("Date of birth cannot be in the future")
    return v


# ============= Patient Schemas =============
class PatientCreateSchema(BaseModel):
    """Schema for registering a new patient."""

    first_name: str
    last_name: str
    email: EmailStr
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[Gender] = None

    model_config = {"use_enum_values": True}

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: str) -> str:
        return _clean_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: str) -> str:
        return _clean_name(v, "Last name")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)

    @field_validator("dob")
    @classmethod
    def validate_dob(cls, v: Optional[date]) -> Optional[date]:
        return _clean_dob(v)


class PatientUpdateSchema(BaseModel):
    """Schema for editing a patient. All fields are optional."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[Gender] = None

    model_config = {"use_enum_values": True}

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def validate_last_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_name(v, "Last name")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip().lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)

    @field_validator("dob")
    @classmethod
    def validate_dob(cls, v: Optional[date]) -> Optional[date]:
        return _clean_dob(v)


class PatientResponseSchema(BaseModel):
    """Patient as returned by the API."""

    id: uuid.UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PatientDeleteResponseSchema(BaseModel):
    message: str
    patient_id: uuid.UUID
