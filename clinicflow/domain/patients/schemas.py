"""Patient domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_indian_phone


class PatientCreate(BaseModel):
    """Schema for registering a patient"""

    full_name: str = Field(min_length=1, max_length=255)
    phone: str
    email: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    date_of_birth: Optional[date] = None
    medical_notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_indian_phone(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if v:
            return validate_email(v)
        return v


class PatientUpdate(BaseModel):
    """Schema for updating an existing patient"""

    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    date_of_birth: Optional[date] = None
    medical_notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_indian_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if v:
            return validate_email(v)
        return v


class PatientResponse(BaseModel):
    id: int
    clinic_id: int
    patient_number: str
    full_name: str
    phone: str
    email: Optional[str]
    gender: Optional[str]
    date_of_birth: Optional[date]
    medical_notes: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
