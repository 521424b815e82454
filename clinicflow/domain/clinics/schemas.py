"""Clinic domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_indian_phone, validate_slug


class DayHoursSchema(BaseModel):
    open: Optional[str] = None  # "HH:MM", null when closed
    close: Optional[str] = None


class ClinicSettingsUpdate(BaseModel):
    """Working hours and slot duration, edited by the clinic admin"""

    working_hours: dict[str, DayHoursSchema]
    slot_duration: int = Field(gt=0, le=240)
    allow_online_booking: Optional[bool] = None


class ClinicCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    working_hours: Optional[dict[str, DayHoursSchema]] = None
    slot_duration: int = Field(default=15, gt=0, le=240)
    allow_online_booking: bool = True

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v):
        return validate_slug(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_indian_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        if v:
            return validate_email(v)
        return v


class ClinicResponse(BaseModel):
    id: int
    public_id: str
    name: str
    slug: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    city: Optional[str]
    working_hours: dict
    slot_duration: int
    allow_online_booking: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicClinicResponse(BaseModel):
    """What the public booking page may see"""

    name: str
    slug: str
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    working_hours: dict
    slot_duration: int
    allow_online_booking: bool

    class Config:
        from_attributes = True
