"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_indian_phone

BookingSource = Literal["web", "whatsapp", "phone", "walk_in"]
AppointmentStatus = Literal[
    "scheduled", "confirmed", "checked_in", "in_progress", "completed", "cancelled", "no_show"
]


class PatientLookup(BaseModel):
    """Identifies the patient for a booking: an existing record, or name + phone"""

    existing_id: Optional[int] = None
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None

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


class BookingRequest(BaseModel):
    """Staff-side booking (reception desk, phone, walk-in)"""

    patient: PatientLookup
    appointment_date: date
    appointment_time: time
    notes: Optional[str] = None
    booking_source: BookingSource = "web"


class PublicBookingRequest(BaseModel):
    """Online booking from the clinic's public page; always a new-or-known phone"""

    name: str = Field(min_length=1, max_length=255)
    phone: str
    email: Optional[str] = None
    appointment_date: date
    appointment_time: time
    notes: Optional[str] = None

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


class RescheduleRequest(BaseModel):
    appointment_date: Optional[date] = None
    appointment_time: Optional[time] = None
    notes: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = None


class SlotResponse(BaseModel):
    appointment_date: date
    slot_duration: int
    slots: list[str]
    booked: list[str]
    available: list[str]


class AppointmentPatient(BaseModel):
    id: int
    patient_number: str
    full_name: str
    phone: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    clinic_id: int
    patient_id: int
    appointment_date: date
    appointment_time: time
    duration: int
    token_number: int
    status: str
    booking_source: str
    booking_notes: Optional[str]
    checked_in_at: Optional[datetime] = None
    consultation_started_at: Optional[datetime] = None
    consultation_ended_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    reminder_24h_sent: bool
    reminder_1h_sent: bool
    confirmation_sms_sent: bool
    patient: Optional[AppointmentPatient] = None

    class Config:
        from_attributes = True


class PublicBookingResponse(BaseModel):
    """What the patient sees after booking online"""

    appointment_id: int
    token_number: int
    appointment_date: date
    appointment_time: str
    clinic_name: str
    message: str
