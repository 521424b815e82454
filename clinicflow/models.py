import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment status workflow:
# scheduled → confirmed → checked_in → in_progress → completed
# any pre-consultation status → cancelled | no_show
APPOINTMENT_STATUSES = (
    "scheduled",
    "confirmed",
    "checked_in",
    "in_progress",
    "completed",
    "cancelled",
    "no_show",
)
BOOKING_SOURCES = ("web", "whatsapp", "phone", "walk_in")

# Kept in sync with availability.SLOT_FREEING_STATUSES
ACTIVE_SLOT_CONDITION = "deleted_at IS NULL AND status NOT IN ('cancelled', 'no_show')"
LIVE_ROW_CONDITION = "deleted_at IS NULL"


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def default_working_hours():
    """Mon-Sat 09:00-18:00, Sunday closed"""
    hours = {
        day: {"open": "09:00", "close": "18:00"}
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
    }
    hours["sunday"] = {"open": None, "close": None}
    return hours


class Clinic(Base):
    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)

    # Settings edited by the clinic admin; read-only to slot/availability code
    working_hours = Column(JSON, nullable=False, default=default_working_hours)
    slot_duration = Column(Integer, nullable=False, default=15)  # minutes
    allow_online_booking = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime, nullable=True)

    patients = relationship("Patient", back_populates="clinic")
    appointments = relationship("Appointment", back_populates="clinic")


class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = (
        Index(
            "uq_patients_clinic_phone",
            "clinic_id",
            "phone",
            unique=True,
            sqlite_where=text(LIVE_ROW_CONDITION),
            postgresql_where=text(LIVE_ROW_CONDITION),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    patient_number = Column(String(20), nullable=False)  # e.g. P3F9A21C
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)  # E.164, +91XXXXXXXXXX
    email = Column(String(255), nullable=True)
    gender = Column(String(10), nullable=True)  # male, female, other
    date_of_birth = Column(Date, nullable=True)
    medical_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime, nullable=True)

    clinic = relationship("Clinic", back_populates="patients")
    appointments = relationship("Appointment", back_populates="patient")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one live appointment per slot; this index is the booking race guard
        Index(
            "uq_appointments_active_slot",
            "clinic_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text(ACTIVE_SLOT_CONDITION),
            postgresql_where=text(ACTIVE_SLOT_CONDITION),
        ),
        Index(
            "uq_appointments_token",
            "clinic_id",
            "appointment_date",
            "token_number",
            unique=True,
            sqlite_where=text(LIVE_ROW_CONDITION),
            postgresql_where=text(LIVE_ROW_CONDITION),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Slot (clinic local time, minute precision)
    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=15)  # minutes
    token_number = Column(Integer, nullable=False)  # per clinic per date, 1-based

    status = Column(String(20), default="scheduled", nullable=False, index=True)
    booking_source = Column(String(20), default="web", nullable=False)
    booking_notes = Column(Text, nullable=True)

    # Lifecycle timestamps
    checked_in_at = Column(DateTime, nullable=True)
    consultation_started_at = Column(DateTime, nullable=True)
    consultation_ended_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Notification flags; each (appointment, kind) fires at most once
    reminder_24h_sent = Column(Boolean, default=False, nullable=False)
    reminder_24h_sent_at = Column(DateTime, nullable=True)
    reminder_1h_sent = Column(Boolean, default=False, nullable=False)
    reminder_1h_sent_at = Column(DateTime, nullable=True)
    confirmation_sms_sent = Column(Boolean, default=False, nullable=False)
    confirmation_sms_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime, nullable=True)

    clinic = relationship("Clinic", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")


class NotificationLog(Base):
    """Track notifications sent to patients (written by callers of the dispatcher)"""

    __tablename__ = "notification_logs"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)

    # Message details
    to_phone = Column(String(20), nullable=False)
    message_type = Column(String(50), nullable=False)  # confirmation, reminder_24h, ...

    # Dispatch outcome
    channel = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False)  # sent, failed
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment")
