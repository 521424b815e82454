"""Scheduling service - Business logic for slots, bookings and appointment status"""

import logging
from datetime import date, datetime, time
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, SlotConflictError, ValidationError
from ...models import Appointment, Clinic, Patient
from ...shared.clock import clinic_now, clinic_today
from ..clinics.repository import ClinicRepository
from ..patients.repository import PatientRepository
from .availability import available_slots, is_slot_free, slot_key
from .calendar import format_slot, parse_time_of_day, schedule_for, weekday_name
from .repository import AppointmentRepository
from .schemas import PatientLookup, PublicBookingRequest, RescheduleRequest

logger = logging.getLogger(__name__)

# Insert attempts when a concurrent booking takes the token we computed
TOKEN_ASSIGN_ATTEMPTS = 5

ALLOWED_TRANSITIONS = {
    "scheduled": frozenset({"confirmed", "checked_in", "cancelled", "no_show"}),
    "confirmed": frozenset({"checked_in", "cancelled", "no_show"}),
    "checked_in": frozenset({"in_progress", "cancelled", "no_show"}),
    "in_progress": frozenset({"completed"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
    "no_show": frozenset(),
}

STATUS_TIMESTAMPS = {
    "checked_in": "checked_in_at",
    "in_progress": "consultation_started_at",
    "completed": "consultation_ended_at",
    "cancelled": "cancelled_at",
}

RESCHEDULABLE_STATUSES = frozenset({"scheduled", "confirmed"})


class BookingService:
    """Service layer for slot lookup, booking and the appointment lifecycle"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.patients = PatientRepository()
        self.clinics = ClinicRepository()

    # Clinic lookups

    def _get_clinic(self, clinic_id: int) -> Clinic:
        clinic = self.clinics.get_clinic_by_id(self.db, clinic_id)
        if not clinic:
            raise NotFoundError("Clinic not found")
        return clinic

    def _get_clinic_by_slug(self, slug: str) -> Clinic:
        clinic = self.clinics.get_clinic_by_slug(self.db, slug)
        if not clinic:
            raise NotFoundError("Clinic not found")
        return clinic

    # Slots

    def get_slots(
        self,
        clinic_id: int,
        appointment_date: date,
        exclude_appointment_id: Optional[int] = None,
    ) -> dict:
        """Calendar slots for the date, the booked ones, and what is left"""
        clinic = self._get_clinic(clinic_id)
        return self._slots_for_clinic(clinic, appointment_date, exclude_appointment_id)

    def get_public_slots(self, slug: str, appointment_date: date) -> dict:
        clinic = self._get_clinic_by_slug(slug)
        return self._slots_for_clinic(clinic, appointment_date)

    def _slots_for_clinic(
        self, clinic: Clinic, appointment_date: date, exclude_appointment_id: Optional[int] = None
    ) -> dict:
        all_slots = schedule_for(clinic).slots_for(appointment_date)
        booked = self.repo.booked_times(
            self.db, clinic.id, appointment_date, exclude_appointment_id=exclude_appointment_id
        )
        return {
            "appointment_date": appointment_date,
            "slot_duration": clinic.slot_duration,
            "slots": [format_slot(s) for s in all_slots],
            "booked": sorted(format_slot(t) for t in booked),
            "available": [format_slot(s) for s in available_slots(all_slots, booked)],
        }

    def _validate_slot(
        self,
        clinic: Clinic,
        appointment_date: date,
        appointment_time: Union[str, time],
        today: Optional[date] = None,
    ) -> time:
        """
        Check the requested date/time against the clinic calendar.

        Returns:
            The slot start time truncated to the minute

        Raises:
            ValidationError: Past date, closed day, or a time that is not a slot start
        """
        today = today or clinic_today()
        if appointment_date < today:
            raise ValidationError("Cannot book an appointment for a past date")

        slot = parse_time_of_day(appointment_time)
        slots = schedule_for(clinic).slots_for(appointment_date)
        if not slots:
            raise ValidationError(
                f"Clinic is closed on {weekday_name(appointment_date).title()}"
            )
        if slot_key(slot) not in {slot_key(s) for s in slots}:
            raise ValidationError(f"{format_slot(slot)} is not an available slot start")
        return slot

    # Booking

    def _resolve_patient(self, clinic_id: int, lookup: PatientLookup) -> Patient:
        """Existing patient by id or phone, else a new row flushed into the open transaction"""
        if lookup.existing_id is not None:
            patient = self.patients.get_patient_by_id(
                self.db, lookup.existing_id, clinic_id=clinic_id
            )
            if not patient:
                raise NotFoundError("Patient not found")
            return patient

        name = (lookup.name or "").strip()
        if not name or not lookup.phone:
            raise ValidationError("Patient name and phone number are required")

        patient = self.patients.find_by_phone(self.db, clinic_id, lookup.phone)
        if patient:
            return patient

        return self.patients.create_patient(
            self.db,
            clinic_id,
            commit=False,
            full_name=name,
            phone=lookup.phone,
            email=lookup.email,
        )

    def book(
        self,
        clinic_id: int,
        patient_lookup: PatientLookup,
        appointment_date: date,
        appointment_time: Union[str, time],
        notes: Optional[str] = None,
        booking_source: str = "web",
        today: Optional[date] = None,
    ) -> Appointment:
        """
        Create (patient if needed +) appointment in one transaction and assign
        the day's next token number.

        The partial unique indexes on (clinic, date, time) and (clinic, date,
        token) are the real concurrency guards; the booked_times check only
        fails fast for the common case.

        Raises:
            ValidationError: Bad date/time or incomplete patient details
            NotFoundError: Unknown clinic or patient id
            SlotConflictError: Slot already held by a live appointment
        """
        clinic = self._get_clinic(clinic_id)
        slot = self._validate_slot(clinic, appointment_date, appointment_time, today)

        if not is_slot_free(slot, self.repo.booked_times(self.db, clinic.id, appointment_date)):
            raise SlotConflictError(f"The {format_slot(slot)} slot is already booked")

        for attempt in range(1, TOKEN_ASSIGN_ATTEMPTS + 1):
            try:
                patient = self._resolve_patient(clinic.id, patient_lookup)
                appointment = Appointment(
                    clinic_id=clinic.id,
                    patient_id=patient.id,
                    appointment_date=appointment_date,
                    appointment_time=slot,
                    duration=clinic.slot_duration,
                    token_number=self.repo.next_token_number(self.db, clinic.id, appointment_date),
                    status="scheduled",
                    booking_source=booking_source,
                    booking_notes=notes,
                )
                self.db.add(appointment)
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                booked = self.repo.booked_times(self.db, clinic.id, appointment_date)
                if not is_slot_free(slot, booked):
                    logger.warning(
                        f"⚠️ Slot conflict for clinic {clinic.id} on {appointment_date} {format_slot(slot)}"
                    )
                    raise SlotConflictError(f"The {format_slot(slot)} slot is already booked") from e
                logger.warning(
                    f"⚠️ Token collision for clinic {clinic.id} on {appointment_date} "
                    f"(attempt {attempt}/{TOKEN_ASSIGN_ATTEMPTS}), retrying"
                )
                continue
            except Exception:
                self.db.rollback()
                raise

            self.db.refresh(appointment)
            logger.info(
                f"📅 Appointment {appointment.id} booked: clinic={clinic.id}, "
                f"{appointment_date} {format_slot(slot)}, token #{appointment.token_number}"
            )
            return appointment

        logger.error(f"❌ Could not assign a token for clinic {clinic.id} on {appointment_date}")
        raise SlotConflictError("The clinic is busy right now, please try booking again")

    def book_public(
        self, slug: str, data: PublicBookingRequest, today: Optional[date] = None
    ) -> Appointment:
        """Online booking from the clinic's public page"""
        clinic = self._get_clinic_by_slug(slug)
        if not clinic.allow_online_booking:
            raise ValidationError("This clinic does not accept online bookings")

        lookup = PatientLookup(name=data.name, phone=data.phone, email=data.email)
        return self.book(
            clinic.id,
            lookup,
            data.appointment_date,
            data.appointment_time,
            notes=data.notes,
            booking_source="web",
            today=today,
        )

    # Appointment lifecycle

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_appointments(
        self,
        clinic_id: int,
        appointment_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        self._get_clinic(clinic_id)
        return self.repo.get_appointments(self.db, clinic_id, appointment_date, status)

    def update_status(
        self,
        appointment_id: int,
        status: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Move an appointment along the status workflow, stamping the matching time"""
        appointment = self.get_appointment(appointment_id)
        current = appointment.status

        if status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            raise ValidationError(f"Cannot change status from {current} to {status}")

        appointment.status = status
        stamp = STATUS_TIMESTAMPS.get(status)
        if stamp:
            setattr(appointment, stamp, now or clinic_now())
        if status == "cancelled":
            appointment.cancellation_reason = reason

        self.db.commit()
        self.db.refresh(appointment)
        logger.info(f"🔄 Appointment {appointment.id}: {current} → {status}")
        return appointment

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        return self.update_status(appointment_id, "cancelled", reason=reason)

    def reschedule(
        self, appointment_id: int, data: RescheduleRequest, today: Optional[date] = None
    ) -> Appointment:
        """
        Move an appointment to another slot and/or edit its notes.
        A move re-arms both reminders and gives a new token when the date changes.

        Raises:
            ValidationError: Status does not allow a move, or bad date/time
            SlotConflictError: Target slot held by another live appointment
        """
        for attempt in range(1, TOKEN_ASSIGN_ATTEMPTS + 1):
            appointment = self.get_appointment(appointment_id)

            new_date = data.appointment_date or appointment.appointment_date
            new_time = data.appointment_time or appointment.appointment_time
            date_changed = new_date != appointment.appointment_date
            moved = date_changed or slot_key(new_time) != slot_key(appointment.appointment_time)

            if moved:
                if appointment.status not in RESCHEDULABLE_STATUSES:
                    raise ValidationError(
                        f"A {appointment.status} appointment cannot be rescheduled"
                    )

                clinic = appointment.clinic
                slot = self._validate_slot(clinic, new_date, new_time, today)
                booked = self.repo.booked_times(
                    self.db, clinic.id, new_date, exclude_appointment_id=appointment.id
                )
                if not is_slot_free(slot, booked):
                    raise SlotConflictError(f"The {format_slot(slot)} slot is already booked")

                if date_changed:
                    appointment.token_number = self.repo.next_token_number(
                        self.db, clinic.id, new_date
                    )
                appointment.appointment_date = new_date
                appointment.appointment_time = slot
                appointment.reminder_24h_sent = False
                appointment.reminder_24h_sent_at = None
                appointment.reminder_1h_sent = False
                appointment.reminder_1h_sent_at = None

            if data.notes is not None:
                appointment.booking_notes = data.notes

            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                # Only a date change takes a new token; a free slot means the token collided
                token_collision = date_changed and is_slot_free(
                    slot,
                    self.repo.booked_times(
                        self.db, clinic.id, new_date, exclude_appointment_id=appointment_id
                    ),
                )
                if not token_collision:
                    raise SlotConflictError("That slot was just booked by someone else") from e
                logger.warning(
                    f"⚠️ Token collision moving appointment {appointment_id} to {new_date} "
                    f"(attempt {attempt}/{TOKEN_ASSIGN_ATTEMPTS}), retrying"
                )
                continue

            self.db.refresh(appointment)
            if moved:
                logger.info(
                    f"📆 Appointment {appointment.id} rescheduled to "
                    f"{new_date} {format_slot(appointment.appointment_time)}"
                )
            return appointment

        logger.error(f"❌ Could not assign a token moving appointment {appointment_id} to {new_date}")
        raise SlotConflictError("The clinic is busy right now, please try rescheduling again")

    def delete_appointment(self, appointment_id: int) -> dict:
        """Soft delete; the slot is freed and the row stays for history"""
        appointment = self.get_appointment(appointment_id)
        self.repo.soft_delete_appointment(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} soft-deleted")
        return {"message": "Appointment deleted"}
