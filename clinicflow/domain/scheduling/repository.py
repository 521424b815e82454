"""Appointment repository - Database operations for appointments"""

from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment
from .availability import SLOT_FREEING_STATUSES
from .reminder_windows import ReminderKind


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def _live(db: Session):
        return db.query(Appointment).filter(Appointment.deleted_at.is_(None))

    @staticmethod
    def get_appointment(
        db: Session, appointment_id: int, clinic_id: Optional[int] = None
    ) -> Optional[Appointment]:
        query = AppointmentRepository._live(db).filter(Appointment.id == appointment_id)
        if clinic_id is not None:
            query = query.filter(Appointment.clinic_id == clinic_id)
        return query.first()

    @staticmethod
    def get_appointments(
        db: Session,
        clinic_id: int,
        appointment_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        """Live appointments for a clinic ordered by date and token"""
        query = AppointmentRepository._live(db).filter(Appointment.clinic_id == clinic_id)
        if appointment_date is not None:
            query = query.filter(Appointment.appointment_date == appointment_date)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.appointment_date, Appointment.token_number).all()

    @staticmethod
    def booked_times(
        db: Session,
        clinic_id: int,
        appointment_date: date,
        exclude_appointment_id: Optional[int] = None,
    ) -> set[time]:
        """
        Times held by live appointments for clinic+date.
        exclude_appointment_id drops the appointment being edited (self-exclusion).
        """
        query = (
            db.query(Appointment.appointment_time)
            .filter(
                Appointment.clinic_id == clinic_id,
                Appointment.appointment_date == appointment_date,
                Appointment.deleted_at.is_(None),
                Appointment.status.notin_(sorted(SLOT_FREEING_STATUSES)),
            )
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return {row.appointment_time for row in query.all()}

    @staticmethod
    def next_token_number(db: Session, clinic_id: int, appointment_date: date) -> int:
        """1 + highest token ever issued for the clinic/date; deleted rows count so no token is reissued"""
        current = (
            db.query(func.max(Appointment.token_number))
            .filter(
                Appointment.clinic_id == clinic_id,
                Appointment.appointment_date == appointment_date,
            )
            .scalar()
        )
        return (current or 0) + 1

    @staticmethod
    def reminder_candidates(
        db: Session, kind: ReminderKind, first_date: date, last_date: date
    ) -> list[Appointment]:
        """Unsent, eligible, live appointments within a bounded date range"""
        flag = getattr(Appointment, kind.sent_flag)
        return (
            AppointmentRepository._live(db)
            .options(joinedload(Appointment.patient), joinedload(Appointment.clinic))
            .filter(
                flag.is_(False),
                Appointment.appointment_date >= first_date,
                Appointment.appointment_date <= last_date,
                Appointment.status.in_(sorted(kind.eligible_statuses)),
            )
            .order_by(Appointment.appointment_date, Appointment.appointment_time)
            .all()
        )

    @staticmethod
    def mark_reminder_sent(
        db: Session, appointment_id: int, kind: ReminderKind, sent_at: datetime
    ) -> bool:
        """
        Conditional update: only flips the flag if it is still false.
        Returns False when a concurrent run already set it.
        """
        flag = kind.sent_flag
        result = db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, getattr(Appointment, flag).is_(False))
            .values({flag: True, f"{flag}_at": sent_at})
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def mark_confirmation_sent(db: Session, appointment_id: int, sent_at: datetime) -> bool:
        result = db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.confirmation_sms_sent.is_(False))
            .values(confirmation_sms_sent=True, confirmation_sms_sent_at=sent_at)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def soft_delete_appointment(db: Session, appointment: Appointment) -> None:
        appointment.deleted_at = datetime.utcnow()
        db.commit()
