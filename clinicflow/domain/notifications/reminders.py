"""
Reminder runner and appointment notices
Called by the worker cron and the HTTP cron endpoint.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import REMINDER_SEND_DELAY_SECONDS
from ...exceptions import NotFoundError, ValidationError
from ...models import Appointment
from ...shared.clock import clinic_now
from ..scheduling.reminder_windows import ReminderKind, candidate_date_range, select_for_reminder
from ..scheduling.repository import AppointmentRepository
from .dispatcher import DispatchResult, NotificationDispatcher
from .repository import NotificationLogRepository
from .templates import render_for_appointment

logger = logging.getLogger(__name__)

NOTICE_TYPES = ("confirmation", "cancellation", "reschedule")


@dataclass
class ReminderRunSummary:
    sent_24h: int = 0
    sent_1h: int = 0
    errors: list[str] = field(default_factory=list)

    def to_response(self, timestamp: Optional[datetime] = None) -> dict:
        return {
            "success": True,
            "sent24h": self.sent_24h,
            "sent1h": self.sent_1h,
            "errors": self.errors,
            "timestamp": (timestamp or datetime.utcnow()).isoformat(),
        }


def _record(db: Session, appointment: Appointment, message_type: str, result: DispatchResult):
    NotificationLogRepository.create_log(
        db,
        to_phone=appointment.patient.phone,
        message_type=message_type,
        status="sent" if result.success else "failed",
        channel=result.channel,
        error_message=result.error,
        clinic_id=appointment.clinic_id,
        appointment_id=appointment.id,
    )


async def run_reminder_pass(
    db: Session,
    dispatcher: NotificationDispatcher,
    kind: ReminderKind,
    now: datetime,
    delay_seconds: float = REMINDER_SEND_DELAY_SECONDS,
) -> tuple[int, list[str]]:
    """
    Send one kind of reminder to every appointment whose window contains now.

    Sends are sequential with a pause between them. A failure for one
    appointment is recorded in the returned errors and the pass continues.

    Returns:
        (number sent, error messages)
    """
    first_date, last_date = candidate_date_range(now, kind)
    candidates = AppointmentRepository.reminder_candidates(db, kind, first_date, last_date)
    due = select_for_reminder(now, kind, candidates)
    logger.info(f"🔔 {kind.value} reminders: {len(due)} due of {len(candidates)} candidates")

    sent = 0
    errors: list[str] = []

    for index, appointment in enumerate(due):
        if index and delay_seconds:
            await asyncio.sleep(delay_seconds)

        appointment_id = appointment.id
        try:
            message = render_for_appointment(kind.message_type, appointment)
            result = await dispatcher.send(appointment.patient.phone, message)

            if result.success:
                if AppointmentRepository.mark_reminder_sent(db, appointment_id, kind, now):
                    sent += 1
                else:
                    logger.info(
                        f"Appointment {appointment_id} {kind.value} reminder already marked by another run"
                    )
            else:
                errors.append(
                    f"{kind.value} reminder failed for appointment {appointment_id}: {result.error}"
                )

            _record(db, appointment, kind.message_type, result)
        except Exception as e:
            db.rollback()
            logger.error(f"❌ {kind.value} reminder failed for appointment {appointment_id}: {e}")
            errors.append(f"{kind.value} reminder failed for appointment {appointment_id}: {e}")

    return sent, errors


async def run_reminders(
    db: Session,
    dispatcher: Optional[NotificationDispatcher] = None,
    now: Optional[datetime] = None,
    delay_seconds: float = REMINDER_SEND_DELAY_SECONDS,
) -> ReminderRunSummary:
    """Run the 24h pass then the 1h pass against the clinic-local clock"""
    dispatcher = dispatcher or NotificationDispatcher()
    now = now or clinic_now()
    summary = ReminderRunSummary()

    summary.sent_24h, errors_24h = await run_reminder_pass(
        db, dispatcher, ReminderKind.TWENTY_FOUR_HOUR, now, delay_seconds
    )
    summary.sent_1h, errors_1h = await run_reminder_pass(
        db, dispatcher, ReminderKind.ONE_HOUR, now, delay_seconds
    )
    summary.errors = errors_24h + errors_1h

    logger.info(
        f"✅ Reminder run at {now:%Y-%m-%d %H:%M}: sent24h={summary.sent_24h}, "
        f"sent1h={summary.sent_1h}, errors={len(summary.errors)}"
    )
    return summary


async def send_appointment_notice(
    db: Session,
    appointment_id: int,
    notice: str,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> DispatchResult:
    """
    Send a confirmation, cancellation or reschedule message for one appointment.

    Raises:
        ValidationError: Unknown notice type or invalid stored phone number
        NotFoundError: Appointment does not exist
    """
    if notice not in NOTICE_TYPES:
        raise ValidationError(f"Unknown notice type: {notice}")

    appointment = AppointmentRepository.get_appointment(db, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")

    dispatcher = dispatcher or NotificationDispatcher()
    result = await dispatcher.send(
        appointment.patient.phone, render_for_appointment(notice, appointment)
    )
    _record(db, appointment, notice, result)

    if notice == "confirmation" and result.success:
        AppointmentRepository.mark_confirmation_sent(db, appointment_id, clinic_now())

    if result.success:
        logger.info(f"✅ {notice} sent for appointment {appointment_id} via {result.channel}")
    else:
        logger.error(f"❌ {notice} failed for appointment {appointment_id}: {result.error}")
    return result
