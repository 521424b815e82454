"""
Reminder window matching
Decides which appointments are due a 24h or 1h reminder on this run.

The trigger runs periodically; each window is wider than the trigger period so
no appointment falls between runs, and the per-kind *_sent flag stops the
overlap from producing duplicates.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable


class ReminderKind(str, Enum):
    TWENTY_FOUR_HOUR = "24h"
    ONE_HOUR = "1h"

    @property
    def offset(self) -> timedelta:
        return timedelta(hours=24) if self is ReminderKind.TWENTY_FOUR_HOUR else timedelta(hours=1)

    @property
    def tolerance(self) -> timedelta:
        return timedelta(minutes=60) if self is ReminderKind.TWENTY_FOUR_HOUR else timedelta(minutes=15)

    @property
    def eligible_statuses(self) -> frozenset:
        if self is ReminderKind.TWENTY_FOUR_HOUR:
            return frozenset({"scheduled", "confirmed"})
        return frozenset({"scheduled", "confirmed", "checked_in"})

    @property
    def sent_flag(self) -> str:
        """Appointment attribute recording that this reminder went out"""
        return "reminder_24h_sent" if self is ReminderKind.TWENTY_FOUR_HOUR else "reminder_1h_sent"

    @property
    def message_type(self) -> str:
        return f"reminder_{self.value}"


def appointment_instant(appointment) -> datetime:
    """Naive clinic-local datetime of the appointment start"""
    return datetime.combine(appointment.appointment_date, appointment.appointment_time)


def reminder_window(now: datetime, kind: ReminderKind) -> tuple[datetime, datetime]:
    """Inclusive [target - tolerance, target + tolerance] with target = now + offset"""
    target = now + kind.offset
    return target - kind.tolerance, target + kind.tolerance


def candidate_date_range(now: datetime, kind: ReminderKind) -> tuple[date, date]:
    """
    Dates the store should be queried for before the exact instant check.
    The 24h pass always covers the target date and the day after it.
    """
    start, end = reminder_window(now, kind)
    if kind is ReminderKind.TWENTY_FOUR_HOUR:
        target_date = (now + kind.offset).date()
        return start.date(), max(end.date(), target_date + timedelta(days=1))
    return start.date(), end.date()


def is_due(appointment, now: datetime, kind: ReminderKind) -> bool:
    if getattr(appointment, "deleted_at", None) is not None:
        return False
    if getattr(appointment, kind.sent_flag):
        return False
    if appointment.status not in kind.eligible_statuses:
        return False
    start, end = reminder_window(now, kind)
    return start <= appointment_instant(appointment) <= end


def select_for_reminder(now: datetime, kind: ReminderKind, candidates: Iterable) -> list:
    """Candidates due a `kind` reminder at `now`, in input order. Never mutates flags."""
    return [appointment for appointment in candidates if is_due(appointment, now, kind)]
