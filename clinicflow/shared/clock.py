"""Clinic-local wall clock. Appointments are stored as naive local date + time."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from ..config import CLINIC_TIMEZONE


def clinic_now() -> datetime:
    """Current naive datetime in the clinics' operating timezone"""
    return datetime.now(ZoneInfo(CLINIC_TIMEZONE)).replace(tzinfo=None)


def clinic_today() -> date:
    return clinic_now().date()
