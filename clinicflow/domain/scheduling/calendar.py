"""
Working-hours calendar
Turns a clinic's weekly hours and slot duration into candidate slot start times
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Union

from ...exceptions import ValidationError

DAYS_OF_WEEK = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def parse_time_of_day(value: Union[str, time, None]) -> time:
    """
    Parse "HH:MM" / "HH:MM:SS" (or pass through a time), truncated to the minute.

    Raises:
        ValidationError: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if not isinstance(value, str):
        raise ValidationError(f"Invalid time of day: {value!r}")

    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            parsed = datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
        return time(parsed.hour, parsed.minute)

    raise ValidationError(f"Invalid time of day: {value!r}")


def format_slot(slot: time) -> str:
    return f"{slot.hour:02d}:{slot.minute:02d}"


def weekday_name(day: date) -> str:
    """Map a local calendar date to "monday".."sunday" """
    return DAYS_OF_WEEK[day.weekday()]


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def generate_slots(opens: time, closes: time, duration_minutes: int) -> list[time]:
    """
    Slot start times in the half-open interval [opens, closes).

    A slot starting exactly at `closes` is excluded; opens >= closes is a
    closed day and yields an empty list.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationError("Slot duration must be a whole number of minutes")
    if duration_minutes <= 0:
        raise ValidationError("Slot duration must be positive")

    start, end = _minutes(opens), _minutes(closes)
    return [time(m // 60, m % 60) for m in range(start, end, duration_minutes)]


@dataclass(frozen=True)
class DayHours:
    opens: Optional[time] = None
    closes: Optional[time] = None

    @property
    def is_open(self) -> bool:
        return self.opens is not None and self.closes is not None and self.opens < self.closes


@dataclass(frozen=True)
class ClinicSchedule:
    """Weekly working hours plus slot duration for one clinic"""

    slot_duration: int
    days: dict[str, DayHours] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, working_hours: Optional[dict], slot_duration: int) -> "ClinicSchedule":
        """
        Build from the stored JSON shape:
        {"monday": {"open": "09:00", "close": "18:00"}, "sunday": {"open": null, "close": null}}
        """
        days = {}
        for day, hours in (working_hours or {}).items():
            key = day.lower()
            if key not in DAYS_OF_WEEK:
                raise ValidationError(f"Unknown weekday: {day}")
            hours = hours or {}
            opens, closes = hours.get("open"), hours.get("close")
            days[key] = DayHours(
                opens=parse_time_of_day(opens) if opens else None,
                closes=parse_time_of_day(closes) if closes else None,
            )
        return cls(slot_duration=slot_duration, days=days)

    def validate(self) -> "ClinicSchedule":
        """Enforce settings invariants before they are saved"""
        if isinstance(self.slot_duration, bool) or not isinstance(self.slot_duration, int):
            raise ValidationError("Slot duration must be a whole number of minutes")
        if self.slot_duration <= 0:
            raise ValidationError("Slot duration must be positive")
        for day, hours in self.days.items():
            if (hours.opens is None) != (hours.closes is None):
                raise ValidationError(f"{day.title()}: set both opening and closing time, or neither")
            if hours.opens is not None and hours.opens >= hours.closes:
                raise ValidationError(f"{day.title()}: opening time must be before closing time")
        return self

    def hours_for(self, day: date) -> DayHours:
        return self.days.get(weekday_name(day), DayHours())

    def slots_for(self, day: date) -> list[time]:
        hours = self.hours_for(day)
        if not hours.is_open:
            return []
        return generate_slots(hours.opens, hours.closes, self.slot_duration)

    def to_settings(self) -> dict:
        return {
            day: {
                "open": format_slot(hours.opens) if hours.opens else None,
                "close": format_slot(hours.closes) if hours.closes else None,
            }
            for day, hours in self.days.items()
        }


def schedule_for(clinic) -> ClinicSchedule:
    """Parse a clinic's stored settings; read-only view used by slot generation"""
    return ClinicSchedule.from_settings(clinic.working_hours, clinic.slot_duration)
