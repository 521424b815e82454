"""Tests for working-hours slot generation."""

from datetime import date, time

import pytest

from clinicflow.domain.scheduling.calendar import (
    ClinicSchedule,
    format_slot,
    generate_slots,
    parse_time_of_day,
    weekday_name,
)
from clinicflow.exceptions import ValidationError
from clinicflow.models import default_working_hours


class TestGenerateSlots:
    """generate_slots(opens, closes, duration)"""

    def test_example_quarter_hours(self):
        """09:00-09:45 in 15 minute steps gives three slots."""
        slots = generate_slots(time(9, 0), time(9, 45), 15)

        assert slots == [time(9, 0), time(9, 15), time(9, 30)]

    def test_slot_at_closing_time_is_excluded(self):
        slots = generate_slots(time(9, 0), time(10, 0), 30)

        assert slots == [time(9, 0), time(9, 30)]
        assert time(10, 0) not in slots

    def test_duration_not_dividing_span(self):
        """The last slot may start less than one duration before closing."""
        slots = generate_slots(time(9, 0), time(10, 45), 30)

        assert slots == [time(9, 0), time(9, 30), time(10, 0), time(10, 30)]

    @pytest.mark.parametrize(
        "opens,closes",
        [(time(10, 0), time(10, 0)), (time(18, 0), time(9, 0))],
    )
    def test_closed_interval_yields_nothing(self, opens, closes):
        assert generate_slots(opens, closes, 15) == []

    def test_every_slot_starts_inside_hours_and_steps_evenly(self):
        opens, closes, duration = time(8, 10), time(13, 5), 20
        slots = generate_slots(opens, closes, duration)

        minutes = [s.hour * 60 + s.minute for s in slots]
        assert minutes[0] == 8 * 60 + 10
        assert all(opens <= s < closes for s in slots)
        assert all(b - a == duration for a, b in zip(minutes, minutes[1:]))

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration_rejected(self, duration):
        with pytest.raises(ValidationError):
            generate_slots(time(9, 0), time(10, 0), duration)

    def test_non_integer_duration_rejected(self):
        with pytest.raises(ValidationError):
            generate_slots(time(9, 0), time(10, 0), True)


class TestParseTimeOfDay:
    def test_hh_mm(self):
        assert parse_time_of_day("09:30") == time(9, 30)

    def test_seconds_are_dropped(self):
        assert parse_time_of_day("09:30:45") == time(9, 30)
        assert parse_time_of_day(time(9, 30, 45)) == time(9, 30)

    @pytest.mark.parametrize("value", ["9.30", "25:00", "", None])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_time_of_day(value)

    def test_format_slot(self):
        assert format_slot(time(7, 5)) == "07:05"


class TestClinicSchedule:
    def test_default_hours(self):
        schedule = ClinicSchedule.from_settings(default_working_hours(), 15)
        monday = date(2026, 10, 19)
        sunday = date(2026, 10, 25)

        assert weekday_name(monday) == "monday"
        slots = schedule.slots_for(monday)
        assert slots[0] == time(9, 0)
        assert slots[-1] == time(17, 45)
        assert len(slots) == 36
        assert schedule.slots_for(sunday) == []

    def test_missing_day_is_closed(self):
        schedule = ClinicSchedule.from_settings({"monday": {"open": "10:00", "close": "11:00"}}, 30)

        assert schedule.slots_for(date(2026, 10, 20)) == []

    def test_validate_rejects_open_after_close(self):
        schedule = ClinicSchedule.from_settings({"monday": {"open": "18:00", "close": "09:00"}}, 15)

        with pytest.raises(ValidationError):
            schedule.validate()

    def test_validate_rejects_half_set_day(self):
        schedule = ClinicSchedule.from_settings({"friday": {"open": "09:00", "close": None}}, 15)

        with pytest.raises(ValidationError):
            schedule.validate()

    def test_unknown_weekday(self):
        with pytest.raises(ValidationError):
            ClinicSchedule.from_settings({"funday": {"open": "09:00", "close": "10:00"}}, 15)

    def test_round_trip_settings(self):
        hours = {"monday": {"open": "09:00", "close": "13:00"}, "sunday": {"open": None, "close": None}}

        assert ClinicSchedule.from_settings(hours, 15).to_settings() == hours
