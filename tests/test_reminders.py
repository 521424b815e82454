"""Tests for the reminder runner and appointment notices."""

from datetime import date, datetime, time
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from clinicflow.domain.notifications.dispatcher import DispatchResult
from clinicflow.domain.notifications.reminders import (
    ReminderRunSummary,
    run_reminder_pass,
    run_reminders,
    send_appointment_notice,
)
from clinicflow.domain.scheduling.reminder_windows import ReminderKind
from clinicflow.domain.scheduling.repository import AppointmentRepository
from clinicflow.exceptions import NotFoundError, ValidationError
from clinicflow.models import NotificationLog

NOW = datetime(2026, 10, 19, 10, 0)
TODAY = NOW.date()
TOMORROW = date(2026, 10, 20)


def scripted_dispatcher(*outcomes):
    """Stand-in dispatcher whose send() returns or raises the given outcomes in order."""
    return SimpleNamespace(send=AsyncMock(side_effect=list(outcomes)))


def sent(channel="simulation"):
    return DispatchResult(success=True, channel=channel)


class TestRunReminders:
    @pytest.mark.asyncio
    async def test_sends_both_kinds_and_sets_flags(self, db, make_appointment, simulation_dispatcher):
        tomorrow = make_appointment(TOMORROW, time(10, 30))
        soon = make_appointment(TODAY, time(11, 0))
        later = make_appointment(date(2026, 10, 22), time(10, 0))

        summary = await run_reminders(db, simulation_dispatcher, now=NOW, delay_seconds=0)

        assert (summary.sent_24h, summary.sent_1h, summary.errors) == (1, 1, [])
        db.refresh(tomorrow)
        db.refresh(soon)
        db.refresh(later)
        assert tomorrow.reminder_24h_sent is True
        assert tomorrow.reminder_24h_sent_at == NOW
        assert tomorrow.reminder_1h_sent is False
        assert soon.reminder_1h_sent is True
        assert later.reminder_24h_sent is False

        logs = db.query(NotificationLog).order_by(NotificationLog.id).all()
        assert [(log.message_type, log.status, log.channel) for log in logs] == [
            ("reminder_24h", "sent", "simulation"),
            ("reminder_1h", "sent", "simulation"),
        ]

    @pytest.mark.asyncio
    async def test_second_run_sends_nothing(self, db, make_appointment, simulation_dispatcher):
        make_appointment(TOMORROW, time(10, 0))
        make_appointment(TODAY, time(11, 0))

        await run_reminders(db, simulation_dispatcher, now=NOW, delay_seconds=0)
        again = await run_reminders(db, simulation_dispatcher, now=NOW, delay_seconds=0)

        assert (again.sent_24h, again.sent_1h, again.errors) == (0, 0, [])

    @pytest.mark.asyncio
    async def test_failed_dispatch_is_reported_and_run_continues(self, db, make_appointment):
        failing = make_appointment(TOMORROW, time(10, 0))
        passing = make_appointment(TOMORROW, time(10, 15))
        dispatcher = scripted_dispatcher(
            DispatchResult(success=False, error="msg91_sms: HTTP 500: down"), sent()
        )

        summary = await run_reminders(db, dispatcher, now=NOW, delay_seconds=0)

        assert summary.sent_24h == 1
        assert summary.errors == [
            f"24h reminder failed for appointment {failing.id}: msg91_sms: HTTP 500: down"
        ]
        db.refresh(failing)
        db.refresh(passing)
        assert failing.reminder_24h_sent is False
        assert passing.reminder_24h_sent is True
        failed_log = db.query(NotificationLog).filter(NotificationLog.status == "failed").one()
        assert failed_log.appointment_id == failing.id

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_isolated(self, db, make_appointment):
        broken = make_appointment(TOMORROW, time(10, 0))
        fine = make_appointment(TOMORROW, time(10, 15))
        dispatcher = scripted_dispatcher(RuntimeError("connection reset"), sent())

        summary = await run_reminders(db, dispatcher, now=NOW, delay_seconds=0)

        assert summary.sent_24h == 1
        assert len(summary.errors) == 1
        assert f"appointment {broken.id}" in summary.errors[0]
        assert "connection reset" in summary.errors[0]
        db.refresh(fine)
        assert fine.reminder_24h_sent is True

    @pytest.mark.asyncio
    async def test_failed_reminder_is_retried_next_run(self, db, make_appointment):
        appointment = make_appointment(TOMORROW, time(10, 0))

        await run_reminders(
            db, scripted_dispatcher(DispatchResult(success=False, error="down")), now=NOW, delay_seconds=0
        )
        retry = await run_reminders(db, scripted_dispatcher(sent()), now=NOW, delay_seconds=0)

        assert retry.sent_24h == 1
        db.refresh(appointment)
        assert appointment.reminder_24h_sent is True

    @pytest.mark.asyncio
    async def test_ineligible_appointments_are_skipped(self, db, make_appointment, simulation_dispatcher):
        make_appointment(TOMORROW, time(10, 0), status="cancelled")
        make_appointment(TOMORROW, time(10, 15), status="no_show")
        make_appointment(TOMORROW, time(10, 30), deleted_at=datetime(2026, 10, 18))
        checked_in = make_appointment(TODAY, time(11, 0), status="checked_in")

        summary = await run_reminders(db, simulation_dispatcher, now=NOW, delay_seconds=0)

        assert (summary.sent_24h, summary.sent_1h) == (0, 1)
        db.refresh(checked_in)
        assert checked_in.reminder_1h_sent is True

    @pytest.mark.asyncio
    async def test_pause_between_sends(self, db, make_appointment):
        make_appointment(TOMORROW, time(10, 0))
        make_appointment(TOMORROW, time(10, 15))
        make_appointment(TOMORROW, time(10, 30))
        dispatcher = scripted_dispatcher(sent(), sent(), sent())

        with patch(
            "clinicflow.domain.notifications.reminders.asyncio.sleep", new=AsyncMock()
        ) as sleep:
            count, errors = await run_reminder_pass(
                db, dispatcher, ReminderKind.TWENTY_FOUR_HOUR, NOW, delay_seconds=1.0
            )

        assert (count, errors) == (3, [])
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)

    @pytest.mark.asyncio
    async def test_one_hour_window_across_midnight(self, db, make_appointment, simulation_dispatcher):
        late = datetime(2026, 10, 19, 23, 30)
        after_midnight = make_appointment(TOMORROW, time(0, 30))

        summary = await run_reminders(db, simulation_dispatcher, now=late, delay_seconds=0)

        assert summary.sent_1h == 1
        db.refresh(after_midnight)
        assert after_midnight.reminder_1h_sent is True

    def test_summary_response_shape(self):
        summary = ReminderRunSummary(sent_24h=2, sent_1h=1, errors=["x"])

        body = summary.to_response(timestamp=NOW)

        assert body == {
            "success": True,
            "sent24h": 2,
            "sent1h": 1,
            "errors": ["x"],
            "timestamp": "2026-10-19T10:00:00",
        }


class TestMarkReminderSent:
    def test_conditional_update_only_flips_once(self, db, make_appointment):
        appointment = make_appointment(TOMORROW, time(10, 0))

        first = AppointmentRepository.mark_reminder_sent(
            db, appointment.id, ReminderKind.TWENTY_FOUR_HOUR, NOW
        )
        second = AppointmentRepository.mark_reminder_sent(
            db, appointment.id, ReminderKind.TWENTY_FOUR_HOUR, NOW
        )

        assert (first, second) == (True, False)


class TestAppointmentNotice:
    @pytest.mark.asyncio
    async def test_confirmation_sets_flag_and_logs(self, db, make_appointment, simulation_dispatcher):
        appointment = make_appointment(TOMORROW, time(10, 0))

        result = await send_appointment_notice(
            db, appointment.id, "confirmation", simulation_dispatcher
        )

        assert result.success is True
        db.refresh(appointment)
        assert appointment.confirmation_sms_sent is True
        log = db.query(NotificationLog).one()
        assert (log.message_type, log.to_phone) == ("confirmation", "+919876543210")

    @pytest.mark.asyncio
    async def test_message_content(self, db, make_appointment):
        appointment = make_appointment(TOMORROW, time(10, 0))
        dispatcher = scripted_dispatcher(sent())

        await send_appointment_notice(db, appointment.id, "cancellation", dispatcher)

        phone, message = dispatcher.send.await_args.args
        assert phone == "+919876543210"
        assert "Sharma Family Clinic" in message
        assert "has been cancelled" in message
        assert message.endswith("- ClinicFlow")

    @pytest.mark.asyncio
    async def test_unknown_notice_type(self, db, make_appointment, simulation_dispatcher):
        appointment = make_appointment(TOMORROW, time(10, 0))

        with pytest.raises(ValidationError):
            await send_appointment_notice(db, appointment.id, "birthday", simulation_dispatcher)

    @pytest.mark.asyncio
    async def test_missing_appointment(self, db, simulation_dispatcher):
        with pytest.raises(NotFoundError):
            await send_appointment_notice(db, 12345, "confirmation", simulation_dispatcher)
