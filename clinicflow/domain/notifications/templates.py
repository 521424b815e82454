"""Patient-facing message templates"""

from datetime import date, time
from typing import Optional

SIGNATURE = "- ClinicFlow"


def format_date(value: date) -> str:
    return value.strftime("%a, %d %b %Y")


def format_time(value: time) -> str:
    return value.strftime("%I:%M %p")


def _token_line(token_number: Optional[int]) -> str:
    return f"Token: {token_number}\n" if token_number else ""


def appointment_confirmation(
    patient_name: str,
    clinic_name: str,
    appointment_date: date,
    appointment_time: time,
    token_number: Optional[int] = None,
) -> str:
    return (
        f"Dear {patient_name},\n\n"
        f"Your appointment at {clinic_name} is confirmed!\n\n"
        f"Date: {format_date(appointment_date)}\n"
        f"Time: {format_time(appointment_time)}\n"
        f"{_token_line(token_number)}\n"
        f"Please arrive 10 minutes early.\n\n"
        f"{SIGNATURE}"
    )


def reminder_24h(
    patient_name: str,
    clinic_name: str,
    appointment_date: date,
    appointment_time: time,
    token_number: Optional[int] = None,
) -> str:
    return (
        f"Reminder: {patient_name}\n\n"
        f"Your appointment at {clinic_name} is tomorrow!\n\n"
        f"Date: {format_date(appointment_date)}\n"
        f"Time: {format_time(appointment_time)}\n"
        f"{_token_line(token_number)}\n"
        f"See you soon!\n\n"
        f"{SIGNATURE}"
    )


def reminder_1h(
    patient_name: str,
    clinic_name: str,
    appointment_date: date,
    appointment_time: time,
    token_number: Optional[int] = None,
) -> str:
    return (
        f"Reminder: {patient_name}\n\n"
        f"Your appointment at {clinic_name} is in 1 hour!\n\n"
        f"Time: {format_time(appointment_time)}\n"
        f"{_token_line(token_number)}\n"
        f"Please arrive on time.\n\n"
        f"{SIGNATURE}"
    )


def appointment_cancellation(
    patient_name: str,
    clinic_name: str,
    appointment_date: date,
    appointment_time: time,
    token_number: Optional[int] = None,
) -> str:
    return (
        f"Dear {patient_name},\n\n"
        f"Your appointment at {clinic_name} on {format_date(appointment_date)} "
        f"at {format_time(appointment_time)} has been cancelled.\n\n"
        f"Please contact us to reschedule.\n\n"
        f"{SIGNATURE}"
    )


def appointment_reschedule(
    patient_name: str,
    clinic_name: str,
    appointment_date: date,
    appointment_time: time,
    token_number: Optional[int] = None,
) -> str:
    return (
        f"Dear {patient_name},\n\n"
        f"Your appointment at {clinic_name} has been rescheduled.\n\n"
        f"New: {format_date(appointment_date)} at {format_time(appointment_time)}\n"
        f"{_token_line(token_number)}\n"
        f"See you then!\n\n"
        f"{SIGNATURE}"
    )


def channel_check_message() -> str:
    return f"Test message from ClinicFlow. Your notification setup is working.\n\n{SIGNATURE}"


# message_type -> template, as recorded in NotificationLog.message_type
APPOINTMENT_TEMPLATES = {
    "confirmation": appointment_confirmation,
    "reminder_24h": reminder_24h,
    "reminder_1h": reminder_1h,
    "cancellation": appointment_cancellation,
    "reschedule": appointment_reschedule,
}


def render_for_appointment(message_type: str, appointment) -> str:
    """Render a template from an Appointment with its patient and clinic loaded"""
    template = APPOINTMENT_TEMPLATES[message_type]
    return template(
        patient_name=appointment.patient.full_name,
        clinic_name=appointment.clinic.name,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        token_number=appointment.token_number,
    )
