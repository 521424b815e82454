"""
Domain errors shared by the scheduling and notification services.
Routers never catch these; main.py maps them to HTTP responses.
"""


class ClinicFlowError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ClinicFlowError):
    """Bad input shape: phone number, date/time, slot outside working hours"""

    status_code = 400


class SlotConflictError(ClinicFlowError):
    """The slot was taken by another booking before ours committed"""

    status_code = 409


class NotFoundError(ClinicFlowError):
    """Referenced clinic, patient or appointment does not exist"""

    status_code = 404


class ProviderError(ClinicFlowError):
    """
    Transport or provider-side failure from a notification channel.
    Absorbed by NotificationDispatcher; only reaches HTTP if raised elsewhere.
    """

    status_code = 502

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel}: {message}")
        self.channel = channel
