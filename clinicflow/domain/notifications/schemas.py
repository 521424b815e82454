"""Notification schemas - Pydantic models for the notification endpoints"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ChannelTestRequest(BaseModel):
    phone: str
    message: Optional[str] = None
    channels: Optional[list[str]] = None


class ChannelAttemptResponse(BaseModel):
    channel: str
    status: str
    error: Optional[str] = None


class DispatchResponse(BaseModel):
    success: bool
    channel: Optional[str] = None
    simulation: bool = False
    error: Optional[str] = None
    attempts: list[ChannelAttemptResponse] = []


class ReminderRunResponse(BaseModel):
    success: bool
    sent24h: int
    sent1h: int
    errors: list[str]
    timestamp: str


class NotificationLogResponse(BaseModel):
    id: int
    clinic_id: Optional[int]
    appointment_id: Optional[int]
    to_phone: str
    message_type: str
    channel: Optional[str]
    status: str
    error_message: Optional[str]
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
