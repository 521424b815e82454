"""Notification router - reminder trigger, channel test and audit log endpoints"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from .dispatcher import NotificationDispatcher
from .reminders import run_reminders, send_appointment_notice
from .repository import NotificationLogRepository
from .schemas import (
    ChannelTestRequest,
    DispatchResponse,
    NotificationLogResponse,
    ReminderRunResponse,
)
from .templates import channel_check_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_dispatcher() -> NotificationDispatcher:
    """Dependency injection for NotificationDispatcher"""
    return NotificationDispatcher()


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Bearer CRON_SECRET check; open when no secret is configured"""
    if config.CRON_SECRET and authorization != f"Bearer {config.CRON_SECRET}":
        logger.warning("⚠️ Reminder trigger called with missing or invalid cron secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.api_route(
    "/send-reminders",
    methods=["GET", "POST"],
    response_model=ReminderRunResponse,
    dependencies=[Depends(verify_cron_secret)],
)
async def send_reminders(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Scheduled entry point: send due 24h and 1h reminders.
    Per-appointment failures are reported in `errors`; the response is always 200.
    """
    try:
        summary = await run_reminders(db, dispatcher)
    except Exception as e:
        logger.error(f"❌ Reminder run aborted: {e}")
        return {
            "success": False,
            "sent24h": 0,
            "sent1h": 0,
            "errors": [f"Reminder run aborted: {e}"],
            "timestamp": datetime.utcnow().isoformat(),
        }
    return summary.to_response()


@router.post("/test", response_model=DispatchResponse)
async def send_test_notification(
    data: ChannelTestRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Operator check of the channel setup. An invalid phone number is a 400;
    provider failures are reported in the body with a 200.
    """
    result = await dispatcher.send(
        data.phone,
        data.message or channel_check_message(),
        channel_preference=data.channels,
    )
    return result.to_dict()


@router.post("/appointments/{appointment_id}/confirmation", response_model=DispatchResponse)
async def send_confirmation(
    appointment_id: int,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Send (or resend) the booking confirmation for an appointment"""
    result = await send_appointment_notice(db, appointment_id, "confirmation", dispatcher)
    return result.to_dict()


@router.get("/logs", response_model=list[NotificationLogResponse])
async def get_notification_logs(
    clinic_id: Optional[int] = Query(None),
    appointment_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return NotificationLogRepository.get_logs(db, clinic_id, appointment_id, limit)
