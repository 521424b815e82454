"""Notification log repository - audit trail of outbound messages"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import NotificationLog


class NotificationLogRepository:
    """Repository for notification log database operations"""

    @staticmethod
    def create_log(
        db: Session,
        to_phone: str,
        message_type: str,
        status: str,
        channel: Optional[str] = None,
        error_message: Optional[str] = None,
        clinic_id: Optional[int] = None,
        appointment_id: Optional[int] = None,
    ) -> NotificationLog:
        log = NotificationLog(
            clinic_id=clinic_id,
            appointment_id=appointment_id,
            to_phone=to_phone,
            message_type=message_type,
            channel=channel,
            status=status,
            error_message=error_message,
        )
        db.add(log)
        db.commit()
        return log

    @staticmethod
    def get_logs(
        db: Session,
        clinic_id: Optional[int] = None,
        appointment_id: Optional[int] = None,
        limit: int = 50,
    ) -> list[NotificationLog]:
        """Most recent first"""
        query = db.query(NotificationLog)
        if clinic_id is not None:
            query = query.filter(NotificationLog.clinic_id == clinic_id)
        if appointment_id is not None:
            query = query.filter(NotificationLog.appointment_id == appointment_id)
        return query.order_by(NotificationLog.id.desc()).limit(limit).all()
