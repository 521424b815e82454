"""Scheduling router - FastAPI endpoints for slots, bookings and appointments"""

import logging
from datetime import date
from typing import Optional

from arq import create_pool
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...worker import get_redis_settings
from .schemas import (
    AppointmentResponse,
    BookingRequest,
    PublicBookingRequest,
    PublicBookingResponse,
    RescheduleRequest,
    SlotResponse,
    StatusUpdateRequest,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Appointments"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


async def queue_appointment_notice(appointment_id: int, notice: str) -> Optional[str]:
    """
    Queue a confirmation / cancellation / reschedule message for the patient.
    Failure to queue never fails the request that triggered it.
    """
    try:
        pool = await create_pool(get_redis_settings())
    except Exception as queue_err:
        logger.warning(
            f"⚠️ Failed to queue {notice} notice for appointment {appointment_id}: {queue_err}"
        )
        return None

    try:
        job = await pool.enqueue_job("send_appointment_notice_task", appointment_id, notice)
        logger.info(f"📋 {notice} notice queued for appointment {appointment_id}")
        return job.job_id if job else None
    except Exception as queue_err:
        logger.warning(
            f"⚠️ Failed to queue {notice} notice for appointment {appointment_id}: {queue_err}"
        )
        return None
    finally:
        # Ensure pool is always closed
        try:
            await pool.close()
        except Exception as e:
            logger.debug(f"Pool close failed (non-critical): {e}")


@router.get("/clinics/{clinic_id}/slots", response_model=SlotResponse)
async def get_slots(
    clinic_id: int,
    appointment_date: date = Query(..., alias="date", description="YYYY-MM-DD"),
    exclude_appointment_id: Optional[int] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """Slots for a date; pass exclude_appointment_id when editing an appointment"""
    return service.get_slots(clinic_id, appointment_date, exclude_appointment_id)


@router.post(
    "/clinics/{clinic_id}/appointments", response_model=AppointmentResponse, status_code=201
)
async def create_appointment(
    clinic_id: int,
    data: BookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    appointment = service.book(
        clinic_id,
        data.patient,
        data.appointment_date,
        data.appointment_time,
        notes=data.notes,
        booking_source=data.booking_source,
    )
    await queue_appointment_notice(appointment.id, "confirmation")
    return appointment


@router.get("/clinics/{clinic_id}/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    clinic_id: int,
    appointment_date: Optional[date] = Query(None, alias="date"),
    status: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """Queue view: appointments ordered by date and token"""
    return service.list_appointments(clinic_id, appointment_date, status)


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int, service: BookingService = Depends(get_booking_service)
):
    return service.get_appointment(appointment_id)


@router.patch("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Reschedule and/or edit notes"""
    current = service.get_appointment(appointment_id)
    before = (current.appointment_date, current.appointment_time)

    appointment = service.reschedule(appointment_id, data)

    if (appointment.appointment_date, appointment.appointment_time) != before:
        await queue_appointment_notice(appointment.id, "reschedule")
    return appointment


@router.post("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    appointment = service.update_status(appointment_id, data.status, reason=data.reason)
    if appointment.status == "cancelled":
        await queue_appointment_notice(appointment.id, "cancellation")
    return appointment


@router.delete("/appointments/{appointment_id}")
async def delete_appointment(
    appointment_id: int, service: BookingService = Depends(get_booking_service)
):
    return service.delete_appointment(appointment_id)


@router.get("/public/clinics/{slug}/slots", response_model=SlotResponse)
async def get_public_slots(
    slug: str,
    appointment_date: date = Query(..., alias="date"),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_public_slots(slug, appointment_date)


@router.post("/public/clinics/{slug}/book", response_model=PublicBookingResponse, status_code=201)
async def book_public(
    slug: str,
    data: PublicBookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Online booking; the response carries the token number shown to the patient"""
    appointment = service.book_public(slug, data)
    await queue_appointment_notice(appointment.id, "confirmation")

    return PublicBookingResponse(
        appointment_id=appointment.id,
        token_number=appointment.token_number,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time.strftime("%H:%M"),
        clinic_name=appointment.clinic.name,
        message=f"Appointment confirmed. Your token number is {appointment.token_number}.",
    )
