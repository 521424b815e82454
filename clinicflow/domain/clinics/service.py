"""Clinic service - Business logic for clinic settings"""

import logging

from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import Clinic, default_working_hours
from ..scheduling.calendar import ClinicSchedule
from .repository import ClinicRepository
from .schemas import ClinicCreate, ClinicSettingsUpdate

logger = logging.getLogger(__name__)


def _validated_hours(working_hours: dict, slot_duration: int) -> dict:
    raw = {
        day: hours.model_dump() if hasattr(hours, "model_dump") else hours
        for day, hours in working_hours.items()
    }
    schedule = ClinicSchedule.from_settings(raw, slot_duration).validate()
    return schedule.to_settings()


class ClinicService:
    """Service layer for clinic business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClinicRepository()

    def get_clinic(self, clinic_id: int) -> Clinic:
        clinic = self.repo.get_clinic_by_id(self.db, clinic_id)
        if not clinic:
            raise NotFoundError("Clinic not found")
        return clinic

    def get_clinic_by_slug(self, slug: str) -> Clinic:
        clinic = self.repo.get_clinic_by_slug(self.db, slug)
        if not clinic:
            raise NotFoundError("Clinic not found")
        return clinic

    def create_clinic(self, data: ClinicCreate) -> Clinic:
        if self.repo.slug_exists(self.db, data.slug):
            raise ValidationError(f"Clinic URL '{data.slug}' is already taken")

        working_hours = (
            _validated_hours(data.working_hours, data.slot_duration)
            if data.working_hours is not None
            else default_working_hours()
        )

        clinic = self.repo.create_clinic(
            self.db,
            name=data.name,
            slug=data.slug,
            phone=data.phone,
            email=data.email,
            address=data.address,
            city=data.city,
            working_hours=working_hours,
            slot_duration=data.slot_duration,
            allow_online_booking=data.allow_online_booking,
        )
        logger.info(f"🏥 Clinic created: id={clinic.id}, slug={clinic.slug}")
        return clinic

    def update_settings(self, clinic_id: int, data: ClinicSettingsUpdate) -> Clinic:
        clinic = self.get_clinic(clinic_id)
        working_hours = _validated_hours(data.working_hours, data.slot_duration)

        clinic = self.repo.update_clinic(
            self.db,
            clinic,
            working_hours=working_hours,
            slot_duration=data.slot_duration,
            allow_online_booking=data.allow_online_booking,
        )
        logger.info(f"⚙️ Settings updated for clinic {clinic.id}: slot_duration={clinic.slot_duration}")
        return clinic
