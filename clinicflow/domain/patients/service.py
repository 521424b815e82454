"""Patient service - Business logic for patient records"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import Patient
from ..clinics.repository import ClinicRepository
from .repository import PatientRepository
from .schemas import PatientCreate, PatientUpdate

logger = logging.getLogger(__name__)


class PatientService:
    """Service layer for patient business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PatientRepository()

    def _require_clinic(self, clinic_id: int) -> None:
        if not ClinicRepository.get_clinic_by_id(self.db, clinic_id):
            raise NotFoundError("Clinic not found")

    def get_patients(self, clinic_id: int, search: Optional[str] = None) -> list[Patient]:
        self._require_clinic(clinic_id)
        return self.repo.get_patients(self.db, clinic_id, search)

    def get_patient(self, patient_id: int) -> Patient:
        patient = self.repo.get_patient_by_id(self.db, patient_id)
        if not patient:
            raise NotFoundError("Patient not found")
        return patient

    def create_patient(self, clinic_id: int, data: PatientCreate) -> Patient:
        """Register a patient; one live record per phone number per clinic"""
        self._require_clinic(clinic_id)

        if self.repo.find_by_phone(self.db, clinic_id, data.phone):
            raise ValidationError("A patient with this phone number already exists")

        try:
            patient = self.repo.create_patient(self.db, clinic_id, **data.model_dump())
        except IntegrityError:
            self.db.rollback()
            raise ValidationError("A patient with this phone number already exists")

        logger.info(f"🧾 Patient {patient.patient_number} registered for clinic {clinic_id}")
        return patient

    def update_patient(self, patient_id: int, data: PatientUpdate) -> Patient:
        patient = self.get_patient(patient_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("phone") and updates["phone"] != patient.phone:
            existing = self.repo.find_by_phone(self.db, patient.clinic_id, updates["phone"])
            if existing and existing.id != patient.id:
                raise ValidationError("A patient with this phone number already exists")

        return self.repo.update_patient(self.db, patient, **updates)

    def delete_patient(self, patient_id: int) -> dict:
        """Soft delete; appointments keep referencing the row"""
        patient = self.get_patient(patient_id)
        self.repo.soft_delete_patient(self.db, patient)
        logger.info(f"🗑️ Patient {patient_id} soft-deleted")
        return {"message": "Patient deleted"}
