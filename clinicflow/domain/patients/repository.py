"""Patient repository - Database operations for patients"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Patient


def generate_patient_number() -> str:
    """Short human-facing patient number, e.g. P3F9A21C"""
    return f"P{uuid.uuid4().hex[:7].upper()}"


class PatientRepository:
    """Repository for patient database operations"""

    @staticmethod
    def get_patients(db: Session, clinic_id: int, search: Optional[str] = None) -> list[Patient]:
        """Get live patients for a clinic, optionally filtered by name/phone/number"""
        query = db.query(Patient).filter(Patient.clinic_id == clinic_id, Patient.deleted_at.is_(None))

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Patient.full_name.ilike(pattern),
                    Patient.phone.ilike(pattern),
                    Patient.patient_number.ilike(pattern),
                )
            )

        return query.order_by(Patient.created_at.desc(), Patient.id.desc()).all()

    @staticmethod
    def get_patient_by_id(
        db: Session, patient_id: int, clinic_id: Optional[int] = None
    ) -> Optional[Patient]:
        query = db.query(Patient).filter(Patient.id == patient_id, Patient.deleted_at.is_(None))
        if clinic_id is not None:
            query = query.filter(Patient.clinic_id == clinic_id)
        return query.first()

    @staticmethod
    def find_by_phone(db: Session, clinic_id: int, phone: str) -> Optional[Patient]:
        """Phone must already be normalized (+91XXXXXXXXXX)"""
        return (
            db.query(Patient)
            .filter(
                Patient.clinic_id == clinic_id,
                Patient.phone == phone,
                Patient.deleted_at.is_(None),
            )
            .first()
        )

    @staticmethod
    def create_patient(db: Session, clinic_id: int, commit: bool = True, **patient_data) -> Patient:
        """
        Create a new patient.
        With commit=False the row is only flushed so a caller can commit it
        together with other writes (booking creates patient + appointment atomically).
        """
        patient = Patient(
            clinic_id=clinic_id, patient_number=generate_patient_number(), **patient_data
        )
        db.add(patient)
        if commit:
            db.commit()
            db.refresh(patient)
        else:
            db.flush()
        return patient

    @staticmethod
    def update_patient(db: Session, patient: Patient, **updates) -> Patient:
        for key, value in updates.items():
            if value is not None and hasattr(patient, key):
                setattr(patient, key, value)

        db.commit()
        db.refresh(patient)
        return patient

    @staticmethod
    def soft_delete_patient(db: Session, patient: Patient) -> None:
        patient.deleted_at = datetime.utcnow()
        db.commit()
