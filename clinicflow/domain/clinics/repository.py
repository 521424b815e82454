"""Clinic repository - Database operations for clinics"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Clinic


class ClinicRepository:
    """Repository for clinic database operations"""

    @staticmethod
    def get_clinic_by_id(db: Session, clinic_id: int) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.id == clinic_id, Clinic.deleted_at.is_(None)).first()

    @staticmethod
    def get_clinic_by_slug(db: Session, slug: str) -> Optional[Clinic]:
        return db.query(Clinic).filter(Clinic.slug == slug, Clinic.deleted_at.is_(None)).first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Clinic.id).filter(Clinic.slug == slug).first() is not None

    @staticmethod
    def create_clinic(db: Session, **clinic_data) -> Clinic:
        clinic = Clinic(**clinic_data)
        db.add(clinic)
        db.commit()
        db.refresh(clinic)
        return clinic

    @staticmethod
    def update_clinic(db: Session, clinic: Clinic, **updates) -> Clinic:
        """Update a clinic with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(clinic, key):
                setattr(clinic, key, value)

        db.commit()
        db.refresh(clinic)
        return clinic
