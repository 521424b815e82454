"""Clinic router - FastAPI endpoints for clinic settings"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ClinicCreate, ClinicResponse, ClinicSettingsUpdate, PublicClinicResponse
from .service import ClinicService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Clinics"])


def get_clinic_service(db: Session = Depends(get_db)) -> ClinicService:
    """Dependency injection for ClinicService"""
    return ClinicService(db)


@router.post("/clinics", response_model=ClinicResponse, status_code=201)
async def create_clinic(data: ClinicCreate, service: ClinicService = Depends(get_clinic_service)):
    """Register a clinic"""
    return service.create_clinic(data)


@router.get("/clinics/{clinic_id}", response_model=ClinicResponse)
async def get_clinic(clinic_id: int, service: ClinicService = Depends(get_clinic_service)):
    return service.get_clinic(clinic_id)


@router.put("/clinics/{clinic_id}/settings", response_model=ClinicResponse)
async def update_clinic_settings(
    clinic_id: int,
    data: ClinicSettingsUpdate,
    service: ClinicService = Depends(get_clinic_service),
):
    """Update working hours and slot duration"""
    return service.update_settings(clinic_id, data)


@router.get("/public/clinics/{slug}", response_model=PublicClinicResponse)
async def get_public_clinic(slug: str, service: ClinicService = Depends(get_clinic_service)):
    """Public clinic profile for the online booking page"""
    return service.get_clinic_by_slug(slug)
