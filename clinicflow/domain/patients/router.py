"""Patient router - FastAPI endpoints for patient records"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import PatientCreate, PatientResponse, PatientUpdate
from .service import PatientService

router = APIRouter(tags=["Patients"])


def get_patient_service(db: Session = Depends(get_db)) -> PatientService:
    """Dependency injection for PatientService"""
    return PatientService(db)


@router.get("/clinics/{clinic_id}/patients", response_model=list[PatientResponse])
async def get_patients(
    clinic_id: int,
    search: Optional[str] = Query(None),
    service: PatientService = Depends(get_patient_service),
):
    """List a clinic's patients, optionally searching name, phone or patient number"""
    return service.get_patients(clinic_id, search)


@router.post("/clinics/{clinic_id}/patients", response_model=PatientResponse, status_code=201)
async def create_patient(
    clinic_id: int,
    data: PatientCreate,
    service: PatientService = Depends(get_patient_service),
):
    return service.create_patient(clinic_id, data)


@router.get("/patients/{patient_id}", response_model=PatientResponse)
async def get_patient(patient_id: int, service: PatientService = Depends(get_patient_service)):
    return service.get_patient(patient_id)


@router.patch("/patients/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: int,
    data: PatientUpdate,
    service: PatientService = Depends(get_patient_service),
):
    return service.update_patient(patient_id, data)


@router.delete("/patients/{patient_id}")
async def delete_patient(patient_id: int, service: PatientService = Depends(get_patient_service)):
    return service.delete_patient(patient_id)
