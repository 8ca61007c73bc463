from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_doctor, get_current_patient
from ...services.patient_service import PatientService, patient_profile_response
from ...schemas.profile import (
    DoctorPatientItem, PatientChart, PatientProfileResponse, PatientProfileUpdate
)
from ...models.doctor import Doctor
from ...models.patient import Patient

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.get("/me", response_model=PatientProfileResponse)
async def get_my_medical_profile(patient: Patient = Depends(get_current_patient)):
    return patient_profile_response(patient)

@router.put("/me", response_model=PatientProfileResponse)
async def update_my_medical_profile(
    updates: PatientProfileUpdate,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    patient = PatientService(db).update_patient_profile(patient, updates)
    return patient_profile_response(patient)

@router.get("", response_model=List[DoctorPatientItem])
async def list_my_patients(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Patients who have booked with the doctor."""
    return PatientService(db).patients_of(doctor)

@router.get("/{patient_id}/chart", response_model=PatientChart)
async def get_patient_chart(
    patient_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return PatientService(db).chart(doctor, patient_id)
