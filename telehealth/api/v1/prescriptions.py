from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_current_doctor, get_current_patient
from ...services.prescription_service import PrescriptionService, prescription_response
from ...schemas.prescription import AttachmentIn, PrescriptionCreate, PrescriptionResponse
from ...models.doctor import Doctor
from ...models.patient import Patient

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])

@router.post("", response_model=PrescriptionResponse, status_code=201)
async def create_prescription(
    data: PrescriptionCreate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Issue a prescription to one of the doctor's patients."""
    return prescription_response(PrescriptionService(db).create(doctor, data))

@router.get("/issued", response_model=List[PrescriptionResponse])
async def list_issued_prescriptions(
    search: Optional[str] = None,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    prescriptions = PrescriptionService(db).list_for_doctor(doctor, search)
    return [prescription_response(p) for p in prescriptions]

@router.get("/mine", response_model=List[PrescriptionResponse])
async def list_my_prescriptions(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    prescriptions = PrescriptionService(db).list_for_patient(patient)
    return [prescription_response(p) for p in prescriptions]

@router.post("/{prescription_id}/attachments", response_model=PrescriptionResponse)
async def add_prescription_attachments(
    prescription_id: int,
    attachments: List[AttachmentIn],
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Attach metadata of files already uploaded to storage."""
    prescription = PrescriptionService(db).add_attachments(doctor, prescription_id, attachments)
    return prescription_response(prescription)

@router.post("/{prescription_id}/cancel", response_model=PrescriptionResponse)
async def cancel_prescription(
    prescription_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return prescription_response(PrescriptionService(db).cancel(doctor, prescription_id))
