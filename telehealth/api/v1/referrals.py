from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_doctor, get_current_patient
from ...services.referral_service import ReferralService, referral_response
from ...schemas.referral import ReferralIn, ReferralResponse, ReferralStatusUpdate
from ...models.doctor import Doctor
from ...models.patient import Patient

router = APIRouter(tags=["Referrals"])

@router.put("/appointments/{appointment_id}/referral", response_model=ReferralResponse)
async def save_referral(
    appointment_id: int,
    data: ReferralIn,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Save the appointment's referral letter as a draft or send it."""
    referral = ReferralService(db).save(doctor, appointment_id, data)
    return referral_response(referral)

@router.get("/appointments/{appointment_id}/referral", response_model=ReferralResponse)
async def get_referral(
    appointment_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return referral_response(ReferralService(db).get_for_appointment(doctor, appointment_id))

@router.get("/referrals/mine", response_model=List[ReferralResponse])
async def list_my_referrals(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Referrals sent on the patient's behalf."""
    return [referral_response(r) for r in ReferralService(db).list_for_patient(patient)]

@router.get("/referrals/written", response_model=List[ReferralResponse])
async def list_written_referrals(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return [referral_response(r) for r in ReferralService(db).list_for_doctor(doctor)]

@router.patch("/referrals/{referral_id}/status", response_model=ReferralResponse)
async def update_referral_status(
    referral_id: int,
    data: ReferralStatusUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    referral = ReferralService(db).update_status(doctor, referral_id, data.status)
    return referral_response(referral)
