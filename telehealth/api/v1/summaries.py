from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.exceptions import ValidationFailed
from ...core.security import UserRole
from ...api.deps import (
    get_admin_user, get_current_doctor, get_current_patient, require_role
)
from ...services.appointment_service import AppointmentService
from ...services.follow_up_service import FollowUpService, follow_up_response
from ...services.summary_drafter import draft_summary
from ...services.summary_service import ConsultationSummaryService, summary_response
from ...schemas.consultation_summary import (
    ConsultationSummaryIn, ConsultationSummaryResponse, FollowUpResponse,
    FollowUpStatusUpdate, ReminderCheckResponse, SummaryDraft, SummaryDraftRequest
)
from ...models.doctor import Doctor
from ...models.follow_up import FollowUpStatus
from ...models.patient import Patient
from ...models.user import User

router = APIRouter(tags=["Consultation summaries"])

@router.put("/appointments/{appointment_id}/summary", response_model=ConsultationSummaryResponse)
async def save_consultation_summary(
    appointment_id: int,
    data: ConsultationSummaryIn,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Save the summary and close the consultation."""
    summary, follow_up = ConsultationSummaryService(db).save(doctor, appointment_id, data)
    return summary_response(summary, follow_up)

@router.get("/appointments/{appointment_id}/summary", response_model=ConsultationSummaryResponse)
async def get_consultation_summary(
    appointment_id: int,
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR])),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).get_for_user(appointment_id, current_user)
    return summary_response(ConsultationSummaryService(db).get_for_appointment(appointment))

@router.get("/summaries/mine", response_model=List[ConsultationSummaryResponse])
async def list_my_summaries(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    summaries = ConsultationSummaryService(db).list_for_patient(patient)
    return [summary_response(s) for s in summaries]

@router.post("/summaries/draft", response_model=SummaryDraft)
async def generate_summary_draft(
    request: SummaryDraftRequest,
    doctor: Doctor = Depends(get_current_doctor)
):
    """Suggest a summary from the doctor's free-text notes."""
    if not request.doctor_notes or not request.doctor_notes.strip():
        raise ValidationFailed("Doctor notes are required")
    return draft_summary(request)

# Follow-ups

@router.get("/follow-ups/upcoming", response_model=List[FollowUpResponse])
async def list_upcoming_follow_ups(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    follow_ups = FollowUpService(db).upcoming_for_patient(patient)
    return [follow_up_response(f) for f in follow_ups]

@router.get("/follow-ups", response_model=List[FollowUpResponse])
async def list_doctor_follow_ups(
    status: Optional[FollowUpStatus] = None,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    follow_ups = FollowUpService(db).list_for_doctor(doctor, status)
    return [follow_up_response(f) for f in follow_ups]

@router.patch("/follow-ups/{follow_up_id}/status", response_model=FollowUpResponse)
async def update_follow_up_status(
    follow_up_id: int,
    data: FollowUpStatusUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    follow_up = FollowUpService(db).update_status(doctor, follow_up_id, data.status)
    return follow_up_response(follow_up)

@router.post("/follow-ups/check-reminders", response_model=ReminderCheckResponse)
async def check_follow_up_reminders(
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Mark follow-ups due today or tomorrow as reminded."""
    return FollowUpService(db).check_reminders()
