from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, time, datetime

from ..models.follow_up import FollowUpPriority, FollowUpStatus

class ConsultationSummaryIn(BaseModel):
    diagnosis: str
    symptoms_presented: Optional[str] = None
    examination_findings: Optional[str] = None
    treatment_plan: str
    medications_prescribed: Optional[str] = None
    lifestyle_recommendations: Optional[str] = None
    patient_education: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    follow_up_time: Optional[time] = None
    follow_up_priority: FollowUpPriority = FollowUpPriority.ROUTINE
    follow_up_notes: Optional[str] = None
    referral_required: bool = False
    referral_specialty: Optional[str] = Field(None, max_length=100)
    referral_notes: Optional[str] = None
    red_flags: Optional[str] = None
    additional_notes: Optional[str] = None

    @field_validator("diagnosis")
    @classmethod
    def diagnosis_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please enter a diagnosis")
        return value.strip()

    @field_validator("treatment_plan")
    @classmethod
    def plan_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please enter a treatment plan")
        return value.strip()

class ConsultationSummaryResponse(BaseModel):
    id: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    diagnosis: str
    symptoms_presented: Optional[str] = None
    examination_findings: Optional[str] = None
    treatment_plan: str
    medications_prescribed: Optional[str] = None
    lifestyle_recommendations: Optional[str] = None
    patient_education: Optional[str] = None
    follow_up_required: bool
    follow_up_date: Optional[date] = None
    follow_up_notes: Optional[str] = None
    referral_required: bool
    referral_specialty: Optional[str] = None
    referral_notes: Optional[str] = None
    red_flags: Optional[str] = None
    additional_notes: Optional[str] = None
    consultation_date: date
    created_at: Optional[datetime] = None

    doctor_name: Optional[str] = None
    follow_up_id: Optional[int] = None

    class Config:
        from_attributes = True

class SummaryDraftRequest(BaseModel):
    doctor_notes: str
    patient_name: Optional[str] = None
    patient_age: Optional[int] = None
    patient_gender: Optional[str] = None
    chief_complaint: Optional[str] = None
    current_symptoms: Optional[str] = None
    current_medications: Optional[str] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None
    consultation_type: Optional[str] = None

class SummaryDraft(BaseModel):
    diagnosis: str
    symptoms_presented: str
    examination_findings: str
    treatment_plan: str
    medications_prescribed: str
    lifestyle_recommendations: str
    patient_education: str
    follow_up_required: bool
    follow_up_notes: str
    follow_up_timeframe: str
    referral_required: bool
    referral_specialty: str
    referral_notes: str
    red_flags: str
    additional_notes: str

class FollowUpResponse(BaseModel):
    id: int
    appointment_id: Optional[int] = None
    doctor_id: int
    patient_id: int
    follow_up_date: date
    follow_up_time: Optional[time] = None
    reason: str
    priority: FollowUpPriority
    notes: Optional[str] = None
    status: FollowUpStatus
    reminder_sent: bool
    reminder_sent_at: Optional[datetime] = None

    doctor_name: Optional[str] = None

    class Config:
        from_attributes = True

class FollowUpStatusUpdate(BaseModel):
    status: FollowUpStatus

class FollowUpReminder(BaseModel):
    follow_up_id: int
    patient_name: str
    patient_email: str
    doctor_name: str
    follow_up_date: date
    follow_up_time: Optional[time] = None
    reason: str
    priority: FollowUpPriority

class ReminderCheckResponse(BaseModel):
    message: str
    count: int
    reminders: list[FollowUpReminder] = []
