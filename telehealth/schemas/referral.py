from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, Literal
from datetime import date, datetime

from ..models.referral import ReferralStatus, ReferralUrgency

class ReferralIn(BaseModel):
    status: Literal["draft", "sent"] = "draft"
    referral_type: str = Field("specialist", max_length=50)
    urgency: ReferralUrgency = ReferralUrgency.ROUTINE

    referred_to_name: Optional[str] = Field(None, max_length=200)
    referred_to_specialty: str = Field(..., max_length=100)
    referred_to_hospital: Optional[str] = Field(None, max_length=200)
    referred_to_address: Optional[str] = Field(None, max_length=255)
    referred_to_phone: Optional[str] = Field(None, max_length=30)
    referred_to_email: Optional[EmailStr] = None

    reason_for_referral: str
    clinical_summary: Optional[str] = None
    current_diagnosis: Optional[str] = None
    relevant_history: Optional[str] = None
    current_medications: Optional[str] = None
    investigations_done: Optional[str] = None
    investigation_results: Optional[str] = None
    specific_questions: Optional[str] = None
    additional_notes: Optional[str] = None

    patient_aware: bool = True
    patient_consent: bool = True

    @field_validator("reason_for_referral")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please enter the reason for referral")
        return value.strip()

    @field_validator("referred_to_specialty")
    @classmethod
    def specialty_selected(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please select a specialty")
        return value.strip()

class ReferralStatusUpdate(BaseModel):
    status: ReferralStatus

class ReferralResponse(BaseModel):
    id: int
    appointment_id: int
    doctor_id: int
    patient_id: int
    status: ReferralStatus
    referral_type: str
    urgency: ReferralUrgency
    referred_to_name: Optional[str] = None
    referred_to_specialty: str
    referred_to_hospital: Optional[str] = None
    referred_to_address: Optional[str] = None
    referred_to_phone: Optional[str] = None
    referred_to_email: Optional[str] = None
    reason_for_referral: str
    clinical_summary: Optional[str] = None
    current_diagnosis: Optional[str] = None
    relevant_history: Optional[str] = None
    current_medications: Optional[str] = None
    investigations_done: Optional[str] = None
    investigation_results: Optional[str] = None
    specific_questions: Optional[str] = None
    additional_notes: Optional[str] = None
    patient_aware: bool
    patient_consent: bool
    referral_date: date
    created_at: Optional[datetime] = None

    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None

    class Config:
        from_attributes = True
