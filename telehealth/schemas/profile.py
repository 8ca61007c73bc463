from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from .appointment import AppointmentResponse
from .pre_consultation import PreConsultationFormResponse
from .referral import ReferralResponse
from .prescription import PrescriptionResponse
from .consultation_summary import ConsultationSummaryResponse
from .document import DocumentResponse

class PatientProfileUpdate(BaseModel):
    date_of_birth: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    blood_type: Optional[str] = Field(None, max_length=10)
    allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    emergency_contact_name: Optional[str] = Field(None, max_length=200)
    emergency_contact_phone: Optional[str] = Field(None, max_length=30)

class PatientProfileResponse(PatientProfileUpdate):
    id: int
    user_id: int
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None

    class Config:
        from_attributes = True

class DoctorProfileUpdate(BaseModel):
    specialisation: Optional[str] = Field(None, max_length=100)
    license_number: Optional[str] = Field(None, max_length=50)
    years_of_experience: Optional[int] = Field(None, ge=0, le=80)
    qualification: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = None
    consultation_fee: Optional[Decimal] = Field(None, ge=0)
    is_available: Optional[bool] = None

    @field_validator("specialisation", "license_number", "is_available")
    @classmethod
    def required_on_profile(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Field cannot be cleared")
        return value

class DoctorProfileResponse(BaseModel):
    id: int
    user_id: int
    full_name: str
    specialisation: str
    license_number: str
    years_of_experience: Optional[int] = None
    qualification: Optional[str] = None
    bio: Optional[str] = None
    consultation_fee: Optional[Decimal] = None
    is_available: bool

    class Config:
        from_attributes = True

class DoctorPatientItem(BaseModel):
    patient_id: int
    user_id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    appointment_count: int
    last_visit: Optional[date] = None

class PatientChart(BaseModel):
    patient: PatientProfileResponse
    appointments: List[AppointmentResponse]
    consultation_summaries: List[ConsultationSummaryResponse]
    prescriptions: List[PrescriptionResponse]
    referrals: List[ReferralResponse]
    pre_consultation_forms: List[PreConsultationFormResponse]
    documents: List[DocumentResponse]
    generated_at: datetime
