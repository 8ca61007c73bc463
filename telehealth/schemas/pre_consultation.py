from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from ..models.pre_consultation import SymptomSeverity

class PreConsultationFormIn(BaseModel):
    chief_complaint: str = Field(..., max_length=5000)
    current_symptoms: Optional[str] = None
    symptom_duration: Optional[str] = Field(None, max_length=100)
    symptom_severity: SymptomSeverity = SymptomSeverity.MODERATE
    current_medications: Optional[str] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None
    family_history: Optional[str] = None
    lifestyle_notes: Optional[str] = None
    previous_treatments: Optional[str] = None
    additional_notes: Optional[str] = None
    consent_given: bool = False

    @field_validator("chief_complaint")
    @classmethod
    def complaint_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please describe your main concern")
        return value.strip()

class PreConsultationFormResponse(PreConsultationFormIn):
    id: int
    appointment_id: int
    patient_id: int
    consent_timestamp: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
