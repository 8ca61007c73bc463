from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime

from ..models.prescription import PrescriptionStatus

ALLOWED_ATTACHMENT_TYPES = (
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

class MedicationItem(BaseModel):
    name: str = Field(..., max_length=200)
    dosage: Optional[str] = Field(None, max_length=100)
    frequency: Optional[str] = Field(None, max_length=100)
    duration: Optional[str] = Field(None, max_length=100)

class PrescriptionCreate(BaseModel):
    patient_id: int
    appointment_id: Optional[int] = None
    diagnosis: str
    medications: List[MedicationItem] = Field(..., min_length=1)
    instructions: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None

    @field_validator("diagnosis")
    @classmethod
    def diagnosis_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Diagnosis is required")
        return value.strip()

    @field_validator("medications")
    @classmethod
    def first_medication_named(cls, value: List[MedicationItem]) -> List[MedicationItem]:
        if not value[0].name.strip():
            raise ValueError("At least one medication name is required")
        return [item for item in value if item.name.strip()]

class AttachmentIn(BaseModel):
    name: str = Field(..., max_length=255)
    url: str = Field(..., max_length=500)
    type: str
    size: int = Field(..., gt=0)

    @field_validator("type")
    @classmethod
    def supported_type(cls, value: str) -> str:
        if value not in ALLOWED_ATTACHMENT_TYPES:
            raise ValueError("Unsupported file type")
        return value

class PrescriptionResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_id: Optional[int] = None
    diagnosis: str
    medications: List[MedicationItem]
    instructions: Optional[str] = None
    notes: Optional[str] = None
    issue_date: date
    valid_until: date
    status: PrescriptionStatus
    attachments: List[dict] = []
    created_at: Optional[datetime] = None

    doctor_name: Optional[str] = None
    patient_name: Optional[str] = None

    class Config:
        from_attributes = True
