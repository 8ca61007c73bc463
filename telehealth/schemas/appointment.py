from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List
from datetime import date, time, datetime
from decimal import Decimal

from ..models.appointment import AppointmentStatus, AppointmentType
from .pre_consultation import PreConsultationFormIn

def format_hhmm(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None

class DoctorListItem(BaseModel):
    id: int
    user_id: int
    full_name: str
    email: str
    specialisation: str
    qualification: Optional[str] = None
    years_of_experience: Optional[int] = None
    bio: Optional[str] = None
    consultation_fee: Optional[Decimal] = None
    is_available: bool

class AvailableSlotsResponse(BaseModel):
    doctor_id: int
    date: date
    slot_duration: int
    slots: List[str]

class AppointmentCreate(BaseModel):
    doctor_id: int
    scheduled_date: date
    scheduled_time: time
    type: AppointmentType = AppointmentType.VIDEO
    reason: Optional[str] = Field(None, max_length=2000)
    pre_consultation: Optional[PreConsultationFormIn] = None

class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = Field(None, max_length=255)

class AppointmentNotes(BaseModel):
    doctor_notes: str = Field(..., max_length=20000)

class VideoRoomUpdate(BaseModel):
    video_room_url: str = Field(..., min_length=8, max_length=500)

class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int
    type: AppointmentType
    status: AppointmentStatus
    reason: Optional[str] = None
    doctor_notes: Optional[str] = None
    video_room_url: Optional[str] = None
    cancelled_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    # Enrichment
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_specialisation: Optional[str] = None
    has_pre_consultation_form: bool = False

    class Config:
        from_attributes = True

    @field_serializer("scheduled_time")
    def serialize_time(self, value: time) -> str:
        return format_hhmm(value)

class DoctorAppointmentStats(BaseModel):
    today_appointments: int
    pending_appointments: int
    total_patients: int
    completed_today: int

class PatientAppointmentStats(BaseModel):
    upcoming: int
    completed: int
    cancelled: int

class WeekdaySchedule(BaseModel):
    enabled: bool = True
    start: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

class DoctorScheduleIn(BaseModel):
    weekly_schedule: dict[str, WeekdaySchedule]
    slot_duration: int = Field(30, ge=5, le=240)
    break_start: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    break_end: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

class DoctorScheduleResponse(DoctorScheduleIn):
    doctor_id: int
    is_default: bool = False
