from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_current_user, get_current_doctor
from ...services.appointment_service import AppointmentService
from ...services.patient_service import PatientService
from ...services.schedule_service import ScheduleService
from ...schemas.appointment import (
    AvailableSlotsResponse, DoctorListItem, DoctorScheduleIn, DoctorScheduleResponse
)
from ...schemas.profile import DoctorProfileResponse, DoctorProfileUpdate
from ...models.doctor import Doctor
from ...models.user import User

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorListItem])
async def list_doctors(
    specialisation: Optional[str] = None,
    include_unavailable: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Doctors a patient can book with."""
    return AppointmentService(db).list_doctors(specialisation, include_unavailable)

@router.get("/me/profile", response_model=DoctorProfileResponse)
async def get_my_profile(doctor: Doctor = Depends(get_current_doctor)):
    return DoctorProfileResponse.model_validate(doctor)

@router.put("/me/profile", response_model=DoctorProfileResponse)
async def update_my_profile(
    updates: DoctorProfileUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return PatientService(db).update_doctor_profile(doctor, updates)

@router.get("/me/schedule", response_model=DoctorScheduleResponse)
async def get_my_schedule(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Weekly schedule, or the clinic defaults if none was saved."""
    return ScheduleService(db).get_schedule(doctor)

@router.put("/me/schedule", response_model=DoctorScheduleResponse)
async def update_my_schedule(
    schedule: DoctorScheduleIn,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return ScheduleService(db).update_schedule(doctor, schedule)

@router.get("/{doctor_id}/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: int,
    day: date = Query(..., alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Open HH:MM start times for a doctor on a date."""
    service = AppointmentService(db)
    doctor = service.get_doctor(doctor_id)
    slot_duration, slots = service.available_slots(doctor, day)
    return AvailableSlotsResponse(
        doctor_id=doctor.id,
        date=day,
        slot_duration=slot_duration,
        slots=slots
    )
