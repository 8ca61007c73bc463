from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Union

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import (
    get_current_user, get_current_doctor, get_current_patient, require_role
)
from ...services.appointment_service import AppointmentService, appointment_response
from ...services.pre_consultation_service import PreConsultationService
from ...schemas.appointment import (
    AppointmentCancel, AppointmentCreate, AppointmentNotes, AppointmentResponse,
    AppointmentStatusUpdate, DoctorAppointmentStats, PatientAppointmentStats, VideoRoomUpdate
)
from ...schemas.pre_consultation import PreConsultationFormIn, PreConsultationFormResponse
from ...models.doctor import Doctor
from ...models.patient import Patient
from ...models.user import User

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentResponse, status_code=201)
async def book_appointment(
    data: AppointmentCreate,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Book an open slot; an inline pre-consultation form is saved with it."""
    appointment = AppointmentService(db).book(patient, data)
    return appointment_response(appointment)

@router.get("", response_model=List[AppointmentResponse])
async def list_my_appointments(
    filter: str = Query("all"),
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR])),
    db: Session = Depends(get_db)
):
    """The caller's appointments as patient or as doctor."""
    service = AppointmentService(db)
    if current_user.role == UserRole.DOCTOR:
        doctor = await get_current_doctor(current_user, db)
        appointments = service.list_for_doctor(doctor, filter)
    else:
        patient = await get_current_patient(current_user, db)
        appointments = service.list_for_patient(patient, filter)
    return [appointment_response(a) for a in appointments]

@router.get("/stats", response_model=Union[DoctorAppointmentStats, PatientAppointmentStats])
async def my_appointment_stats(
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR])),
    db: Session = Depends(get_db)
):
    """Dashboard counters for the caller's role."""
    service = AppointmentService(db)
    if current_user.role == UserRole.DOCTOR:
        return service.doctor_stats(await get_current_doctor(current_user, db))
    return service.patient_stats(await get_current_patient(current_user, db))

@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).get_for_user(appointment_id, current_user)
    return appointment_response(appointment)

@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    data: AppointmentCancel,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).cancel(patient, appointment_id, data.reason)
    return appointment_response(appointment)

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).update_status(
        doctor, appointment_id, data.status, data.reason
    )
    return appointment_response(appointment)

@router.put("/{appointment_id}/notes", response_model=AppointmentResponse)
async def save_doctor_notes(
    appointment_id: int,
    data: AppointmentNotes,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).save_notes(doctor, appointment_id, data.doctor_notes)
    return appointment_response(appointment)

@router.put("/{appointment_id}/video-room", response_model=AppointmentResponse)
async def set_video_room(
    appointment_id: int,
    data: VideoRoomUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Record the call link; no request is made to the video provider."""
    appointment = AppointmentService(db).set_video_room(doctor, appointment_id, data.video_room_url)
    return appointment_response(appointment)

# Pre-consultation form

@router.put("/{appointment_id}/pre-consultation", response_model=PreConsultationFormResponse)
async def save_pre_consultation_form(
    appointment_id: int,
    data: PreConsultationFormIn,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).get_for_patient(appointment_id, patient)
    return PreConsultationService(db).save_for_appointment(appointment, patient, data)

@router.get("/{appointment_id}/pre-consultation", response_model=PreConsultationFormResponse)
async def get_pre_consultation_form(
    appointment_id: int,
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.DOCTOR])),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).get_for_user(appointment_id, current_user)
    return PreConsultationService(db).get_for_appointment(appointment)
