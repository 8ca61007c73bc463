from sqlalchemy.orm import Session
from sqlalchemy import func, distinct
from sqlalchemy.exc import IntegrityError
from datetime import date, datetime, time
from typing import List, Optional, Tuple
import logging

from ..core.config import settings
from ..core.exceptions import NotFoundError, ConflictError, ValidationFailed
from ..core.security import AuthorizationError, UserRole
from ..models.appointment import (
    Appointment, AppointmentStatus, CANCELLABLE_STATUSES, STATUS_TRANSITIONS
)
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..schemas.appointment import (
    AppointmentCreate, AppointmentResponse, DoctorAppointmentStats, DoctorListItem,
    PatientAppointmentStats
)
from .availability import available_slots, format_hhmm
from .pre_consultation_service import PreConsultationService
from .schedule_service import ScheduleService

logger = logging.getLogger(__name__)

UPCOMING_STATUSES = (
    AppointmentStatus.PENDING,
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
)
PENDING_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.SCHEDULED)

LIST_FILTERS = ("all", "upcoming", "today", "pending", "completed", "cancelled")

def appointment_response(appointment: Appointment) -> AppointmentResponse:
    response = AppointmentResponse.model_validate(appointment)
    response.patient_name = appointment.patient.full_name if appointment.patient else None
    if appointment.doctor:
        response.doctor_name = appointment.doctor.full_name
        response.doctor_specialisation = appointment.doctor.specialisation
    response.has_pre_consultation_form = appointment.pre_consultation_form is not None
    return response

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    # Doctors and availability

    def list_doctors(
        self,
        specialisation: Optional[str] = None,
        include_unavailable: bool = False
    ) -> List[DoctorListItem]:
        query = self.db.query(Doctor).join(User, Doctor.user_id == User.id).filter(
            User.is_active == True  # noqa: E712
        )
        if not include_unavailable:
            query = query.filter(Doctor.is_available == True)  # noqa: E712
        if specialisation:
            query = query.filter(Doctor.specialisation.ilike(f"%{specialisation}%"))

        return [
            DoctorListItem(
                id=doctor.id,
                user_id=doctor.user_id,
                full_name=doctor.user.full_name,
                email=doctor.user.email,
                specialisation=doctor.specialisation,
                qualification=doctor.qualification,
                years_of_experience=doctor.years_of_experience,
                bio=doctor.bio,
                consultation_fee=doctor.consultation_fee,
                is_available=doctor.is_available,
            )
            for doctor in query.order_by(User.full_name).all()
        ]

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor")
        return doctor

    def booked_times(self, doctor_id: int, day: date) -> List[time]:
        rows = self.db.query(Appointment.scheduled_time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.scheduled_date == day,
            Appointment.status != AppointmentStatus.CANCELLED
        ).all()
        return [row[0] for row in rows]

    def available_slots(
        self,
        doctor: Doctor,
        day: date,
        now: Optional[datetime] = None
    ) -> Tuple[int, List[str]]:
        config = ScheduleService(self.db).config_for(doctor)
        if not doctor.is_available:
            return config.slot_duration, []
        slots = available_slots(config, day, self.booked_times(doctor.id, day), now=now)
        return config.slot_duration, slots

    # Booking and listing

    def book(
        self,
        patient: Patient,
        data: AppointmentCreate,
        now: Optional[datetime] = None
    ) -> Appointment:
        doctor = self.get_doctor(data.doctor_id)
        if not doctor.is_available:
            raise ConflictError("Doctor is not accepting appointments")

        today = (now or datetime.now()).date()
        if (data.scheduled_date - today).days > settings.MAX_BOOKING_DAYS_AHEAD:
            raise ConflictError(
                f"Appointments can be booked at most {settings.MAX_BOOKING_DAYS_AHEAD} days ahead"
            )

        requested = format_hhmm(data.scheduled_time)
        slot_duration, slots = self.available_slots(doctor, data.scheduled_date, now=now)
        if requested not in slots:
            raise ConflictError("Selected time slot is not available")

        if data.pre_consultation is not None and not data.pre_consultation.consent_given:
            raise ValidationFailed("Please accept the consent terms to continue")

        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time.replace(second=0, microsecond=0),
            duration_minutes=slot_duration,
            type=data.type,
            status=AppointmentStatus.CONFIRMED,
            reason=data.reason,
        )
        self.db.add(appointment)
        try:
            self.db.flush()
        except IntegrityError:
            # Another request took the slot after the availability check
            self.db.rollback()
            raise ConflictError("Selected time slot is not available")

        if data.pre_consultation is not None:
            PreConsultationService(self.db).save_for_appointment(
                appointment, patient, data.pre_consultation, commit=False
            )

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id} with doctor {doctor.id} "
            f"on {appointment.scheduled_date} at {requested}"
        )
        return appointment

    def _filtered(self, query, filter_name: str, today: date):
        if filter_name not in LIST_FILTERS:
            raise ValidationFailed(f"Unknown filter '{filter_name}'")

        if filter_name == "upcoming":
            query = query.filter(
                Appointment.scheduled_date >= today,
                Appointment.status.in_(UPCOMING_STATUSES)
            )
        elif filter_name == "today":
            query = query.filter(Appointment.scheduled_date == today)
        elif filter_name == "pending":
            query = query.filter(Appointment.status.in_(PENDING_STATUSES))
        elif filter_name == "completed":
            query = query.filter(Appointment.status == AppointmentStatus.COMPLETED)
        elif filter_name == "cancelled":
            query = query.filter(Appointment.status == AppointmentStatus.CANCELLED)

        return query.order_by(Appointment.scheduled_date, Appointment.scheduled_time)

    def list_for_patient(self, patient: Patient, filter_name: str = "all") -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient.id)
        return self._filtered(query, filter_name, date.today()).all()

    def list_for_doctor(self, doctor: Doctor, filter_name: str = "all") -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.doctor_id == doctor.id)
        return self._filtered(query, filter_name, date.today()).all()

    # Dashboard counters

    def doctor_stats(self, doctor: Doctor, today: Optional[date] = None) -> DoctorAppointmentStats:
        today = today or date.today()
        mine = self.db.query(Appointment).filter(Appointment.doctor_id == doctor.id)

        return DoctorAppointmentStats(
            today_appointments=mine.filter(Appointment.scheduled_date == today).count(),
            pending_appointments=mine.filter(Appointment.status.in_(UPCOMING_STATUSES)).count(),
            total_patients=self.db.query(
                func.count(distinct(Appointment.patient_id))
            ).filter(Appointment.doctor_id == doctor.id).scalar() or 0,
            completed_today=mine.filter(
                Appointment.scheduled_date == today,
                Appointment.status == AppointmentStatus.COMPLETED
            ).count(),
        )

    def patient_stats(self, patient: Patient, today: Optional[date] = None) -> PatientAppointmentStats:
        today = today or date.today()
        mine = self.db.query(Appointment).filter(Appointment.patient_id == patient.id)
        finished = (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)

        return PatientAppointmentStats(
            upcoming=mine.filter(
                Appointment.scheduled_date >= today,
                Appointment.status.not_in(finished)
            ).count(),
            completed=mine.filter(Appointment.status == AppointmentStatus.COMPLETED).count(),
            cancelled=mine.filter(Appointment.status == AppointmentStatus.CANCELLED).count(),
        )

    def list_all(self, status: Optional[AppointmentStatus] = None) -> List[Appointment]:
        query = self.db.query(Appointment)
        if status is not None:
            query = query.filter(Appointment.status == status)
        return query.order_by(
            Appointment.scheduled_date.desc(), Appointment.scheduled_time.desc()
        ).all()

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()
        if not appointment:
            raise NotFoundError("Appointment")
        return appointment

    def get_for_user(self, appointment_id: int, user: User) -> Appointment:
        """Fetch an appointment the user takes part in (admins see all)."""
        appointment = self.get(appointment_id)
        if user.role == UserRole.ADMIN:
            return appointment
        if user.role == UserRole.PATIENT and appointment.patient.user_id == user.id:
            return appointment
        if user.role == UserRole.DOCTOR and appointment.doctor.user_id == user.id:
            return appointment
        raise AuthorizationError("You are not part of this appointment")

    def get_for_doctor(self, appointment_id: int, doctor: Doctor) -> Appointment:
        appointment = self.get(appointment_id)
        if appointment.doctor_id != doctor.id:
            raise AuthorizationError("You are not the doctor for this appointment")
        return appointment

    def get_for_patient(self, appointment_id: int, patient: Patient) -> Appointment:
        appointment = self.get(appointment_id)
        if appointment.patient_id != patient.id:
            raise AuthorizationError("You are not the patient for this appointment")
        return appointment

    # Status changes

    def cancel(self, patient: Patient, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        appointment = self.get_for_patient(appointment_id, patient)
        if appointment.status not in CANCELLABLE_STATUSES:
            raise ValidationFailed(
                f"Cannot cancel an appointment that is {appointment.status.value}"
            )

        appointment.status = AppointmentStatus.CANCELLED
        appointment.cancelled_reason = reason
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Patient {patient.id} cancelled appointment {appointment.id}")
        return appointment

    def update_status(
        self,
        doctor: Doctor,
        appointment_id: int,
        new_status: AppointmentStatus,
        reason: Optional[str] = None
    ) -> Appointment:
        appointment = self.get_for_doctor(appointment_id, doctor)
        allowed = STATUS_TRANSITIONS.get(appointment.status, set())
        if new_status not in allowed:
            raise ValidationFailed(
                f"Cannot change appointment from {appointment.status.value} to {new_status.value}"
            )

        appointment.status = new_status
        if new_status == AppointmentStatus.CANCELLED:
            appointment.cancelled_reason = reason
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Doctor {doctor.id} set appointment {appointment.id} to {new_status.value}")
        return appointment

    def complete(self, appointment: Appointment) -> None:
        """Mark an appointment completed regardless of its current status; caller commits."""
        if appointment.status == AppointmentStatus.CANCELLED:
            raise ValidationFailed("Cannot complete a cancelled appointment")
        appointment.status = AppointmentStatus.COMPLETED

    def save_notes(self, doctor: Doctor, appointment_id: int, notes: str) -> Appointment:
        appointment = self.get_for_doctor(appointment_id, doctor)
        appointment.doctor_notes = notes
        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def set_video_room(self, doctor: Doctor, appointment_id: int, url: str) -> Appointment:
        appointment = self.get_for_doctor(appointment_id, doctor)
        if appointment.status in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED):
            raise ValidationFailed("Appointment is no longer active")
        if not url.startswith("https://"):
            raise ValidationFailed("Video room URL must use https")
        if settings.VIDEO_ROOM_URL_PREFIX and not url.startswith(settings.VIDEO_ROOM_URL_PREFIX):
            raise ValidationFailed("Video room URL does not belong to the configured provider")

        appointment.video_room_url = url
        self.db.commit()
        self.db.refresh(appointment)
        return appointment
