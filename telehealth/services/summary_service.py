from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from ..core.exceptions import NotFoundError, ValidationFailed
from ..models.appointment import Appointment
from ..models.consultation_summary import ConsultationSummary
from ..models.doctor import Doctor
from ..models.follow_up import FollowUp, FollowUpStatus
from ..models.patient import Patient
from ..schemas.consultation_summary import ConsultationSummaryIn, ConsultationSummaryResponse
from .appointment_service import AppointmentService

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = (
    "diagnosis", "symptoms_presented", "examination_findings", "treatment_plan",
    "medications_prescribed", "lifestyle_recommendations", "patient_education",
    "follow_up_required", "follow_up_date", "follow_up_notes", "referral_required",
    "referral_specialty", "referral_notes", "red_flags", "additional_notes",
)

def summary_response(summary: ConsultationSummary, follow_up: Optional[FollowUp] = None) -> ConsultationSummaryResponse:
    response = ConsultationSummaryResponse.model_validate(summary)
    response.doctor_name = summary.doctor.full_name if summary.doctor else None
    response.follow_up_id = follow_up.id if follow_up else None
    return response

class ConsultationSummaryService:
    def __init__(self, db: Session):
        self.db = db

    def save(
        self,
        doctor: Doctor,
        appointment_id: int,
        data: ConsultationSummaryIn
    ) -> Tuple[ConsultationSummary, Optional[FollowUp]]:
        """Write the post-consultation summary and close the appointment."""
        appointments = AppointmentService(self.db)
        appointment = appointments.get_for_doctor(appointment_id, doctor)

        if data.follow_up_required and data.follow_up_date and data.follow_up_date < appointment.scheduled_date:
            raise ValidationFailed("Follow-up date cannot be before the consultation")

        summary = self.db.query(ConsultationSummary).filter(
            ConsultationSummary.appointment_id == appointment.id
        ).first()
        if summary is None:
            summary = ConsultationSummary(
                appointment_id=appointment.id,
                doctor_id=doctor.id,
                patient_id=appointment.patient_id,
            )
            self.db.add(summary)

        payload = data.model_dump()
        for field in SUMMARY_FIELDS:
            setattr(summary, field, payload[field])
        summary.consultation_date = appointment.scheduled_date
        summary.updated_at = datetime.utcnow()

        appointments.complete(appointment)

        follow_up = None
        if data.follow_up_required and data.follow_up_date:
            follow_up = self._schedule_follow_up(appointment, data)

        self.db.commit()
        self.db.refresh(summary)
        if follow_up is not None:
            self.db.refresh(follow_up)

        logger.info(f"Doctor {doctor.id} saved summary for appointment {appointment.id}")
        return summary, follow_up

    def _schedule_follow_up(self, appointment: Appointment, data: ConsultationSummaryIn) -> FollowUp:
        follow_up = self.db.query(FollowUp).filter(
            FollowUp.appointment_id == appointment.id,
            FollowUp.status == FollowUpStatus.SCHEDULED
        ).first()
        if follow_up is None:
            follow_up = FollowUp(
                appointment_id=appointment.id,
                doctor_id=appointment.doctor_id,
                patient_id=appointment.patient_id,
                status=FollowUpStatus.SCHEDULED,
            )
            self.db.add(follow_up)
        elif follow_up.follow_up_date != data.follow_up_date:
            # Rescheduled: the reminder has to go out again
            follow_up.reminder_sent = False
            follow_up.reminder_sent_at = None

        follow_up.follow_up_date = data.follow_up_date
        follow_up.follow_up_time = data.follow_up_time
        follow_up.reason = data.follow_up_notes or data.diagnosis or "Follow-up consultation"
        follow_up.priority = data.follow_up_priority
        follow_up.notes = data.follow_up_notes
        return follow_up

    def get_for_appointment(self, appointment: Appointment) -> ConsultationSummary:
        summary = self.db.query(ConsultationSummary).filter(
            ConsultationSummary.appointment_id == appointment.id
        ).first()
        if not summary:
            raise NotFoundError("Consultation summary")
        return summary

    def list_for_patient(self, patient: Patient) -> List[ConsultationSummary]:
        return self.db.query(ConsultationSummary).filter(
            ConsultationSummary.patient_id == patient.id
        ).order_by(
            ConsultationSummary.consultation_date.desc(), ConsultationSummary.id.desc()
        ).all()
