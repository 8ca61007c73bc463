from sqlalchemy.orm import Session
from datetime import datetime
import logging

from ..core.exceptions import NotFoundError, ValidationFailed
from ..models.appointment import Appointment, AppointmentStatus
from ..models.patient import Patient
from ..models.pre_consultation import PreConsultationForm
from ..schemas.pre_consultation import PreConsultationFormIn

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)

class PreConsultationService:
    def __init__(self, db: Session):
        self.db = db

    def save_for_appointment(
        self,
        appointment: Appointment,
        patient: Patient,
        data: PreConsultationFormIn,
        commit: bool = True
    ) -> PreConsultationForm:
        """Create or replace the form attached to an appointment."""
        if appointment.patient_id != patient.id:
            raise ValidationFailed("Form must be filled in by the appointment's patient")
        if appointment.status in CLOSED_STATUSES:
            raise ValidationFailed(
                f"Cannot edit the form of a {appointment.status.value} appointment"
            )
        if not data.consent_given:
            raise ValidationFailed("Please accept the consent terms to continue")

        form = self.db.query(PreConsultationForm).filter(
            PreConsultationForm.appointment_id == appointment.id
        ).first()
        if form is None:
            form = PreConsultationForm(appointment_id=appointment.id, patient_id=patient.id)
            self.db.add(form)

        for field, value in data.model_dump().items():
            setattr(form, field, value)
        form.consent_timestamp = datetime.utcnow()
        form.updated_at = datetime.utcnow()

        if commit:
            self.db.commit()
            self.db.refresh(form)
        else:
            self.db.flush()

        logger.info(f"Saved pre-consultation form for appointment {appointment.id}")
        return form

    def get_for_appointment(self, appointment: Appointment) -> PreConsultationForm:
        form = self.db.query(PreConsultationForm).filter(
            PreConsultationForm.appointment_id == appointment.id
        ).first()
        if not form:
            raise NotFoundError("Pre-consultation form")
        return form
