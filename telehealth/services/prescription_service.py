from sqlalchemy.orm import Session
from sqlalchemy import or_
from datetime import date, timedelta
from typing import List, Optional
import logging

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationFailed
from ..core.security import AuthorizationError
from ..models.appointment import Appointment
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.prescription import Prescription, PrescriptionStatus
from ..models.user import User
from ..schemas.prescription import AttachmentIn, PrescriptionCreate, PrescriptionResponse

logger = logging.getLogger(__name__)

def prescription_response(prescription: Prescription, today: Optional[date] = None) -> PrescriptionResponse:
    response = PrescriptionResponse.model_validate(prescription)
    response.status = prescription.effective_status(today or date.today())
    response.doctor_name = prescription.doctor.full_name if prescription.doctor else None
    response.patient_name = prescription.patient.full_name if prescription.patient else None
    return response

def is_patient_of(db: Session, doctor: Doctor, patient_id: int) -> bool:
    return db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor.id,
        Appointment.patient_id == patient_id
    ).first() is not None

class PrescriptionService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, doctor: Doctor, data: PrescriptionCreate) -> Prescription:
        patient = self.db.query(Patient).filter(Patient.id == data.patient_id).first()
        if not patient:
            raise NotFoundError("Patient")
        if not is_patient_of(self.db, doctor, patient.id):
            raise AuthorizationError("Patient has no appointments with you")

        if data.appointment_id is not None:
            appointment = self.db.query(Appointment).filter(
                Appointment.id == data.appointment_id
            ).first()
            if not appointment or appointment.doctor_id != doctor.id or appointment.patient_id != patient.id:
                raise ValidationFailed("Appointment does not match this doctor and patient")

        issue_date = date.today()
        valid_until = data.valid_until or issue_date + timedelta(days=settings.PRESCRIPTION_VALIDITY_DAYS)
        if valid_until < issue_date:
            raise ValidationFailed("Valid until date cannot be in the past")

        prescription = Prescription(
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_id=data.appointment_id,
            diagnosis=data.diagnosis,
            medications=[item.model_dump() for item in data.medications],
            instructions=data.instructions,
            notes=data.notes,
            issue_date=issue_date,
            valid_until=valid_until,
            status=PrescriptionStatus.ACTIVE,
            attachments=[],
        )
        self.db.add(prescription)
        self.db.commit()
        self.db.refresh(prescription)

        logger.info(f"Doctor {doctor.id} issued prescription {prescription.id} to patient {patient.id}")
        return prescription

    def _get_own(self, doctor: Doctor, prescription_id: int) -> Prescription:
        prescription = self.db.query(Prescription).filter(
            Prescription.id == prescription_id
        ).first()
        if not prescription:
            raise NotFoundError("Prescription")
        if prescription.doctor_id != doctor.id:
            raise AuthorizationError("You did not issue this prescription")
        return prescription

    def add_attachments(
        self,
        doctor: Doctor,
        prescription_id: int,
        attachments: List[AttachmentIn]
    ) -> Prescription:
        prescription = self._get_own(doctor, prescription_id)

        for attachment in attachments:
            if attachment.size > settings.MAX_UPLOAD_BYTES:
                raise ValidationFailed(f"{attachment.name} is too large. Max size is 10MB.")

        # Reassign so the JSON column is flagged as changed
        prescription.attachments = list(prescription.attachments or []) + [
            attachment.model_dump() for attachment in attachments
        ]
        self.db.commit()
        self.db.refresh(prescription)
        return prescription

    def cancel(self, doctor: Doctor, prescription_id: int) -> Prescription:
        prescription = self._get_own(doctor, prescription_id)
        if prescription.status == PrescriptionStatus.CANCELLED:
            raise ValidationFailed("Prescription is already cancelled")

        prescription.status = PrescriptionStatus.CANCELLED
        self.db.commit()
        self.db.refresh(prescription)

        logger.info(f"Doctor {doctor.id} cancelled prescription {prescription.id}")
        return prescription

    def list_for_doctor(self, doctor: Doctor, search: Optional[str] = None) -> List[Prescription]:
        query = self.db.query(Prescription).filter(Prescription.doctor_id == doctor.id)
        if search:
            pattern = f"%{search}%"
            query = query.join(Patient, Prescription.patient_id == Patient.id).join(
                User, Patient.user_id == User.id
            ).filter(or_(User.full_name.ilike(pattern), Prescription.diagnosis.ilike(pattern)))
        return query.order_by(Prescription.created_at.desc(), Prescription.id.desc()).all()

    def list_for_patient(self, patient: Patient) -> List[Prescription]:
        return self.db.query(Prescription).filter(
            Prescription.patient_id == patient.id
        ).order_by(Prescription.created_at.desc(), Prescription.id.desc()).all()
