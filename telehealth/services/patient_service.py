from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import List
import logging

from ..core.exceptions import NotFoundError
from ..core.security import AuthorizationError
from ..models.appointment import Appointment, AppointmentStatus
from ..models.consultation_summary import ConsultationSummary
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.pre_consultation import PreConsultationForm
from ..models.prescription import Prescription
from ..models.referral import Referral
from ..schemas.pre_consultation import PreConsultationFormResponse
from ..schemas.document import DocumentResponse
from ..schemas.profile import (
    DoctorPatientItem, DoctorProfileResponse, DoctorProfileUpdate,
    PatientChart, PatientProfileResponse, PatientProfileUpdate
)
from .appointment_service import appointment_response
from .document_service import DocumentService
from .prescription_service import is_patient_of, prescription_response
from .referral_service import referral_response
from .summary_service import summary_response

logger = logging.getLogger(__name__)

def patient_profile_response(patient: Patient) -> PatientProfileResponse:
    response = PatientProfileResponse.model_validate(patient)
    response.email = patient.user.email
    response.phone = patient.user.phone
    return response

class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def update_patient_profile(self, patient: Patient, updates: PatientProfileUpdate) -> Patient:
        for field, value in updates.model_dump(exclude_unset=True).items():
            setattr(patient, field, value)
        self.db.commit()
        self.db.refresh(patient)
        return patient

    def update_doctor_profile(self, doctor: Doctor, updates: DoctorProfileUpdate) -> DoctorProfileResponse:
        for field, value in updates.model_dump(exclude_unset=True).items():
            setattr(doctor, field, value)
        self.db.commit()
        self.db.refresh(doctor)
        return DoctorProfileResponse.model_validate(doctor)

    def patients_of(self, doctor: Doctor) -> List[DoctorPatientItem]:
        """Distinct patients who have booked with the doctor."""
        rows = self.db.query(
            Appointment.patient_id,
            func.count(Appointment.id),
        ).filter(
            Appointment.doctor_id == doctor.id
        ).group_by(Appointment.patient_id).all()

        items = []
        for patient_id, count in rows:
            patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
            last_visit = self.db.query(func.max(Appointment.scheduled_date)).filter(
                Appointment.doctor_id == doctor.id,
                Appointment.patient_id == patient_id,
                Appointment.status == AppointmentStatus.COMPLETED
            ).scalar()
            items.append(DoctorPatientItem(
                patient_id=patient.id,
                user_id=patient.user_id,
                full_name=patient.user.full_name,
                email=patient.user.email,
                phone=patient.user.phone,
                appointment_count=count,
                last_visit=last_visit,
            ))
        return sorted(items, key=lambda item: item.full_name.lower())

    def chart(self, doctor: Doctor, patient_id: int) -> PatientChart:
        patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient")
        if not is_patient_of(self.db, doctor, patient.id):
            raise AuthorizationError("Patient has no appointments with you")

        appointments = self.db.query(Appointment).filter(
            Appointment.patient_id == patient.id
        ).order_by(Appointment.scheduled_date.desc(), Appointment.scheduled_time.desc()).all()

        summaries = self.db.query(ConsultationSummary).filter(
            ConsultationSummary.patient_id == patient.id
        ).order_by(ConsultationSummary.id.desc()).all()

        prescriptions = self.db.query(Prescription).filter(
            Prescription.patient_id == patient.id
        ).order_by(Prescription.id.desc()).all()

        # Other doctors' drafts are not part of the shared record
        referrals = [
            referral for referral in self.db.query(Referral).filter(
                Referral.patient_id == patient.id
            ).order_by(Referral.id.desc()).all()
            if referral.doctor_id == doctor.id or referral.status.value != "draft"
        ]

        forms = self.db.query(PreConsultationForm).filter(
            PreConsultationForm.patient_id == patient.id
        ).order_by(PreConsultationForm.id.desc()).all()

        documents = DocumentService(self.db).list_for_patient(patient)

        logger.info(f"Doctor {doctor.id} opened chart of patient {patient.id}")
        return PatientChart(
            patient=patient_profile_response(patient),
            appointments=[appointment_response(a) for a in appointments],
            consultation_summaries=[summary_response(s) for s in summaries],
            prescriptions=[prescription_response(p) for p in prescriptions],
            referrals=[referral_response(r) for r in referrals],
            pre_consultation_forms=[PreConsultationFormResponse.model_validate(f) for f in forms],
            documents=[DocumentResponse.model_validate(d) for d in documents],
            generated_at=datetime.utcnow(),
        )
