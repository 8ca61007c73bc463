from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import List
import logging

from ..core.exceptions import NotFoundError, ValidationFailed
from ..core.security import AuthorizationError
from ..models.appointment import AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.referral import (
    Referral, ReferralStatus, PATIENT_VISIBLE_STATUSES, REFERRAL_TRANSITIONS
)
from ..schemas.referral import ReferralIn, ReferralResponse
from .appointment_service import AppointmentService

logger = logging.getLogger(__name__)

def referral_response(referral: Referral) -> ReferralResponse:
    response = ReferralResponse.model_validate(referral)
    response.doctor_name = referral.doctor.full_name if referral.doctor else None
    response.patient_name = referral.patient.full_name if referral.patient else None
    return response

class ReferralService:
    def __init__(self, db: Session):
        self.db = db

    def get_for_appointment(self, doctor: Doctor, appointment_id: int) -> Referral:
        appointment = AppointmentService(self.db).get_for_doctor(appointment_id, doctor)
        referral = self.db.query(Referral).filter(
            Referral.appointment_id == appointment.id
        ).first()
        if not referral:
            raise NotFoundError("Referral")
        return referral

    def save(self, doctor: Doctor, appointment_id: int, data: ReferralIn) -> Referral:
        """Create or update the referral letter written for an appointment."""
        appointment = AppointmentService(self.db).get_for_doctor(appointment_id, doctor)
        if appointment.status == AppointmentStatus.CANCELLED:
            raise ValidationFailed("Cannot refer from a cancelled appointment")

        referral = self.db.query(Referral).filter(
            Referral.appointment_id == appointment.id
        ).first()
        if referral is not None and referral.status not in (ReferralStatus.DRAFT, ReferralStatus.SENT):
            raise ValidationFailed(
                f"Referral is already {referral.status.value} and can no longer be edited"
            )
        if referral is None:
            referral = Referral(
                appointment_id=appointment.id,
                doctor_id=doctor.id,
                patient_id=appointment.patient_id,
            )
            self.db.add(referral)

        payload = data.model_dump()
        payload["status"] = ReferralStatus(payload["status"])
        for field, value in payload.items():
            setattr(referral, field, value)
        referral.referral_date = date.today()
        referral.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(referral)

        if referral.status == ReferralStatus.SENT:
            logger.info(
                f"Referral {referral.id} sent to {referral.referred_to_specialty} "
                f"({referral.urgency.value})"
            )
        return referral

    def list_for_doctor(self, doctor: Doctor) -> List[Referral]:
        return self.db.query(Referral).filter(
            Referral.doctor_id == doctor.id
        ).order_by(Referral.created_at.desc(), Referral.id.desc()).all()

    def list_for_patient(self, patient: Patient) -> List[Referral]:
        """Referrals the patient may see; drafts stay private to the doctor."""
        return self.db.query(Referral).filter(
            Referral.patient_id == patient.id,
            Referral.status.in_(PATIENT_VISIBLE_STATUSES)
        ).order_by(Referral.created_at.desc(), Referral.id.desc()).all()

    def update_status(self, doctor: Doctor, referral_id: int, new_status: ReferralStatus) -> Referral:
        referral = self.db.query(Referral).filter(Referral.id == referral_id).first()
        if not referral:
            raise NotFoundError("Referral")
        if referral.doctor_id != doctor.id:
            raise AuthorizationError("You did not write this referral")

        if new_status not in REFERRAL_TRANSITIONS.get(referral.status, set()):
            raise ValidationFailed(
                f"Cannot change referral from {referral.status.value} to {new_status.value}"
            )

        referral.status = new_status
        self.db.commit()
        self.db.refresh(referral)
        return referral
