from sqlalchemy.orm import Session
from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from ..core.exceptions import NotFoundError, ValidationFailed
from ..core.security import AuthorizationError
from ..models.doctor import Doctor
from ..models.follow_up import FollowUp, FollowUpStatus
from ..models.patient import Patient
from ..schemas.consultation_summary import (
    FollowUpReminder, FollowUpResponse, ReminderCheckResponse
)

logger = logging.getLogger(__name__)

def follow_up_response(follow_up: FollowUp) -> FollowUpResponse:
    response = FollowUpResponse.model_validate(follow_up)
    response.doctor_name = follow_up.doctor.full_name if follow_up.doctor else None
    return response

class FollowUpService:
    def __init__(self, db: Session):
        self.db = db

    def check_reminders(self, today: Optional[date] = None) -> ReminderCheckResponse:
        """Mark follow-ups due today or tomorrow as reminded and return them."""
        today = today or date.today()
        tomorrow = today + timedelta(days=1)

        due = self.db.query(FollowUp).filter(
            FollowUp.status == FollowUpStatus.SCHEDULED,
            FollowUp.reminder_sent == False,  # noqa: E712
            FollowUp.follow_up_date >= today,
            FollowUp.follow_up_date <= tomorrow
        ).order_by(FollowUp.follow_up_date, FollowUp.id).all()

        if not due:
            return ReminderCheckResponse(message="No reminders to send", count=0)

        sent_at = datetime.utcnow()
        reminders = []
        for follow_up in due:
            patient_user = follow_up.patient.user if follow_up.patient else None
            reminders.append(FollowUpReminder(
                follow_up_id=follow_up.id,
                patient_name=patient_user.full_name if patient_user else "Patient",
                patient_email=patient_user.email if patient_user else "",
                doctor_name=follow_up.doctor.full_name if follow_up.doctor else "Doctor",
                follow_up_date=follow_up.follow_up_date,
                follow_up_time=follow_up.follow_up_time,
                reason=follow_up.reason,
                priority=follow_up.priority,
            ))
            follow_up.reminder_sent = True
            follow_up.reminder_sent_at = sent_at

        self.db.commit()

        # TODO: hand reminders to an email provider once one is configured
        logger.info(f"Follow-up reminders processed: {[r.follow_up_id for r in reminders]}")
        return ReminderCheckResponse(
            message=f"{len(reminders)} reminder(s) processed",
            count=len(reminders),
            reminders=reminders,
        )

    def upcoming_for_patient(self, patient: Patient, today: Optional[date] = None) -> List[FollowUp]:
        today = today or date.today()
        return self.db.query(FollowUp).filter(
            FollowUp.patient_id == patient.id,
            FollowUp.status == FollowUpStatus.SCHEDULED,
            FollowUp.follow_up_date >= today
        ).order_by(FollowUp.follow_up_date, FollowUp.follow_up_time).all()

    def list_for_doctor(self, doctor: Doctor, status: Optional[FollowUpStatus] = None) -> List[FollowUp]:
        query = self.db.query(FollowUp).filter(FollowUp.doctor_id == doctor.id)
        if status is not None:
            query = query.filter(FollowUp.status == status)
        return query.order_by(FollowUp.follow_up_date, FollowUp.id).all()

    def update_status(self, doctor: Doctor, follow_up_id: int, new_status: FollowUpStatus) -> FollowUp:
        follow_up = self.db.query(FollowUp).filter(FollowUp.id == follow_up_id).first()
        if not follow_up:
            raise NotFoundError("Follow-up")
        if follow_up.doctor_id != doctor.id:
            raise AuthorizationError("This follow-up belongs to another doctor")
        if follow_up.status != FollowUpStatus.SCHEDULED:
            raise ValidationFailed(f"Follow-up is already {follow_up.status.value}")
        if new_status == FollowUpStatus.SCHEDULED:
            raise ValidationFailed("Follow-up is already scheduled")

        follow_up.status = new_status
        self.db.commit()
        self.db.refresh(follow_up)
        return follow_up
