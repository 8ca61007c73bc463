from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class ReferralStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    DECLINED = "declined"

class ReferralUrgency(str, enum.Enum):
    ROUTINE = "routine"      # within 4-6 weeks
    URGENT = "urgent"        # within 1-2 weeks
    EMERGENCY = "emergency"  # same day

# Statuses visible to the referred patient
PATIENT_VISIBLE_STATUSES = (
    ReferralStatus.SENT,
    ReferralStatus.ACCEPTED,
    ReferralStatus.COMPLETED,
)

REFERRAL_TRANSITIONS = {
    ReferralStatus.SENT: {ReferralStatus.ACCEPTED, ReferralStatus.DECLINED},
    ReferralStatus.ACCEPTED: {ReferralStatus.COMPLETED},
}

class Referral(Base):
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    status = Column(SQLEnum(ReferralStatus), nullable=False, default=ReferralStatus.DRAFT)
    referral_type = Column(String(50), nullable=False, default="specialist")
    urgency = Column(SQLEnum(ReferralUrgency), nullable=False, default=ReferralUrgency.ROUTINE)

    # Recipient
    referred_to_name = Column(String(200), nullable=True)
    referred_to_specialty = Column(String(100), nullable=False)
    referred_to_hospital = Column(String(200), nullable=True)
    referred_to_address = Column(String(255), nullable=True)
    referred_to_phone = Column(String(30), nullable=True)
    referred_to_email = Column(String(255), nullable=True)

    # Clinical content
    reason_for_referral = Column(Text, nullable=False)
    clinical_summary = Column(Text, nullable=True)
    current_diagnosis = Column(Text, nullable=True)
    relevant_history = Column(Text, nullable=True)
    current_medications = Column(Text, nullable=True)
    investigations_done = Column(Text, nullable=True)
    investigation_results = Column(Text, nullable=True)
    specific_questions = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)

    patient_aware = Column(Boolean, default=True)
    patient_consent = Column(Boolean, default=True)
    referral_date = Column(Date, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor")
    patient = relationship("Patient")

    def __repr__(self):
        return f"<Referral(id={self.id}, appointment_id={self.appointment_id}, status='{self.status}')>"
