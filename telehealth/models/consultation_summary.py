from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Boolean, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class ConsultationSummary(Base):
    __tablename__ = "consultation_summaries"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    diagnosis = Column(Text, nullable=False)
    symptoms_presented = Column(Text, nullable=True)
    examination_findings = Column(Text, nullable=True)
    treatment_plan = Column(Text, nullable=False)
    medications_prescribed = Column(Text, nullable=True)
    lifestyle_recommendations = Column(Text, nullable=True)
    patient_education = Column(Text, nullable=True)

    follow_up_required = Column(Boolean, default=False)
    follow_up_date = Column(Date, nullable=True)
    follow_up_notes = Column(Text, nullable=True)

    referral_required = Column(Boolean, default=False)
    referral_specialty = Column(String(100), nullable=True)
    referral_notes = Column(Text, nullable=True)

    red_flags = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)
    consultation_date = Column(Date, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointment = relationship("Appointment", back_populates="summary")
    doctor = relationship("Doctor")

    def __repr__(self):
        return f"<ConsultationSummary(id={self.id}, appointment_id={self.appointment_id})>"
