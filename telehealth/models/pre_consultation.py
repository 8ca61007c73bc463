from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class SymptomSeverity(str, enum.Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

class PreConsultationForm(Base):
    __tablename__ = "pre_consultation_forms"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), unique=True, nullable=False)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Presenting complaint
    chief_complaint = Column(Text, nullable=False)
    current_symptoms = Column(Text, nullable=True)
    symptom_duration = Column(String(100), nullable=True)
    symptom_severity = Column(SQLEnum(SymptomSeverity), default=SymptomSeverity.MODERATE)

    # Background
    current_medications = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)
    medical_history = Column(Text, nullable=True)
    family_history = Column(Text, nullable=True)
    lifestyle_notes = Column(Text, nullable=True)
    previous_treatments = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)

    # Consent
    consent_given = Column(Boolean, nullable=False, default=False)
    consent_timestamp = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointment = relationship("Appointment", back_populates="pre_consultation_form")

    def __repr__(self):
        return f"<PreConsultationForm(id={self.id}, appointment_id={self.appointment_id})>"
