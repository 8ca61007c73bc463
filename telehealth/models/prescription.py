from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Text, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import date
import enum

from ..core.database import Base

class PrescriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)

    diagnosis = Column(Text, nullable=False)
    # [{"name": ..., "dosage": ..., "frequency": ..., "duration": ...}]
    medications = Column(JSON, nullable=False, default=list)
    instructions = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    issue_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)
    status = Column(SQLEnum(PrescriptionStatus), nullable=False, default=PrescriptionStatus.ACTIVE)
    # [{"name": ..., "url": ..., "type": ..., "size": ...}]
    attachments = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor")
    patient = relationship("Patient")

    def effective_status(self, today: date) -> PrescriptionStatus:
        if self.status == PrescriptionStatus.ACTIVE and self.valid_until < today:
            return PrescriptionStatus.EXPIRED
        return self.status

    def __repr__(self):
        return f"<Prescription(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"
