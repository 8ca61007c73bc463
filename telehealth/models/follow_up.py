from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Time, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class FollowUpStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class FollowUpPriority(str, enum.Enum):
    ROUTINE = "routine"
    URGENT = "urgent"

class FollowUp(Base):
    __tablename__ = "follow_ups"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    follow_up_date = Column(Date, nullable=False, index=True)
    follow_up_time = Column(Time, nullable=True)
    reason = Column(Text, nullable=False)
    priority = Column(SQLEnum(FollowUpPriority), nullable=False, default=FollowUpPriority.ROUTINE)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(FollowUpStatus), nullable=False, default=FollowUpStatus.SCHEDULED)

    reminder_sent = Column(Boolean, nullable=False, default=False)
    reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    doctor = relationship("Doctor")
    patient = relationship("Patient")

    def __repr__(self):
        return f"<FollowUp(id={self.id}, patient_id={self.patient_id}, date='{self.follow_up_date}')>"
