from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Numeric, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Professional information
    specialisation = Column(String(100), nullable=False, default="General Practice")
    license_number = Column(String(50), nullable=False, default="PENDING")
    years_of_experience = Column(Integer, nullable=True)
    qualification = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    consultation_fee = Column(Numeric(10, 2), default=50.00)

    # Availability
    is_available = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor")
    schedule = relationship("DoctorSchedule", back_populates="doctor", uselist=False)

    @property
    def full_name(self) -> str:
        return self.user.full_name if self.user else "Doctor"

    def __repr__(self):
        return f"<Doctor(id={self.id}, user_id={self.user_id}, specialisation='{self.specialisation}')>"

class DoctorSchedule(Base):
    """Weekly working hours used to generate bookable slots."""
    __tablename__ = "doctor_schedules"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), unique=True, nullable=False)

    # {"monday": {"enabled": true, "start": "09:00", "end": "17:00"}, ...}
    weekly_schedule = Column(JSON, nullable=False)
    slot_duration = Column(Integer, nullable=False, default=30)
    break_start = Column(String(5), nullable=True)
    break_end = Column(String(5), nullable=True)

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("Doctor", back_populates="schedule")

    def __repr__(self):
        return f"<DoctorSchedule(doctor_id={self.doctor_id}, slot={self.slot_duration})>"
