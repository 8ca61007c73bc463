from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Time, Text, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

class AppointmentType(str, enum.Enum):
    VIDEO = "video"
    PHONE = "phone"
    IN_PERSON = "in_person"

# Statuses a patient may still cancel from
CANCELLABLE_STATUSES = (
    AppointmentStatus.PENDING,
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
)

# Doctor-driven status changes
STATUS_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.SCHEDULED: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED},
}

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)

    # Appointment details
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    type = Column(SQLEnum(AppointmentType), nullable=False, default=AppointmentType.VIDEO)
    status = Column(SQLEnum(AppointmentStatus), default=AppointmentStatus.CONFIRMED, index=True)
    reason = Column(Text, nullable=True)
    doctor_notes = Column(Text, nullable=True)
    video_room_url = Column(String(500), nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    cancelled_reason = Column(String(255), nullable=True)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    pre_consultation_form = relationship(
        "PreConsultationForm", back_populates="appointment", uselist=False
    )
    summary = relationship("ConsultationSummary", back_populates="appointment", uselist=False)

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.scheduled_date}')>"

# One live booking per doctor slot; cancelled rows free the slot
Index(
    "uq_appointments_doctor_slot",
    Appointment.doctor_id,
    Appointment.scheduled_date,
    Appointment.scheduled_time,
    unique=True,
    postgresql_where=Appointment.status != AppointmentStatus.CANCELLED,
    sqlite_where=Appointment.status != AppointmentStatus.CANCELLED,
)
