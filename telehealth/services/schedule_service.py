from sqlalchemy.orm import Session
import logging

from ..core.exceptions import ValidationFailed
from ..models.doctor import Doctor, DoctorSchedule
from ..schemas.appointment import DoctorScheduleIn, DoctorScheduleResponse
from .availability import (
    ScheduleConfig, default_weekly_schedule, parse_hhmm, validate_weekly_schedule
)

logger = logging.getLogger(__name__)

class ScheduleService:
    def __init__(self, db: Session):
        self.db = db

    def config_for(self, doctor: Doctor) -> ScheduleConfig:
        return ScheduleConfig.from_model(doctor.schedule)

    def get_schedule(self, doctor: Doctor) -> DoctorScheduleResponse:
        config = self.config_for(doctor)
        return DoctorScheduleResponse(
            doctor_id=doctor.id,
            weekly_schedule=config.weekly_schedule,
            slot_duration=config.slot_duration,
            break_start=config.break_start,
            break_end=config.break_end,
            is_default=doctor.schedule is None,
        )

    def update_schedule(self, doctor: Doctor, data: DoctorScheduleIn) -> DoctorScheduleResponse:
        weekly = default_weekly_schedule()
        weekly.update({day: value.model_dump() for day, value in data.weekly_schedule.items()})

        problems = validate_weekly_schedule(weekly)
        if problems:
            raise ValidationFailed("; ".join(problems))

        if bool(data.break_start) != bool(data.break_end):
            raise ValidationFailed("Break needs both a start and an end")
        if data.break_start and parse_hhmm(data.break_start) >= parse_hhmm(data.break_end):
            raise ValidationFailed("Break start must be before break end")

        schedule = doctor.schedule
        if schedule is None:
            schedule = DoctorSchedule(doctor_id=doctor.id)
            self.db.add(schedule)

        schedule.weekly_schedule = weekly
        schedule.slot_duration = data.slot_duration
        schedule.break_start = data.break_start
        schedule.break_end = data.break_end

        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor.id} updated their weekly schedule")
        return self.get_schedule(doctor)
