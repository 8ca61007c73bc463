"""
Appointment slot computation.

A doctor's working day is cut into fixed-length slots starting at the day's
start time. Slots that begin inside the break or that are already taken by a
non-cancelled appointment are not offered.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Union

from ..core.config import settings

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
WEEKEND = ("saturday", "sunday")


def parse_hhmm(value: str) -> time:
    """Parse "HH:MM" (seconds, if present, are ignored)."""
    hours, minutes = value.split(":")[:2]
    return time(int(hours), int(minutes))


def format_hhmm(value: Union[time, str]) -> str:
    if isinstance(value, str):
        return value[:5]
    return value.strftime("%H:%M")


def _minutes(value: Union[time, str]) -> int:
    if isinstance(value, str):
        value = parse_hhmm(value)
    return value.hour * 60 + value.minute


def default_weekly_schedule() -> Dict[str, dict]:
    schedule = {}
    for day in WEEKDAYS:
        if day in WEEKEND:
            schedule[day] = {
                "enabled": False,
                "start": settings.DEFAULT_DAY_START,
                "end": settings.DEFAULT_WEEKEND_END,
            }
        else:
            schedule[day] = {
                "enabled": True,
                "start": settings.DEFAULT_DAY_START,
                "end": settings.DEFAULT_DAY_END,
            }
    return schedule


@dataclass
class ScheduleConfig:
    weekly_schedule: Dict[str, dict] = field(default_factory=default_weekly_schedule)
    slot_duration: int = settings.DEFAULT_SLOT_MINUTES
    break_start: Optional[str] = settings.DEFAULT_BREAK_START
    break_end: Optional[str] = settings.DEFAULT_BREAK_END

    @classmethod
    def from_model(cls, schedule) -> "ScheduleConfig":
        """Build from a DoctorSchedule row, or defaults when there is none."""
        if schedule is None:
            return cls()
        return cls(
            weekly_schedule=schedule.weekly_schedule or default_weekly_schedule(),
            slot_duration=schedule.slot_duration or settings.DEFAULT_SLOT_MINUTES,
            break_start=schedule.break_start,
            break_end=schedule.break_end,
        )

    def day(self, day: date) -> dict:
        name = WEEKDAYS[day.weekday()]
        fallback = default_weekly_schedule()[name]
        configured = self.weekly_schedule.get(name) or {}
        return {
            "enabled": configured.get("enabled", fallback["enabled"]) is not False,
            "start": configured.get("start") or fallback["start"],
            "end": configured.get("end") or fallback["end"],
        }


def generate_day_slots(config: ScheduleConfig, day: date) -> List[str]:
    """All slot start times for the day, before bookings are considered."""
    day_config = config.day(day)
    if not day_config["enabled"]:
        return []

    current = _minutes(day_config["start"])
    end = _minutes(day_config["end"])
    has_break = bool(config.break_start and config.break_end)
    break_start = _minutes(config.break_start) if has_break else None
    break_end = _minutes(config.break_end) if has_break else None

    slots = []
    while current < end:
        if not (has_break and break_start <= current < break_end):
            slots.append(f"{current // 60:02d}:{current % 60:02d}")
        current += config.slot_duration
    return slots


def available_slots(
    config: ScheduleConfig,
    day: date,
    booked_times: Iterable[Union[time, str]] = (),
    now: Optional[datetime] = None,
) -> List[str]:
    """Bookable slots on ``day``.

    Nothing is offered before today or past the booking window
    (MAX_BOOKING_DAYS_AHEAD). On today, slots that already started are dropped.
    """
    now = now or datetime.now()
    if day < now.date() or day > now.date() + timedelta(days=settings.MAX_BOOKING_DAYS_AHEAD):
        return []

    booked = {format_hhmm(value) for value in booked_times}
    slots = [slot for slot in generate_day_slots(config, day) if slot not in booked]

    if day == now.date():
        current = now.hour * 60 + now.minute
        slots = [slot for slot in slots if _minutes(slot) > current]
    return slots


def validate_weekly_schedule(weekly_schedule: Dict[str, dict]) -> List[str]:
    """Return a list of problems; empty when the schedule is usable."""
    problems = []
    for name, day in weekly_schedule.items():
        if name not in WEEKDAYS:
            problems.append(f"Unknown day '{name}'")
            continue
        if _minutes(day["start"]) >= _minutes(day["end"]):
            problems.append(f"{name.capitalize()}: start must be before end")
    return problems
