"""Work-calendar resolver.

Merges the tenant-wide work settings with a professional's own schedule
(working-day override and one-off days off) into one effective calendar.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from .time_calculator import weekday_index

DEFAULT_WORK_HOURS = {
    "start_time": "09:00",
    "end_time": "18:00",
    "interval_minutes": 10,
    "slot_step_minutes": 30,
    "lunch_start": None,
    "lunch_end": None,
    "working_days": [1, 2, 3, 4, 5, 6],  # Monday to Saturday
}


@dataclass(frozen=True)
class WorkHours:
    start_time: str
    end_time: str
    interval_minutes: int
    slot_step_minutes: int
    lunch_start: Optional[str]
    lunch_end: Optional[str]
    working_days: frozenset[int]

    @classmethod
    def from_dict(cls, data: dict) -> "WorkHours":
        return cls(
            start_time=data["start_time"],
            end_time=data["end_time"],
            interval_minutes=int(data["interval_minutes"]),
            slot_step_minutes=int(data["slot_step_minutes"]),
            lunch_start=data.get("lunch_start"),
            lunch_end=data.get("lunch_end"),
            working_days=frozenset(int(d) for d in data.get("working_days") or []),
        )

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "interval_minutes": self.interval_minutes,
            "slot_step_minutes": self.slot_step_minutes,
            "lunch_start": self.lunch_start,
            "lunch_end": self.lunch_end,
            "working_days": sorted(self.working_days),
        }


@dataclass(frozen=True)
class ProfessionalSchedule:
    working_days: Optional[frozenset[int]] = None  # None = inherit tenant days
    blocked_dates: dict[date, Optional[str]] = field(default_factory=dict)  # day -> reason


@dataclass(frozen=True)
class EffectiveCalendar:
    start_time: str
    end_time: str
    interval_minutes: int
    slot_step_minutes: int
    lunch_start: Optional[str]
    lunch_end: Optional[str]
    working_days: frozenset[int]
    blocked_dates: frozenset[date]
    today: date

    def is_bookable(self, day: date) -> bool:
        return (
            weekday_index(day) in self.working_days
            and day not in self.blocked_dates
            and day >= self.today
        )


def resolve_calendar(
    hours: WorkHours, schedule: Optional[ProfessionalSchedule], today: date
) -> EffectiveCalendar:
    """Build the effective calendar for one professional as of `today`."""
    schedule = schedule or ProfessionalSchedule()

    working_days = hours.working_days if schedule.working_days is None else schedule.working_days
    # Past days off can never suppress a slot
    blocked = frozenset(d for d in schedule.blocked_dates if d >= today)

    return EffectiveCalendar(
        start_time=hours.start_time,
        end_time=hours.end_time,
        interval_minutes=hours.interval_minutes,
        slot_step_minutes=hours.slot_step_minutes,
        lunch_start=hours.lunch_start,
        lunch_end=hours.lunch_end,
        working_days=frozenset(working_days),
        blocked_dates=blocked,
        today=today,
    )
