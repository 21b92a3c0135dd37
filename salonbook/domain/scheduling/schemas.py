"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_hhmm
from ...utils.sanitization import sanitize_optional_text
from .time_calculator import to_minutes


def _validate_weekdays(days: Optional[list[int]]) -> Optional[list[int]]:
    if days is None:
        return days
    if any(d < 0 or d > 6 for d in days):
        raise ValueError("Working days must be weekday numbers between 0 (Sunday) and 6 (Saturday)")
    return sorted(set(days))


class WorkSettingsUpdate(BaseModel):
    """Schema for replacing the tenant's work settings"""

    start_time: str
    end_time: str
    interval_minutes: int = Field(ge=0)
    slot_step_minutes: int = Field(default=30, gt=0)
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    working_days: list[int] = Field(default_factory=list)

    @field_validator("start_time", "end_time", "lunch_start", "lunch_end")
    @classmethod
    def validate_times(cls, v):
        return validate_hhmm(v)

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v):
        return _validate_weekdays(v)

    @model_validator(mode="after")
    def validate_windows(self):
        start = to_minutes(self.start_time)
        end = to_minutes(self.end_time)
        if start >= end:
            raise ValueError("start_time must be before end_time")

        if (self.lunch_start is None) != (self.lunch_end is None):
            raise ValueError("lunch_start and lunch_end must be set together")

        if self.lunch_start is not None:
            lunch_start = to_minutes(self.lunch_start)
            lunch_end = to_minutes(self.lunch_end)
            if lunch_start >= lunch_end:
                raise ValueError("lunch_start must be before lunch_end")
            if not (start <= lunch_start < end and start <= lunch_end < end):
                raise ValueError("Lunch break must fall within working hours")
        return self


class WorkSettingsResponse(BaseModel):
    start_time: str
    end_time: str
    interval_minutes: int
    slot_step_minutes: int
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    working_days: list[int]


class WorkingDaysUpdate(BaseModel):
    """None clears the override so the professional follows the tenant's days"""

    working_days: Optional[list[int]] = None

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, v):
        return _validate_weekdays(v)


class BlockedDateCreate(BaseModel):
    blocked_date: date
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def sanitize_reason(cls, v):
        return sanitize_optional_text(v, max_length=255)


class BlockedDateResponse(BaseModel):
    id: str
    professional_id: str
    blocked_date: date
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class CalendarResponse(BaseModel):
    professional_id: str
    start_time: str
    end_time: str
    interval_minutes: int
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    working_days: list[int]
    inherits_working_days: bool
    blocked_dates: list[date]


class AvailabilityResponse(BaseModel):
    professional_id: str
    date: date
    total_minutes: int
    total_price: float
    bookable: bool
    times: list[str]
