"""Clock-time arithmetic for the scheduler.

All times are naive "HH:MM" wall-clock strings; there is no timezone handling here.
Malformed input is the caller's problem - validation happens at the schema layer.
"""

from datetime import date


def to_minutes(hhmm: str) -> int:
    """'09:30' -> 570. Also accepts 'HH:MM:SS' as stored by some databases."""
    hours, minutes = hhmm.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def to_hhmm(total: int) -> str:
    """570 -> '09:30'"""
    return f"{total // 60:02d}:{total % 60:02d}"


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap; touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def weekday_index(day: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6, the convention stored in working_days."""
    return day.isoweekday() % 7
