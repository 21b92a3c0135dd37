"""Availability engine - which start times can a new booking use on a given day."""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from .time_calculator import overlaps, to_hhmm, to_minutes
from .work_calendar import EffectiveCalendar

logger = logging.getLogger(__name__)

# Offered slots are sized in whole service blocks of this length
SERVICE_BLOCK_MINUTES = 60


@dataclass(frozen=True)
class BusyInterval:
    """Minutes occupied by a non-cancelled booking: [start, end)"""

    start: int
    end: int

    @classmethod
    def from_booking(cls, booking_time: str, duration_minutes: int) -> "BusyInterval":
        start = to_minutes(booking_time)
        return cls(start=start, end=start + int(duration_minutes or 0))


def rounded_service_minutes(total_minutes: int) -> int:
    """Round the requested duration up to whole service blocks (45 -> 60, 61 -> 120)."""
    return math.ceil(total_minutes / SERVICE_BLOCK_MINUTES) * SERVICE_BLOCK_MINUTES


def slot_cadence(interval_minutes: int) -> int:
    """Distance between consecutive candidate starts: one block plus the gap."""
    return SERVICE_BLOCK_MINUTES + interval_minutes


def build_available_times(
    total_minutes: int, busy: Iterable[BusyInterval], calendar: EffectiveCalendar
) -> list[str]:
    """
    Enumerate start times for a booking of `total_minutes` within the open hours.

    Each candidate reserves the rounded service length plus the inter-booking
    gap, and is kept only when that window overlaps no busy interval.

    The admin-configured slot_step_minutes and the lunch window are not applied
    here: candidates always step by a full block plus the gap.
    """
    if total_minutes <= 0:
        return []

    start = to_minutes(calendar.start_time)
    end = to_minutes(calendar.end_time)
    gap = calendar.interval_minutes
    service = rounded_service_minutes(total_minutes)
    step = slot_cadence(gap)

    if calendar.slot_step_minutes != SERVICE_BLOCK_MINUTES or calendar.lunch_start:
        logger.debug(
            f"Slot cadence fixed at {step} min; configured slot step "
            f"({calendar.slot_step_minutes} min) and lunch window "
            f"({calendar.lunch_start}-{calendar.lunch_end}) not applied"
        )

    busy = list(busy)
    slots = []
    t = start
    while t + service <= end:
        blocked_end = t + service + gap
        if not any(overlaps(t, blocked_end, b.start, b.end) for b in busy):
            slots.append(to_hhmm(t))
        t += step

    return slots


def available_times_for_day(
    calendar: EffectiveCalendar,
    day: date,
    total_minutes: int,
    busy: Iterable[BusyInterval],
) -> list[str]:
    """Slots for `day`, or an empty list when the professional does not work that day."""
    if not calendar.is_bookable(day):
        logger.debug(f"📅 {day} is not bookable (day off, blocked or in the past)")
        return []
    return build_available_times(total_minutes, busy, calendar)
