"""Submission-time slot re-check.

The slot list a client saw may be stale by the time they confirm, so the
chosen start is re-checked against a fresh read of the day's bookings.
Unlike the availability engine this check uses the actual service length
and adds no inter-booking gap.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..errors import SlotConflictError
from .availability_service import BusyInterval
from .repository import SchedulingRepository
from .time_calculator import overlaps, to_minutes

logger = logging.getLogger(__name__)


def find_conflict(
    selected_time: str, total_minutes: int, busy: Iterable[BusyInterval]
) -> Optional[BusyInterval]:
    """Return the first busy interval overlapping [selected_time, +total_minutes)."""
    new_start = to_minutes(selected_time)
    new_end = new_start + total_minutes
    for interval in busy:
        if overlaps(new_start, new_end, interval.start, interval.end):
            return interval
    return None


def ensure_slot_free(
    db: Session,
    professional_id: str,
    day: date,
    selected_time: str,
    total_minutes: int,
    exclude_booking_id: Optional[str] = None,
) -> None:
    """Raise SlotConflictError when the slot was taken since it was offered."""
    bookings = SchedulingRepository.list_active_bookings(
        db, professional_id, day, exclude_booking_id=exclude_booking_id
    )
    busy = [BusyInterval.from_booking(b.booking_time, b.duration_minutes) for b in bookings]

    clash = find_conflict(selected_time, total_minutes, busy)
    if clash:
        logger.warning(
            f"⚠️ Slot conflict for professional {professional_id} on {day} at {selected_time} "
            f"({total_minutes} min) - overlaps busy interval {clash.start}-{clash.end}"
        )
        raise SlotConflictError("This time slot is no longer available. Please choose another time.")
