import math
from datetime import date

import pytest

from salonbook.domain.scheduling.availability_service import (
    BusyInterval,
    available_times_for_day,
    build_available_times,
    rounded_service_minutes,
    slot_cadence,
)
from salonbook.domain.scheduling.conflict_guard import find_conflict
from salonbook.domain.scheduling.time_calculator import to_minutes
from salonbook.domain.scheduling.work_calendar import (
    DEFAULT_WORK_HOURS,
    ProfessionalSchedule,
    WorkHours,
    resolve_calendar,
)

TODAY = date(2026, 10, 14)  # Wednesday
THURSDAY = date(2026, 10, 15)


def make_calendar(schedule=None, **overrides):
    hours = WorkHours.from_dict({**DEFAULT_WORK_HOURS, **overrides})
    return resolve_calendar(hours, schedule, TODAY)


def test_rounds_duration_up_to_whole_hours():
    assert rounded_service_minutes(45) == 60
    assert rounded_service_minutes(60) == 60
    assert rounded_service_minutes(61) == 120
    assert slot_cadence(10) == 70


def test_empty_day_offers_hour_plus_gap_cadence():
    slots = build_available_times(45, [], make_calendar())

    assert slots == ["09:00", "10:10", "11:20", "12:30", "13:40", "14:50", "16:00"]


def test_existing_booking_removes_overlapping_candidate():
    busy = [BusyInterval.from_booking("10:10", 60)]

    slots = build_available_times(45, busy, make_calendar())

    assert "10:10" not in slots
    assert "09:00" in slots
    assert "11:20" in slots
    assert slots == ["09:00", "11:20", "12:30", "13:40", "14:50", "16:00"]


def test_candidate_gap_reaches_into_next_booking():
    # 09:00 + 60 min + 10 min gap = 10:10, which would overlap a 10:05 booking
    busy = [BusyInterval.from_booking("10:05", 30)]

    slots = build_available_times(60, busy, make_calendar())

    assert "09:00" not in slots


def test_zero_or_negative_duration_offers_nothing():
    assert build_available_times(0, [], make_calendar()) == []
    assert build_available_times(-30, [], make_calendar()) == []


def test_duration_longer_than_open_window_offers_nothing():
    calendar = make_calendar(start_time="09:00", end_time="11:00")

    assert build_available_times(150, [], calendar) == []


def test_lunch_window_and_slot_step_are_not_applied():
    calendar = make_calendar(lunch_start="12:00", lunch_end="13:00", slot_step_minutes=15)

    slots = build_available_times(45, [], calendar)

    assert "12:30" in slots
    assert slots == build_available_times(45, [], make_calendar())


@pytest.mark.parametrize(
    "start,end,gap,duration",
    [
        ("09:00", "18:00", 10, 45),
        ("08:00", "20:00", 0, 60),
        ("10:00", "16:30", 15, 90),
        ("09:00", "10:00", 5, 60),
        ("09:00", "10:30", 20, 61),
    ],
)
def test_slot_count_on_empty_calendar(start, end, gap, duration):
    calendar = make_calendar(start_time=start, end_time=end, interval_minutes=gap)
    rounded = rounded_service_minutes(duration)
    window = to_minutes(end) - to_minutes(start) - rounded
    expected = math.floor(window / slot_cadence(gap)) + 1 if window >= 0 else 0

    assert len(build_available_times(duration, [], calendar)) == expected


@pytest.mark.parametrize(
    "bookings,duration",
    [
        ([("10:10", 60)], 45),
        ([("09:30", 30), ("13:00", 120)], 30),
        ([("11:00", 45), ("11:50", 20), ("16:10", 60)], 75),
        ([("09:00", 540)], 30),
    ],
)
def test_every_offered_slot_passes_submission_recheck(bookings, duration):
    busy = [BusyInterval.from_booking(t, d) for t, d in bookings]

    slots = build_available_times(duration, busy, make_calendar())

    for slot in slots:
        assert find_conflict(slot, duration, busy) is None


def test_blocked_date_offers_nothing_even_on_working_day():
    schedule = ProfessionalSchedule(blocked_dates={THURSDAY: "Curso"})
    calendar = make_calendar(schedule)

    assert available_times_for_day(calendar, THURSDAY, 45, []) == []


def test_blocked_date_offers_nothing_even_with_override_including_it():
    schedule = ProfessionalSchedule(working_days=frozenset(range(7)), blocked_dates={THURSDAY: None})
    calendar = make_calendar(schedule)

    assert available_times_for_day(calendar, THURSDAY, 45, []) == []


def test_no_working_days_offers_nothing():
    calendar = make_calendar(working_days=[])

    assert available_times_for_day(calendar, THURSDAY, 45, []) == []


def test_working_day_offers_slots():
    assert available_times_for_day(make_calendar(), THURSDAY, 45, [])[0] == "09:00"
