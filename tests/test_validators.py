import pytest
from pydantic import ValidationError

from salonbook.domain.bookings.schemas import BookingCreate
from salonbook.domain.scheduling.schemas import BlockedDateCreate, WorkingDaysUpdate, WorkSettingsUpdate
from salonbook.shared.validators import (
    validate_br_phone,
    validate_client_name,
    validate_hhmm,
)
from salonbook.utils.sanitization import sanitize_optional_text


@pytest.mark.parametrize(
    "raw,digits",
    [
        ("(11) 98765-4321", "11987654321"),
        ("21 3456-7890", "2134567890"),
        ("11987654321", "11987654321"),
    ],
)
def test_valid_phones_are_reduced_to_digits(raw, digits):
    assert validate_br_phone(raw) == digits


@pytest.mark.parametrize(
    "raw",
    ["", "123", "(11) 8765-43210", "(05) 98765-4321", "(11) 00000-0000", "119876543210"],
)
def test_invalid_phones_are_rejected(raw):
    with pytest.raises(ValueError):
        validate_br_phone(raw)


def test_client_name_rules():
    assert validate_client_name("  Ana  ") == "Ana"
    for bad in ("", "A", "Ana 2"):
        with pytest.raises(ValueError):
            validate_client_name(bad)


def test_hhmm_requires_zero_padded_24h():
    assert validate_hhmm("09:05") == "09:05"
    assert validate_hhmm(None) is None
    for bad in ("9:05", "24:00", "12:60", "noon"):
        with pytest.raises(ValueError):
            validate_hhmm(bad)


def test_free_text_is_trimmed_and_escaped():
    assert sanitize_optional_text("   ") is None
    assert sanitize_optional_text(" <script>x</script> ") == "&lt;script&gt;x&lt;/script&gt;"
    with pytest.raises(ValueError):
        sanitize_optional_text("x" * 501)


def test_booking_create_normalizes_coupon_code():
    data = BookingCreate(
        professional_id="p1",
        service_ids=["s1"],
        booking_date="2030-05-07",
        booking_time="14:00",
        client_name="Maria",
        client_phone="(11) 98765-4321",
        coupon_code="  verao25 ",
    )

    assert data.coupon_code == "VERAO25"
    assert BookingCreate(**{**data.model_dump(), "coupon_code": "  "}).coupon_code is None


def test_booking_create_requires_a_service():
    with pytest.raises(ValidationError):
        BookingCreate(
            professional_id="p1",
            service_ids=[],
            booking_date="2030-05-07",
            booking_time="14:00",
            client_name="Maria",
            client_phone="(11) 98765-4321",
        )


def test_work_settings_dedupes_and_sorts_days():
    settings = WorkSettingsUpdate(start_time="09:00", end_time="18:00", interval_minutes=10, working_days=[5, 1, 5])

    assert settings.working_days == [1, 5]


@pytest.mark.parametrize(
    "values",
    [
        {"start_time": "18:00", "end_time": "09:00"},
        {"lunch_start": "12:00"},
        {"lunch_start": "13:00", "lunch_end": "12:00"},
        {"lunch_start": "08:00", "lunch_end": "09:30"},
        {"working_days": [7]},
        {"interval_minutes": -5},
    ],
)
def test_work_settings_rejects_bad_windows(values):
    payload = {"start_time": "09:00", "end_time": "18:00", "interval_minutes": 10, **values}

    with pytest.raises(ValidationError):
        WorkSettingsUpdate(**payload)


def test_working_days_override_can_be_cleared():
    assert WorkingDaysUpdate().working_days is None
    assert WorkingDaysUpdate(working_days=[]).working_days == []


def test_blocked_date_reason_is_sanitized():
    blocked = BlockedDateCreate(blocked_date="2030-05-07", reason=" <i>Curso</i> ")

    assert blocked.reason == "&lt;i&gt;Curso&lt;/i&gt;"
