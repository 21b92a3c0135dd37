"""Booking-flow failures surfaced to the client.

Each error names what the client has to redo (`clear`) so the rest of their
selection (professional, services, date) survives the rejection.
"""

from typing import Any, Optional


class BookingError(Exception):
    status_code = 400
    code = "booking_error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message, **self.extra}


class SlotConflictError(BookingError):
    """The chosen start time is taken (guard re-check or storage uniqueness)"""

    status_code = 409
    code = "slot_conflict"

    def __init__(self, message: str = "This time slot is no longer available.", **extra: Any):
        extra.setdefault("next_step", "datetime")
        extra.setdefault("clear", ["booking_time"])
        super().__init__(message, **extra)


class CouponInvalidError(BookingError):
    status_code = 422
    code = "coupon_invalid"

    def __init__(self, message: str, reason: Optional[str] = None, **extra: Any):
        extra.setdefault("clear", ["coupon_code"])
        super().__init__(message, reason=reason, **extra)


class CouponApplyRaceError(BookingError):
    """Lost the optimistic-lock race on the coupon usage counter"""

    status_code = 409
    code = "coupon_apply_race"

    def __init__(self, message: str = "Could not apply the coupon. Please try again.", **extra: Any):
        extra.setdefault("clear", ["coupon_code"])
        super().__init__(message, reason="apply_failed", **extra)


class PartialCommitFailureError(BookingError):
    """The booking row exists but a follow-up write failed"""

    status_code = 500
    code = "partial_commit_failure"

    def __init__(self, booking_id: str, step: str):
        super().__init__(
            "Your booking was recorded but could not be completed. Our team has been notified.",
            booking_id=booking_id,
            step=step,
        )


class IllegalStatusTransitionError(BookingError):
    status_code = 409
    code = "illegal_status_transition"


class InvalidSelectionError(BookingError):
    """Professional or services are unknown, inactive or belong to another tenant"""

    status_code = 422
    code = "invalid_selection"
