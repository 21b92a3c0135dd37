"""Booking service - commit orchestration and the booking lifecycle"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import AuthUser
from ...cache import clear_booking_draft, get_booking_draft, save_booking_draft
from ...models import AdminNotification, Booking
from ..catalog.service import CatalogService
from ..coupons.service import APPLY, CouponResult, CouponService
from ..errors import (
    CouponApplyRaceError,
    CouponInvalidError,
    IllegalStatusTransitionError,
    PartialCommitFailureError,
    SlotConflictError,
)
from ..scheduling.conflict_guard import ensure_slot_free
from ..scheduling.service import SchedulingService
from ..scheduling.time_calculator import to_minutes
from ..scheduling.work_calendar import EffectiveCalendar
from .repository import BookingRepository
from .schemas import BookingCreate, BookingDraft, BookingReschedule

logger = logging.getLogger(__name__)

# Legal status changes: confirmed is the only non-terminal state
ALLOWED_TRANSITIONS = {
    "confirmed": {"cancelled", "completed"},
}


def is_unique_violation(error: IntegrityError) -> bool:
    """True when the IntegrityError comes from a unique index or constraint"""
    if getattr(error.orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(error.orig).lower()


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.scheduling = SchedulingService(db)
        self.coupons = CouponService(db)

    # ------------------------------------------------------------------
    # Commit orchestrator
    # ------------------------------------------------------------------

    def commit_booking(
        self,
        tenant_id: str,
        user: AuthUser,
        data: BookingCreate,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Turn a confirmed selection into a booking.

        Order: slot re-check, coupon apply, booking insert, service links,
        coupon usage, profile refresh. A coupon use taken for an insert that
        fails is given back while its counter has not moved since. Once the
        booking row is committed it stays; a failed follow-up write is reported
        to admins, never undone.

        Raises:
            InvalidSelectionError: professional or services not bookable
            SlotConflictError: slot taken (guard or unique index) or day closed
            CouponInvalidError / CouponApplyRaceError: coupon rejected at apply time
            PartialCommitFailureError: booking saved but a follow-up write failed
        """
        selection = CatalogService(self.db).resolve_selection(
            tenant_id, data.professional_id, data.service_ids
        )
        total_minutes = selection.total_minutes
        subtotal = selection.total_price

        calendar = self.scheduling.build_calendar(tenant_id, selection.professional, today)
        self._ensure_bookable(calendar, data.booking_date, data.booking_time, total_minutes)

        ensure_slot_free(
            self.db, data.professional_id, data.booking_date, data.booking_time, total_minutes
        )

        coupon: Optional[CouponResult] = None
        if data.coupon_code:
            coupon = self._apply_coupon(tenant_id, data.coupon_code, subtotal, user.id, now)

        try:
            booking = self.repo.create_booking(
                self.db,
                tenant_id=tenant_id,
                user_id=user.id,
                professional_id=data.professional_id,
                booking_date=data.booking_date,
                booking_time=data.booking_time,
                duration_minutes=total_minutes,
                total_price=coupon.final_total if coupon else subtotal,
                discount_amount=coupon.discount_amount if coupon else 0,
                coupon_id=coupon.coupon_id if coupon else None,
                client_name=data.client_name,
                client_phone=data.client_phone,
                notes=data.notes,
                status="confirmed",
            )
        except IntegrityError as e:
            self.db.rollback()
            coupon_spent = bool(coupon) and not self.coupons.release_use(coupon)
            if coupon_spent:
                self._report_orphaned_coupon_use(tenant_id, user.id, coupon, data)
            if is_unique_violation(e):
                logger.warning(
                    f"⚠️ Lost booking race for professional {data.professional_id} "
                    f"on {data.booking_date} at {data.booking_time}"
                )
                if coupon_spent:
                    raise SlotConflictError(
                        "This time slot was just booked by someone else and your coupon "
                        "could not be restored. Please choose another time.",
                        clear=["booking_time", "coupon_code"],
                    ) from e
                raise SlotConflictError(
                    "This time slot was just booked by someone else. Please choose another time."
                ) from e
            raise

        booking_id = booking.id
        logger.info(
            f"✅ Booking {booking_id} created: professional={data.professional_id} "
            f"{data.booking_date} {data.booking_time} ({total_minutes} min, total={booking.total_price})"
        )

        try:
            self.repo.add_service_links(self.db, tenant_id, booking_id, selection.service_ids)
        except SQLAlchemyError as e:
            self._fail_partial(tenant_id, user.id, booking_id, "service_links", e)

        if coupon:
            try:
                self.coupons.record_usage(tenant_id, coupon.coupon_id, booking_id, user.id)
            except SQLAlchemyError as e:
                self._fail_partial(tenant_id, user.id, booking_id, "coupon_usage", e)

        try:
            self.repo.upsert_profile(
                self.db, tenant_id, user.id, data.client_name, data.client_phone, data.notes
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Profile update failed for user {user.id} after booking {booking_id}: {e}")

        clear_booking_draft(tenant_id, user.id)
        self.db.refresh(booking)
        return booking

    def _ensure_bookable(
        self, calendar: EffectiveCalendar, day: date, time: str, total_minutes: int
    ) -> None:
        if not calendar.is_bookable(day):
            raise SlotConflictError(
                "The selected date is not available for this professional.",
                clear=["booking_date", "booking_time"],
            )
        start = to_minutes(time)
        if start < to_minutes(calendar.start_time) or start + total_minutes > to_minutes(calendar.end_time):
            raise SlotConflictError("The selected time is outside working hours.")

    def _apply_coupon(
        self, tenant_id: str, code: str, subtotal: float, user_id: str, now: Optional[datetime]
    ) -> CouponResult:
        result = self.coupons.evaluate(tenant_id, code, subtotal, user_id, action=APPLY, now=now)
        if result.valid:
            return result
        if result.reason == "apply_failed":
            raise CouponApplyRaceError()
        raise CouponInvalidError(result.message, reason=result.reason)

    def _notify_admins(self, tenant_id: str, type: str, message: str, **refs) -> None:
        try:
            self.repo.add_notification(self.db, tenant_id, type, message, **refs)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.critical(f"🚨 Could not record admin notification ({type}): {e} | {message}")

    def _fail_partial(
        self, tenant_id: str, user_id: str, booking_id: str, step: str, error: Exception
    ) -> None:
        self.db.rollback()
        message = (
            f"Booking {booking_id} was saved but the '{step}' step failed: {error}. "
            f"Manual reconciliation required."
        )
        logger.critical(f"🚨 PARTIAL COMMIT FAILURE: {message}")
        self._notify_admins(
            tenant_id, "partial_commit_failure", message, booking_id=booking_id, user_id=user_id
        )
        raise PartialCommitFailureError(booking_id=booking_id, step=step) from error

    def _report_orphaned_coupon_use(
        self, tenant_id: str, user_id: str, coupon: CouponResult, data: BookingCreate
    ) -> None:
        message = (
            f"Coupon {coupon.code} use was consumed but the booking for "
            f"{data.booking_date} {data.booking_time} was not created."
        )
        logger.error(f"❌ {message}")
        self._notify_admins(tenant_id, "coupon_use_without_booking", message, user_id=user_id)

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    def get_user_booking(self, tenant_id: str, user: AuthUser, booking_id: str) -> Booking:
        booking = self.repo.get_booking(self.db, tenant_id, booking_id)
        if not booking or booking.user_id != user.id:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def list_my_bookings(self, tenant_id: str, user: AuthUser) -> list[Booking]:
        return self.repo.list_user_bookings(self.db, tenant_id, user.id)

    def cancel_booking(self, tenant_id: str, user: AuthUser, booking_id: str) -> Booking:
        booking = self.get_user_booking(tenant_id, user, booking_id)
        self._transition(booking, "cancelled")
        self._notify_admins(
            tenant_id,
            "booking_cancelled",
            f"{booking.client_name} cancelled the booking on {booking.booking_date} "
            f"at {booking.booking_time}.",
            booking_id=booking.id,
            user_id=user.id,
        )
        self.db.refresh(booking)
        return booking

    def reschedule_booking(
        self,
        tenant_id: str,
        user: AuthUser,
        booking_id: str,
        data: BookingReschedule,
        today: Optional[date] = None,
    ) -> Booking:
        """Move a confirmed booking, re-checking the new slot against everyone but itself"""
        booking = self.get_user_booking(tenant_id, user, booking_id)
        if booking.status != "confirmed":
            raise IllegalStatusTransitionError(
                f"Only confirmed bookings can be rescheduled (current status: {booking.status})"
            )

        old_slot = f"{booking.booking_date} {booking.booking_time}"
        calendar = self.scheduling.build_calendar(tenant_id, booking.professional, today)
        self._ensure_bookable(calendar, data.booking_date, data.booking_time, booking.duration_minutes)
        ensure_slot_free(
            self.db,
            booking.professional_id,
            data.booking_date,
            data.booking_time,
            booking.duration_minutes,
            exclude_booking_id=booking.id,
        )

        changes = {"notes": data.notes} if "notes" in data.model_fields_set else {}
        try:
            booking = self.repo.move_booking(
                self.db, booking, data.booking_date, data.booking_time, **changes
            )
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                raise SlotConflictError(
                    "This time slot was just booked by someone else. Please choose another time."
                ) from e
            raise

        logger.info(f"📅 Booking {booking.id} moved from {old_slot} to {data.booking_date} {data.booking_time}")
        self._notify_admins(
            tenant_id,
            "booking_updated",
            f"{booking.client_name} moved the booking from {old_slot} to "
            f"{data.booking_date} {data.booking_time}.",
            booking_id=booking.id,
            user_id=user.id,
        )
        return booking

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def get_draft(self, tenant_id: str, user: AuthUser) -> Optional[dict]:
        return get_booking_draft(tenant_id, user.id)

    def save_draft(self, tenant_id: str, user: AuthUser, draft: BookingDraft) -> dict:
        payload = draft.model_dump(mode="json")
        payload["saved_at"] = datetime.now(timezone.utc).isoformat()
        if not save_booking_draft(tenant_id, user.id, payload):
            raise HTTPException(status_code=503, detail="Draft storage temporarily unavailable")
        return payload

    def clear_draft(self, tenant_id: str, user: AuthUser) -> None:
        clear_booking_draft(tenant_id, user.id)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_tenant_bookings(
        self,
        tenant_id: str,
        status: Optional[str] = None,
        day: Optional[date] = None,
        professional_id: Optional[str] = None,
    ) -> list[Booking]:
        return self.repo.list_tenant_bookings(self.db, tenant_id, status, day, professional_id)

    def admin_set_status(self, tenant_id: str, booking_id: str, new_status: str) -> Booking:
        booking = self.repo.get_booking(self.db, tenant_id, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        self._transition(booking, new_status)
        self.db.refresh(booking)
        return booking

    def _transition(self, booking: Booking, new_status: str) -> None:
        current = booking.status
        if new_status not in ALLOWED_TRANSITIONS.get(current, set()):
            raise IllegalStatusTransitionError(
                f"Illegal status transition: {current} -> {new_status}"
            )
        if not self.repo.transition_status(self.db, booking.id, current, new_status):
            # Someone else changed the status between our read and write
            self.db.refresh(booking)
            raise IllegalStatusTransitionError(
                f"Illegal status transition: {booking.status} -> {new_status}"
            )
        logger.info(f"🔄 Booking {booking.id} status {current} -> {new_status}")

    def list_notifications(self, tenant_id: str, unread_only: bool = False) -> list[AdminNotification]:
        return self.repo.list_notifications(self.db, tenant_id, unread_only)

    def mark_notification_read(self, tenant_id: str, notification_id: str) -> AdminNotification:
        notification = self.repo.get_notification(self.db, tenant_id, notification_id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        return self.repo.mark_notification_read(self.db, notification)
