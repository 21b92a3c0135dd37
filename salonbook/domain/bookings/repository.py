"""Booking repository - Database operations for bookings, profiles and admin notifications"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import AdminNotification, Booking, BookingService, Profile


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def create_booking(db: Session, **values) -> Booking:
        """Insert and commit the booking row on its own.

        A concurrent booking for the same professional/date/time surfaces
        here as an IntegrityError from the partial unique index.
        """
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def add_service_links(
        db: Session, tenant_id: str, booking_id: str, service_ids: list[str]
    ) -> None:
        for service_id in service_ids:
            db.add(BookingService(tenant_id=tenant_id, booking_id=booking_id, service_id=service_id))
        db.commit()

    @staticmethod
    def get_booking(db: Session, tenant_id: str, booking_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.services), joinedload(Booking.professional))
            .filter(Booking.id == booking_id, Booking.tenant_id == tenant_id)
            .first()
        )

    @staticmethod
    def list_user_bookings(db: Session, tenant_id: str, user_id: str) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.services), joinedload(Booking.professional))
            .filter(Booking.tenant_id == tenant_id, Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc(), Booking.booking_time.desc())
            .all()
        )

    @staticmethod
    def list_tenant_bookings(
        db: Session,
        tenant_id: str,
        status: Optional[str] = None,
        day: Optional[date] = None,
        professional_id: Optional[str] = None,
    ) -> list[Booking]:
        query = (
            db.query(Booking)
            .options(joinedload(Booking.services), joinedload(Booking.professional))
            .filter(Booking.tenant_id == tenant_id)
        )
        if status:
            query = query.filter(Booking.status == status)
        if day:
            query = query.filter(Booking.booking_date == day)
        if professional_id:
            query = query.filter(Booking.professional_id == professional_id)
        return query.order_by(Booking.booking_date, Booking.booking_time).all()

    @staticmethod
    def transition_status(db: Session, booking_id: str, from_status: str, to_status: str) -> bool:
        """Conditional status change; False when the booking is no longer in from_status"""
        updated = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.status == from_status)
            .update({Booking.status: to_status}, synchronize_session=False)
        )
        db.commit()
        return updated == 1

    @staticmethod
    def move_booking(db: Session, booking: Booking, day: date, time: str, **changes) -> Booking:
        booking.booking_date = day
        booking.booking_time = time
        for key, value in changes.items():
            setattr(booking, key, value)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def upsert_profile(
        db: Session, tenant_id: str, user_id: str, name: str, phone: str, notes: Optional[str] = None
    ) -> Profile:
        profile = (
            db.query(Profile)
            .filter(Profile.tenant_id == tenant_id, Profile.user_id == user_id)
            .first()
        )
        if profile is None:
            profile = Profile(user_id=user_id, tenant_id=tenant_id)
            db.add(profile)
        profile.name = name
        profile.phone = phone
        profile.notes = notes
        db.commit()
        return profile

    @staticmethod
    def add_notification(
        db: Session,
        tenant_id: str,
        type: str,
        message: str,
        booking_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> AdminNotification:
        notification = AdminNotification(
            tenant_id=tenant_id, type=type, message=message, booking_id=booking_id, user_id=user_id
        )
        db.add(notification)
        db.commit()
        return notification

    @staticmethod
    def list_notifications(
        db: Session, tenant_id: str, unread_only: bool = False
    ) -> list[AdminNotification]:
        query = db.query(AdminNotification).filter(AdminNotification.tenant_id == tenant_id)
        if unread_only:
            query = query.filter(AdminNotification.read.is_(False))
        return query.order_by(AdminNotification.created_at.desc()).all()

    @staticmethod
    def get_notification(
        db: Session, tenant_id: str, notification_id: str
    ) -> Optional[AdminNotification]:
        return (
            db.query(AdminNotification)
            .filter(AdminNotification.id == notification_id, AdminNotification.tenant_id == tenant_id)
            .first()
        )

    @staticmethod
    def mark_notification_read(db: Session, notification: AdminNotification) -> AdminNotification:
        notification.read = True
        db.commit()
        db.refresh(notification)
        return notification
