"""Scheduling repository - Database operations for work hours, days off and busy time"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Professional, ProfessionalBlockedDate, WorkSettings


class SchedulingRepository:
    """Repository for scheduling database operations"""

    @staticmethod
    def get_work_settings(db: Session, tenant_id: str) -> Optional[WorkSettings]:
        return db.query(WorkSettings).filter(WorkSettings.tenant_id == tenant_id).first()

    @staticmethod
    def save_work_settings(db: Session, tenant_id: str, **values) -> WorkSettings:
        """Create or replace the tenant's work settings"""
        settings = SchedulingRepository.get_work_settings(db, tenant_id)
        if settings is None:
            settings = WorkSettings(tenant_id=tenant_id)
            db.add(settings)

        for key, value in values.items():
            setattr(settings, key, value)

        db.commit()
        db.refresh(settings)
        return settings

    @staticmethod
    def get_professional(db: Session, tenant_id: str, professional_id: str) -> Optional[Professional]:
        return (
            db.query(Professional)
            .filter(Professional.id == professional_id, Professional.tenant_id == tenant_id)
            .first()
        )

    @staticmethod
    def set_working_days(
        db: Session, professional: Professional, working_days: Optional[list[int]]
    ) -> Professional:
        professional.working_days = working_days
        db.commit()
        db.refresh(professional)
        return professional

    @staticmethod
    def list_blocked_dates(
        db: Session, professional_id: str, from_date: Optional[date] = None
    ) -> list[ProfessionalBlockedDate]:
        """Days off for a professional, optionally only those on or after from_date"""
        query = db.query(ProfessionalBlockedDate).filter(
            ProfessionalBlockedDate.professional_id == professional_id
        )
        if from_date is not None:
            query = query.filter(ProfessionalBlockedDate.blocked_date >= from_date)
        return query.order_by(ProfessionalBlockedDate.blocked_date).all()

    @staticmethod
    def add_blocked_date(
        db: Session, tenant_id: str, professional_id: str, blocked_date: date, reason: Optional[str]
    ) -> ProfessionalBlockedDate:
        blocked = ProfessionalBlockedDate(
            tenant_id=tenant_id,
            professional_id=professional_id,
            blocked_date=blocked_date,
            reason=reason,
        )
        db.add(blocked)
        db.commit()
        db.refresh(blocked)
        return blocked

    @staticmethod
    def get_blocked_date(
        db: Session, professional_id: str, blocked_id: str
    ) -> Optional[ProfessionalBlockedDate]:
        return (
            db.query(ProfessionalBlockedDate)
            .filter(
                ProfessionalBlockedDate.id == blocked_id,
                ProfessionalBlockedDate.professional_id == professional_id,
            )
            .first()
        )

    @staticmethod
    def delete_blocked_date(db: Session, blocked: ProfessionalBlockedDate) -> None:
        db.delete(blocked)
        db.commit()

    @staticmethod
    def list_active_bookings(
        db: Session, professional_id: str, day: date, exclude_booking_id: Optional[str] = None
    ) -> list[Booking]:
        """Bookings that occupy time on the professional's calendar (everything but cancelled)"""
        query = db.query(Booking).filter(
            Booking.professional_id == professional_id,
            Booking.booking_date == day,
            Booking.status != "cancelled",
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.booking_time).all()
