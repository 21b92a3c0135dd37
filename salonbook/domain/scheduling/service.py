"""Scheduling service - Business logic for work hours, calendars and availability"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...cache import get_work_settings_cached, invalidate_work_settings_cache, set_work_settings_cached
from ...models import Professional, ProfessionalBlockedDate, WorkSettings
from ..catalog.service import CatalogService
from .availability_service import BusyInterval, available_times_for_day
from .repository import SchedulingRepository
from .schemas import BlockedDateCreate, WorkSettingsUpdate
from .work_calendar import (
    DEFAULT_WORK_HOURS,
    EffectiveCalendar,
    ProfessionalSchedule,
    WorkHours,
    resolve_calendar,
)

logger = logging.getLogger(__name__)


def _settings_to_dict(settings: WorkSettings) -> dict:
    return {
        "start_time": settings.start_time,
        "end_time": settings.end_time,
        "interval_minutes": settings.interval_minutes,
        "slot_step_minutes": settings.slot_step_minutes,
        "lunch_start": settings.lunch_start,
        "lunch_end": settings.lunch_end,
        "working_days": list(settings.working_days or []),
    }


class SchedulingService:
    """Service layer for scheduling business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    # ------------------------------------------------------------------
    # Work settings
    # ------------------------------------------------------------------

    def load_work_hours(self, tenant_id: str) -> WorkHours:
        """Tenant work hours: cache, then database, then built-in defaults"""
        cached = get_work_settings_cached(tenant_id)
        if cached:
            return WorkHours.from_dict(cached)

        settings = self.repo.get_work_settings(self.db, tenant_id)
        if settings:
            data = _settings_to_dict(settings)
        else:
            logger.info(f"ℹ️ No work settings for tenant {tenant_id}, using defaults")
            data = dict(DEFAULT_WORK_HOURS)

        set_work_settings_cached(tenant_id, data)
        return WorkHours.from_dict(data)

    def get_work_settings(self, tenant_id: str) -> dict:
        return self.load_work_hours(tenant_id).to_dict()

    def update_work_settings(self, tenant_id: str, data: WorkSettingsUpdate) -> dict:
        settings = self.repo.save_work_settings(self.db, tenant_id, **data.model_dump())
        invalidate_work_settings_cache(tenant_id)
        logger.info(
            f"✅ Work settings updated for tenant {tenant_id}: "
            f"{settings.start_time}-{settings.end_time}, days={settings.working_days}"
        )
        return _settings_to_dict(settings)

    # ------------------------------------------------------------------
    # Professional calendar
    # ------------------------------------------------------------------

    def get_professional(self, tenant_id: str, professional_id: str) -> Professional:
        professional = self.repo.get_professional(self.db, tenant_id, professional_id)
        if not professional:
            raise HTTPException(status_code=404, detail="Professional not found")
        return professional

    def load_schedule(self, professional: Professional, today: date) -> ProfessionalSchedule:
        blocked = self.repo.list_blocked_dates(self.db, professional.id, from_date=today)
        working_days = (
            frozenset(professional.working_days) if professional.working_days is not None else None
        )
        return ProfessionalSchedule(
            working_days=working_days,
            blocked_dates={b.blocked_date: b.reason for b in blocked},
        )

    def build_calendar(
        self, tenant_id: str, professional: Professional, today: Optional[date] = None
    ) -> EffectiveCalendar:
        today = today or date.today()
        hours = self.load_work_hours(tenant_id)
        return resolve_calendar(hours, self.load_schedule(professional, today), today)

    def get_calendar(self, tenant_id: str, professional_id: str, today: Optional[date] = None) -> dict:
        professional = self.get_professional(tenant_id, professional_id)
        if not professional.active:
            raise HTTPException(status_code=404, detail="Professional not found")

        calendar = self.build_calendar(tenant_id, professional, today)
        return {
            "professional_id": professional.id,
            "start_time": calendar.start_time,
            "end_time": calendar.end_time,
            "interval_minutes": calendar.interval_minutes,
            "lunch_start": calendar.lunch_start,
            "lunch_end": calendar.lunch_end,
            "working_days": sorted(calendar.working_days),
            "inherits_working_days": professional.working_days is None,
            "blocked_dates": sorted(calendar.blocked_dates),
        }

    def busy_intervals(
        self, professional_id: str, day: date, exclude_booking_id: Optional[str] = None
    ) -> list[BusyInterval]:
        bookings = self.repo.list_active_bookings(
            self.db, professional_id, day, exclude_booking_id=exclude_booking_id
        )
        return [BusyInterval.from_booking(b.booking_time, b.duration_minutes) for b in bookings]

    def get_availability(
        self,
        tenant_id: str,
        professional_id: str,
        day: date,
        service_ids: list[str],
        today: Optional[date] = None,
    ) -> dict:
        """Start times a booking for the selected services can use on `day`"""
        selection = CatalogService(self.db).resolve_selection(tenant_id, professional_id, service_ids)
        calendar = self.build_calendar(tenant_id, selection.professional, today)

        times = available_times_for_day(
            calendar, day, selection.total_minutes, self.busy_intervals(professional_id, day)
        )
        return {
            "professional_id": professional_id,
            "date": day,
            "total_minutes": selection.total_minutes,
            "total_price": selection.total_price,
            "bookable": calendar.is_bookable(day),
            "times": times,
        }

    # ------------------------------------------------------------------
    # Admin: working days and days off
    # ------------------------------------------------------------------

    def set_working_days(
        self, tenant_id: str, professional_id: str, working_days: Optional[list[int]]
    ) -> Professional:
        professional = self.get_professional(tenant_id, professional_id)
        professional = self.repo.set_working_days(self.db, professional, working_days)
        logger.info(
            f"✅ Working days for professional {professional_id} set to "
            f"{working_days if working_days is not None else 'tenant default'}"
        )
        return professional

    def list_blocked_dates(
        self, tenant_id: str, professional_id: str, today: Optional[date] = None
    ) -> list[ProfessionalBlockedDate]:
        self.get_professional(tenant_id, professional_id)
        return self.repo.list_blocked_dates(self.db, professional_id, from_date=today or date.today())

    def add_blocked_date(
        self, tenant_id: str, professional_id: str, data: BlockedDateCreate
    ) -> ProfessionalBlockedDate:
        self.get_professional(tenant_id, professional_id)

        existing = self.repo.list_blocked_dates(self.db, professional_id, from_date=data.blocked_date)
        if any(b.blocked_date == data.blocked_date for b in existing):
            raise HTTPException(status_code=409, detail="This date is already blocked")

        try:
            blocked = self.repo.add_blocked_date(
                self.db, tenant_id, professional_id, data.blocked_date, data.reason
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="This date is already blocked") from e

        logger.info(f"📅 Blocked {data.blocked_date} for professional {professional_id}")
        return blocked

    def delete_blocked_date(self, tenant_id: str, professional_id: str, blocked_id: str) -> None:
        self.get_professional(tenant_id, professional_id)
        blocked = self.repo.get_blocked_date(self.db, professional_id, blocked_id)
        if not blocked:
            raise HTTPException(status_code=404, detail="Blocked date not found")
        day = blocked.blocked_date
        self.repo.delete_blocked_date(self.db, blocked)
        logger.info(f"🗑️ Unblocked {day} for professional {professional_id}")
