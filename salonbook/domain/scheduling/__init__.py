"""
Scheduling Domain

Turns tenant work settings, professional overrides and existing bookings
into bookable start times.

Structure:
- time_calculator.py      HH:MM <-> minutes, interval overlap, weekday numbering
- work_calendar.py        tenant settings + professional overrides -> effective calendar
- availability_service.py slot enumeration for a requested duration
- conflict_guard.py       submission-time re-check of a chosen slot
- repository.py           work settings, days off and busy-time queries
- service.py / router.py  client availability and admin calendar endpoints
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
