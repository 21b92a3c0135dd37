"""Booking domain - commit orchestration, booking lifecycle, drafts and admin notifications"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
