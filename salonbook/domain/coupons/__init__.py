"""Coupon domain - promotional codes, discount math and usage tracking"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
