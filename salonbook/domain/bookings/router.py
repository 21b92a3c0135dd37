"""Booking router - FastAPI endpoints for the booking flow and admin back-office"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_admin, get_current_user
from ...config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW
from ...database import get_db
from ...models import BOOKING_STATUSES, Booking
from ...rate_limiter import create_rate_limiter
from ...tenancy import get_tenant_id
from .schemas import (
    BookingCreate,
    BookingDraft,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    NotificationResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])
admin_router = APIRouter(prefix="/admin", tags=["Admin - Bookings"])

booking_rate_limit = create_rate_limiter(
    BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW, key_prefix="booking_create"
)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def to_response(b: Booking) -> BookingResponse:
    return BookingResponse(
        id=b.id,
        professional_id=b.professional_id,
        professional_name=b.professional.name if b.professional else None,
        service_ids=[link.service_id for link in b.services],
        booking_date=b.booking_date,
        booking_time=b.booking_time,
        duration_minutes=b.duration_minutes,
        total_price=b.total_price,
        discount_amount=b.discount_amount or 0,
        coupon_id=b.coupon_id,
        client_name=b.client_name,
        client_phone=b.client_phone,
        notes=b.notes,
        status=b.status,
        created_at=b.created_at,
    )


# ============================================================================
# CLIENT ENDPOINTS
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    _: None = Depends(booking_rate_limit),
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm a booking: re-check the slot, apply the coupon and save"""
    logger.info(f"📥 Booking request from user {current_user.id} for tenant {tenant_id}")
    return to_response(service.commit_booking(tenant_id, current_user, data))


@router.get("/mine", response_model=list[BookingResponse])
async def list_my_bookings(
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return [to_response(b) for b in service.list_my_bookings(tenant_id, current_user)]


@router.get("/draft")
async def get_draft(
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    """Resume an unfinished booking flow (null when none or expired)"""
    return {"draft": service.get_draft(tenant_id, current_user)}


@router.put("/draft")
async def save_draft(
    draft: BookingDraft,
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return {"draft": service.save_draft(tenant_id, current_user, draft)}


@router.delete("/draft")
async def clear_draft(
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    service.clear_draft(tenant_id, current_user)
    return {"message": "Draft cleared"}


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return to_response(service.get_user_booking(tenant_id, current_user, booking_id))


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel one of the caller's confirmed bookings; the slot frees immediately"""
    return to_response(service.cancel_booking(tenant_id, current_user, booking_id))


@router.patch("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    data: BookingReschedule,
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return to_response(service.reschedule_booking(tenant_id, current_user, booking_id, data))


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@admin_router.get("/bookings", response_model=list[BookingResponse])
async def list_tenant_bookings(
    status: Optional[str] = Query(None),
    day: Optional[date] = Query(None, alias="date"),
    professional_id: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    """Tenant bookings, optionally filtered by status, date and professional"""
    if status and status not in BOOKING_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown status: {status}")
    bookings = service.list_tenant_bookings(tenant_id, status, day, professional_id)
    return [to_response(b) for b in bookings]


@admin_router.post("/bookings/{booking_id}/status", response_model=BookingResponse)
async def set_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel or complete a confirmed booking"""
    logger.info(f"🛠️ Admin {current_user.id} setting booking {booking_id} to {data.status}")
    return to_response(service.admin_set_status(tenant_id, booking_id, data.status))


@admin_router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_notifications(tenant_id, unread_only)


@admin_router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    return service.mark_notification_read(tenant_id, notification_id)
