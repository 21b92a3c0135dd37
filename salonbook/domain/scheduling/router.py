"""Scheduling router - FastAPI endpoints for availability and work calendars"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_admin
from ...database import get_db
from ...tenancy import get_tenant_id
from .schemas import (
    AvailabilityResponse,
    BlockedDateCreate,
    BlockedDateResponse,
    CalendarResponse,
    WorkingDaysUpdate,
    WorkSettingsResponse,
    WorkSettingsUpdate,
)
from .service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduling", tags=["Scheduling"])
admin_router = APIRouter(prefix="/admin", tags=["Admin - Scheduling"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


# ============================================================================
# CLIENT ENDPOINTS
# ============================================================================


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    professional_id: str = Query(...),
    day: date = Query(..., alias="date"),
    service_ids: list[str] = Query(...),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Available start times for the selected professional, services and date"""
    # Accept both ?service_ids=a&service_ids=b and ?service_ids=a,b
    ids = [sid.strip() for raw in service_ids for sid in raw.split(",") if sid.strip()]
    return service.get_availability(tenant_id, professional_id, day, ids)


@router.get("/calendar/{professional_id}", response_model=CalendarResponse)
async def get_calendar(
    professional_id: str,
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Effective working days, hours and upcoming days off for a professional"""
    return service.get_calendar(tenant_id, professional_id)


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@admin_router.get("/work-settings", response_model=WorkSettingsResponse)
async def get_work_settings(
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.get_work_settings(tenant_id)


@admin_router.put("/work-settings", response_model=WorkSettingsResponse)
async def update_work_settings(
    data: WorkSettingsUpdate,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Replace the tenant's opening hours, gap, slot step, lunch and working days"""
    logger.info(f"🛠️ Admin {current_user.id} updating work settings for tenant {tenant_id}")
    return service.update_work_settings(tenant_id, data)


@admin_router.put("/professionals/{professional_id}/working-days")
async def set_working_days(
    professional_id: str,
    data: WorkingDaysUpdate,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Set a working-day override, or clear it with null to inherit the tenant's days"""
    professional = service.set_working_days(tenant_id, professional_id, data.working_days)
    return {"professional_id": professional.id, "working_days": professional.working_days}


@admin_router.get(
    "/professionals/{professional_id}/blocked-dates", response_model=list[BlockedDateResponse]
)
async def list_blocked_dates(
    professional_id: str,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.list_blocked_dates(tenant_id, professional_id)


@admin_router.post(
    "/professionals/{professional_id}/blocked-dates",
    response_model=BlockedDateResponse,
    status_code=201,
)
async def add_blocked_date(
    professional_id: str,
    data: BlockedDateCreate,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.add_blocked_date(tenant_id, professional_id, data)


@admin_router.delete("/professionals/{professional_id}/blocked-dates/{blocked_id}")
async def delete_blocked_date(
    professional_id: str,
    blocked_id: str,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: SchedulingService = Depends(get_scheduling_service),
):
    service.delete_blocked_date(tenant_id, professional_id, blocked_id)
    return {"message": "Blocked date removed"}
