"""Coupon router - client validation and admin coupon management"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import AuthUser, get_current_admin, get_current_user
from ...config import COUPON_VALIDATE_RATE_LIMIT, COUPON_VALIDATE_RATE_WINDOW
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...tenancy import get_tenant_id
from .schemas import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidateResponse,
)
from .service import VALIDATE, CouponService

router = APIRouter(prefix="/coupons", tags=["Coupons"])
admin_router = APIRouter(prefix="/admin/coupons", tags=["Admin - Coupons"])

coupon_validate_rate_limit = create_rate_limiter(
    COUPON_VALIDATE_RATE_LIMIT, COUPON_VALIDATE_RATE_WINDOW, key_prefix="coupon_validate"
)


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    """Dependency injection for CouponService"""
    return CouponService(db)


@router.post("/validate", response_model=CouponValidateResponse)
async def validate_coupon(
    data: CouponValidateRequest,
    _: None = Depends(coupon_validate_rate_limit),
    current_user: AuthUser = Depends(get_current_user),
    tenant_id: str = Depends(get_tenant_id),
    service: CouponService = Depends(get_coupon_service),
):
    """Preview a coupon against a subtotal. Never consumes a use."""
    result = service.evaluate(tenant_id, data.code, data.subtotal, current_user.id, action=VALIDATE)
    return result.to_dict()


@admin_router.get("", response_model=list[CouponResponse])
async def list_coupons(
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: CouponService = Depends(get_coupon_service),
):
    return service.list_coupons(tenant_id)


@admin_router.post("", response_model=CouponResponse, status_code=201)
async def create_coupon(
    data: CouponCreate,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: CouponService = Depends(get_coupon_service),
):
    return service.create_coupon(tenant_id, data)


@admin_router.patch("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: str,
    data: CouponUpdate,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: CouponService = Depends(get_coupon_service),
):
    return service.update_coupon(tenant_id, coupon_id, data)


@admin_router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: str,
    current_user: AuthUser = Depends(get_current_admin),
    tenant_id: str = Depends(get_tenant_id),
    service: CouponService = Depends(get_coupon_service),
):
    service.delete_coupon(tenant_id, coupon_id)
    return {"message": "Coupon deleted"}
