"""Coupon service - validation, discount math and the usage-counter apply step"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import UNLIMITED_USES, Coupon
from .repository import CouponRepository
from .schemas import CouponCreate, CouponUpdate, normalize_code

logger = logging.getLogger(__name__)

VALIDATE = "validate"
APPLY = "apply"

REASON_MESSAGES = {
    "not_found": "Coupon not found",
    "inactive": "This coupon is no longer active",
    "expired": "This coupon has expired",
    "usage_limit_reached": "This coupon has reached its usage limit",
    "already_used": "You have already used this coupon",
    "apply_failed": "Could not apply the coupon. Please try again.",
}

CENTS = Decimal("0.01")


@dataclass
class CouponResult:
    valid: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    coupon_id: Optional[str] = None
    code: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    discount_amount: Optional[float] = None
    final_total: Optional[float] = None
    applied_uses: Optional[int] = None
    deactivated: bool = False

    @classmethod
    def invalid(cls, reason: str) -> "CouponResult":
        return cls(valid=False, reason=reason, message=REASON_MESSAGES[reason])

    def to_dict(self) -> dict:
        return asdict(self)


def compute_discount(discount_type: str, discount_value: float, subtotal: float) -> tuple[float, float]:
    """
    Return (discount_amount, final_total) for a subtotal.

    Fixed discounts are capped at the subtotal; percentage discounts are
    rounded half-up to cents and clamped to the subtotal.
    """
    sub = Decimal(str(subtotal))
    value = Decimal(str(discount_value))

    if discount_type == "percentage":
        amount = (sub * value / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
    else:
        amount = value

    amount = min(amount, sub)
    final = max(sub - amount, Decimal(0))
    return float(amount.quantize(CENTS)), float(final.quantize(CENTS))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CouponService:
    """Service layer for coupon business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CouponRepository()

    def evaluate(
        self,
        tenant_id: str,
        code: str,
        subtotal: float,
        user_id: str,
        action: str = VALIDATE,
        now: Optional[datetime] = None,
    ) -> CouponResult:
        """
        Check a coupon for this user and subtotal, and on action="apply" consume one use.

        Validation never writes. Apply re-reads the coupon and advances the
        usage counter with a compare-and-swap; losing that race yields
        reason "apply_failed" and the caller must start over.
        """
        code = normalize_code(code)
        coupon = self.repo.get_by_code(self.db, tenant_id, code)

        rejection = self._rejection_reason(coupon, user_id, now or _utcnow())
        if rejection:
            logger.info(f"🎟️ Coupon {code!r} rejected for user {user_id}: {rejection}")
            return CouponResult.invalid(rejection)

        discount_amount, final_total = compute_discount(
            coupon.discount_type, coupon.discount_value, subtotal
        )

        applied_uses = None
        reaches_cap = False
        if action == APPLY:
            expected = coupon.current_uses
            reaches_cap = not coupon.unlimited and expected + 1 >= coupon.max_uses
            if not self.repo.conditional_increment(
                self.db, coupon.id, expected, deactivate=reaches_cap
            ):
                logger.warning(
                    f"⚠️ Coupon apply contention on {code} (id={coupon.id}): "
                    f"counter moved past {expected} before our update"
                )
                return CouponResult.invalid("apply_failed")
            self.db.refresh(coupon)
            logger.info(
                f"✅ Coupon {code} applied for user {user_id}: uses {expected} -> {expected + 1}"
                f"{' (now inactive)' if reaches_cap else ''}"
            )
            applied_uses = expected + 1

        return CouponResult(
            valid=True,
            coupon_id=coupon.id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            discount_amount=discount_amount,
            final_total=final_total,
            applied_uses=applied_uses,
            deactivated=reaches_cap,
        )

    def _rejection_reason(
        self, coupon: Optional[Coupon], user_id: str, now: datetime
    ) -> Optional[str]:
        """
        First failing check, most specific first: expiry outranks the active
        flag, and a single-use coupon the user already spent reports that
        rather than the auto-deactivation it caused.
        """
        if coupon is None:
            return "not_found"
        if coupon.expires_at is not None and _as_naive_utc(coupon.expires_at) < now:
            return "expired"
        if coupon.max_uses == 1 and self.repo.has_user_usage(self.db, coupon.id, user_id):
            return "already_used"
        if not coupon.active:
            return "inactive"
        if not coupon.unlimited and coupon.current_uses >= coupon.max_uses:
            return "usage_limit_reached"
        return None

    def record_usage(self, tenant_id: str, coupon_id: str, booking_id: str, user_id: str) -> None:
        self.repo.add_usage(self.db, tenant_id, coupon_id, booking_id, user_id)

    def release_use(self, applied: CouponResult) -> bool:
        """
        Undo an apply whose booking was never created.

        Returns False when another apply moved the counter in the meantime;
        the use then stays consumed.
        """
        released = self.repo.conditional_decrement(
            self.db, applied.coupon_id, applied.applied_uses, reactivate=applied.deactivated
        )
        if released:
            logger.info(
                f"↩️ Coupon {applied.code} use released: uses {applied.applied_uses} -> {applied.applied_uses - 1}"
            )
        else:
            logger.warning(f"⚠️ Coupon {applied.code} use could not be released: counter moved")
        return released

    # ------------------------------------------------------------------
    # Admin CRUD
    # ------------------------------------------------------------------

    def list_coupons(self, tenant_id: str) -> list[Coupon]:
        return self.repo.list_coupons(self.db, tenant_id)

    def get_coupon(self, tenant_id: str, coupon_id: str) -> Coupon:
        coupon = self.repo.get_by_id(self.db, tenant_id, coupon_id)
        if not coupon:
            raise HTTPException(status_code=404, detail="Coupon not found")
        return coupon

    def create_coupon(self, tenant_id: str, data: CouponCreate) -> Coupon:
        if self.repo.get_by_code(self.db, tenant_id, data.code):
            raise HTTPException(status_code=409, detail="A coupon with this code already exists")

        try:
            coupon = self.repo.create(
                self.db,
                tenant_id,
                code=data.code,
                discount_type=data.discount_type,
                discount_value=data.discount_value,
                max_uses=UNLIMITED_USES if data.unlimited else data.max_uses,
                current_uses=0,
                active=data.active,
                expires_at=_as_naive_utc(data.expires_at) if data.expires_at else None,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="A coupon with this code already exists") from e

        logger.info(f"✅ Coupon {coupon.code} created for tenant {tenant_id}")
        return coupon

    def update_coupon(self, tenant_id: str, coupon_id: str, data: CouponUpdate) -> Coupon:
        coupon = self.get_coupon(tenant_id, coupon_id)
        values = data.model_dump(exclude_unset=True)

        unlimited = values.pop("unlimited", None)
        if unlimited:
            values["max_uses"] = UNLIMITED_USES
        elif unlimited is False and "max_uses" not in values and coupon.unlimited:
            raise HTTPException(status_code=422, detail="max_uses is required when removing the unlimited flag")

        if "code" in values and values["code"] != coupon.code:
            if self.repo.get_by_code(self.db, tenant_id, values["code"]):
                raise HTTPException(status_code=409, detail="A coupon with this code already exists")

        discount_type = values.get("discount_type", coupon.discount_type)
        discount_value = values.get("discount_value", coupon.discount_value)
        if discount_type == "percentage" and not 1 <= discount_value <= 100:
            raise HTTPException(status_code=422, detail="Percentage discounts must be between 1 and 100")

        if values.get("expires_at"):
            values["expires_at"] = _as_naive_utc(values["expires_at"])

        try:
            coupon = self.repo.update(self.db, coupon, **values)
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="A coupon with this code already exists") from e

        logger.info(f"✅ Coupon {coupon.code} updated: {sorted(values)}")
        return coupon

    def delete_coupon(self, tenant_id: str, coupon_id: str) -> None:
        coupon = self.get_coupon(tenant_id, coupon_id)
        if coupon.current_uses > 0 or self.repo.count_usages(self.db, coupon.id):
            raise HTTPException(
                status_code=409, detail="This coupon has been used; deactivate it instead"
            )
        code = coupon.code
        self.repo.delete(self.db, coupon)
        logger.info(f"🗑️ Coupon {code} deleted from tenant {tenant_id}")
