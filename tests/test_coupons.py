from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from salonbook.domain.coupons.repository import CouponRepository
from salonbook.domain.coupons.schemas import CouponCreate, CouponUpdate
from salonbook.domain.coupons.service import APPLY, CouponService, compute_discount
from salonbook.models import UNLIMITED_USES, Coupon

from .conftest import OTHER_USER_ID, USER_ID

NOW = datetime(2030, 1, 15, 12, 0)


def make_coupon(db, tenant_id, **values):
    data = {
        "code": "SAVE10",
        "discount_type": "percentage",
        "discount_value": 10,
        "max_uses": 1,
        "current_uses": 0,
        "active": True,
    }
    data.update(values)
    coupon = Coupon(tenant_id=tenant_id, **data)
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    return coupon


def test_compute_discount_fixed_is_capped_at_subtotal():
    assert compute_discount("fixed", 20, 100) == (20.0, 80.0)
    assert compute_discount("fixed", 150, 100) == (100.0, 0.0)


def test_compute_discount_percentage_rounds_half_up_to_cents():
    assert compute_discount("percentage", 10, 100) == (10.0, 90.0)
    assert compute_discount("percentage", 15, 33.3) == (5.0, 28.3)
    assert compute_discount("percentage", 12.5, 0.1) == (0.01, 0.09)
    assert compute_discount("percentage", 100, 80) == (80.0, 0.0)


def test_single_use_percentage_coupon_lifecycle(db, tenant_id):
    coupon = make_coupon(db, tenant_id)
    service = CouponService(db)

    preview = service.evaluate(tenant_id, "save10", 100.0, USER_ID, now=NOW)
    assert preview.valid
    assert preview.discount_amount == 10.0
    assert preview.final_total == 90.0

    applied = service.evaluate(tenant_id, "SAVE10", 100.0, USER_ID, action=APPLY, now=NOW)
    assert applied.valid
    service.record_usage(tenant_id, coupon.id, None, USER_ID)

    db.refresh(coupon)
    assert coupon.current_uses == 1
    assert coupon.active is False

    again = service.evaluate(tenant_id, "SAVE10", 100.0, USER_ID, now=NOW)
    assert not again.valid
    assert again.reason == "already_used"


def test_single_use_coupon_spent_by_one_user_is_capped_for_another(db, tenant_id):
    coupon = make_coupon(db, tenant_id)
    service = CouponService(db)
    service.evaluate(tenant_id, "SAVE10", 100.0, USER_ID, action=APPLY, now=NOW)
    service.record_usage(tenant_id, coupon.id, None, USER_ID)

    other = service.evaluate(tenant_id, "SAVE10", 100.0, OTHER_USER_ID, now=NOW)

    assert not other.valid
    assert other.reason in ("inactive", "usage_limit_reached")


def test_capped_coupon_is_shared_between_users_up_to_its_cap(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="TWICE", max_uses=2)
    service = CouponService(db)

    assert service.evaluate(tenant_id, "TWICE", 50, USER_ID, action=APPLY, now=NOW).valid
    assert service.evaluate(tenant_id, "TWICE", 50, OTHER_USER_ID, action=APPLY, now=NOW).valid
    third = service.evaluate(tenant_id, "TWICE", 50, "third-user", action=APPLY, now=NOW)

    db.refresh(coupon)
    assert not third.valid
    assert coupon.current_uses == 2
    assert coupon.active is False


def test_expired_coupon_is_rejected_whatever_its_state(db, tenant_id):
    yesterday = NOW - timedelta(days=1)
    make_coupon(db, tenant_id, code="OLD1", expires_at=yesterday, max_uses=UNLIMITED_USES)
    make_coupon(db, tenant_id, code="OLD2", expires_at=yesterday, active=False)
    make_coupon(db, tenant_id, code="OLD3", expires_at=yesterday, max_uses=5, current_uses=5)
    service = CouponService(db)

    for code in ("OLD1", "OLD2", "OLD3"):
        result = service.evaluate(tenant_id, code, 100, USER_ID, now=NOW)
        assert not result.valid
        assert result.reason == "expired"


def test_unknown_and_inactive_codes(db, tenant_id):
    make_coupon(db, tenant_id, code="PAUSED", active=False, max_uses=10)
    service = CouponService(db)

    assert service.evaluate(tenant_id, "NOPE", 100, USER_ID, now=NOW).reason == "not_found"
    assert service.evaluate(tenant_id, "paused", 100, USER_ID, now=NOW).reason == "inactive"


def test_codes_are_scoped_to_tenant(db, tenant_id):
    make_coupon(db, tenant_id, code="LOCAL")

    result = CouponService(db).evaluate("another-tenant", "LOCAL", 100, USER_ID, now=NOW)

    assert result.reason == "not_found"


def test_validate_never_changes_usage(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="PEEK", max_uses=3, current_uses=2)
    service = CouponService(db)

    for _ in range(5):
        assert service.evaluate(tenant_id, "PEEK", 100, USER_ID, now=NOW).valid

    db.refresh(coupon)
    assert coupon.current_uses == 2
    assert coupon.active is True


def test_usage_counter_never_passes_cap(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="FIVE", max_uses=5, current_uses=3)
    service = CouponService(db)
    seen = [coupon.current_uses]

    for i in range(6):
        service.evaluate(tenant_id, "FIVE", 100, f"user-{i}", action=APPLY, now=NOW)
        db.refresh(coupon)
        seen.append(coupon.current_uses)

    assert seen == sorted(seen)
    assert max(seen) == 5
    assert coupon.active is False


def test_unlimited_coupon_never_deactivates(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="ALWAYS", max_uses=UNLIMITED_USES, current_uses=41)

    result = CouponService(db).evaluate(tenant_id, "ALWAYS", 100, USER_ID, action=APPLY, now=NOW)

    db.refresh(coupon)
    assert result.valid
    assert coupon.current_uses == 42
    assert coupon.active is True


def test_conditional_increment_rejects_stale_counter(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="RACE", max_uses=10, current_uses=5)

    assert CouponRepository.conditional_increment(db, coupon.id, 5) is True
    assert CouponRepository.conditional_increment(db, coupon.id, 5) is False

    db.refresh(coupon)
    assert coupon.current_uses == 6


def test_released_use_restores_counter_and_active_flag(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="ONCE")
    service = CouponService(db)

    applied = service.evaluate(tenant_id, "ONCE", 100, USER_ID, action=APPLY, now=NOW)
    assert applied.applied_uses == 1
    assert applied.deactivated

    assert service.release_use(applied) is True
    db.refresh(coupon)
    assert coupon.current_uses == 0
    assert coupon.active is True
    assert service.evaluate(tenant_id, "ONCE", 100, OTHER_USER_ID, now=NOW).valid


def test_release_leaves_a_moved_counter_alone(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="BUSY", max_uses=10)
    service = CouponService(db)

    applied = service.evaluate(tenant_id, "BUSY", 100, USER_ID, action=APPLY, now=NOW)
    service.evaluate(tenant_id, "BUSY", 100, OTHER_USER_ID, action=APPLY, now=NOW)

    assert service.release_use(applied) is False
    assert CouponRepository.conditional_decrement(db, coupon.id, 1) is False
    db.refresh(coupon)
    assert coupon.current_uses == 2


def test_losing_apply_reports_retryable_failure(db, tenant_id, monkeypatch):
    coupon = make_coupon(db, tenant_id, code="RACE", max_uses=10, current_uses=5)
    original_get = CouponRepository.get_by_code

    def get_then_lose_race(session, tenant, code):
        found = original_get(session, tenant, code)
        # Keep our stale read while a concurrent apply lands first
        session.expunge(found)
        assert CouponRepository.conditional_increment(session, found.id, found.current_uses)
        return found

    monkeypatch.setattr(CouponRepository, "get_by_code", staticmethod(get_then_lose_race))

    result = CouponService(db).evaluate(tenant_id, "RACE", 100, USER_ID, action=APPLY, now=NOW)

    assert not result.valid
    assert result.reason == "apply_failed"
    stored = db.query(Coupon).filter(Coupon.id == coupon.id).one()
    assert stored.current_uses == 6


def test_create_coupon_normalizes_code_and_maps_unlimited(db, tenant_id):
    service = CouponService(db)

    coupon = service.create_coupon(
        tenant_id,
        CouponCreate(code=" verao25 ", discount_type="percentage", discount_value=25, unlimited=True),
    )

    assert coupon.code == "VERAO25"
    assert coupon.max_uses == UNLIMITED_USES
    assert coupon.unlimited


def test_create_coupon_rejects_duplicate_code(db, tenant_id):
    service = CouponService(db)
    service.create_coupon(tenant_id, CouponCreate(code="DUP", discount_type="fixed", discount_value=5))

    with pytest.raises(HTTPException) as exc_info:
        service.create_coupon(
            tenant_id, CouponCreate(code="dup", discount_type="fixed", discount_value=5)
        )

    assert exc_info.value.status_code == 409


@pytest.mark.parametrize("value", [0.5, 150])
def test_percentage_outside_1_to_100_is_rejected(value):
    with pytest.raises(ValueError):
        CouponCreate(code="BADPCT", discount_type="percentage", discount_value=value)


def test_small_fixed_discount_is_allowed():
    assert CouponCreate(code="TROCO", discount_type="fixed", discount_value=0.5).discount_value == 0.5


def test_update_rejects_percentage_below_one(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="PCT")

    with pytest.raises(HTTPException) as exc_info:
        CouponService(db).update_coupon(tenant_id, coupon.id, CouponUpdate(discount_value=0.5))

    assert exc_info.value.status_code == 422
    db.refresh(coupon)
    assert coupon.discount_value == 10


def test_update_rejects_percentage_switch_with_large_value(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="FIXED200", discount_type="fixed", discount_value=200)

    with pytest.raises(HTTPException) as exc_info:
        CouponService(db).update_coupon(
            tenant_id, coupon.id, CouponUpdate(discount_type="percentage")
        )

    assert exc_info.value.status_code == 422


def test_used_coupon_cannot_be_deleted(db, tenant_id):
    coupon = make_coupon(db, tenant_id, code="USED", max_uses=5, current_uses=1)

    with pytest.raises(HTTPException) as exc_info:
        CouponService(db).delete_coupon(tenant_id, coupon.id)

    assert exc_info.value.status_code == 409
