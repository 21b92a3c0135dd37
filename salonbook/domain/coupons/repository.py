"""Coupon repository - Database operations for coupons and their usage"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Coupon, CouponUsage


class CouponRepository:
    """Repository for coupon database operations"""

    @staticmethod
    def get_by_code(db: Session, tenant_id: str, code: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.tenant_id == tenant_id, Coupon.code == code).first()

    @staticmethod
    def get_by_id(db: Session, tenant_id: str, coupon_id: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id, Coupon.tenant_id == tenant_id).first()

    @staticmethod
    def list_coupons(db: Session, tenant_id: str) -> list[Coupon]:
        return (
            db.query(Coupon)
            .filter(Coupon.tenant_id == tenant_id)
            .order_by(Coupon.created_at.desc())
            .all()
        )

    @staticmethod
    def create(db: Session, tenant_id: str, **values) -> Coupon:
        coupon = Coupon(tenant_id=tenant_id, **values)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    @staticmethod
    def update(db: Session, coupon: Coupon, **values) -> Coupon:
        for key, value in values.items():
            setattr(coupon, key, value)
        db.commit()
        db.refresh(coupon)
        return coupon

    @staticmethod
    def delete(db: Session, coupon: Coupon) -> None:
        db.delete(coupon)
        db.commit()

    @staticmethod
    def has_user_usage(db: Session, coupon_id: str, user_id: str) -> bool:
        return (
            db.query(CouponUsage.id)
            .filter(CouponUsage.coupon_id == coupon_id, CouponUsage.user_id == user_id)
            .first()
            is not None
        )

    @staticmethod
    def count_usages(db: Session, coupon_id: str) -> int:
        return db.query(CouponUsage).filter(CouponUsage.coupon_id == coupon_id).count()

    @staticmethod
    def conditional_increment(
        db: Session, coupon_id: str, expected_uses: int, deactivate: bool = False
    ) -> bool:
        """
        Compare-and-swap on the usage counter.

        Moves current_uses from expected_uses to expected_uses + 1 only if no
        other writer got there first; deactivate flips `active` off in the same
        statement. Returns False when the stored counter no longer matches.
        """
        values = {Coupon.current_uses: expected_uses + 1}
        if deactivate:
            values[Coupon.active] = False

        updated = (
            db.query(Coupon)
            .filter(
                Coupon.id == coupon_id,
                Coupon.current_uses == expected_uses,
                Coupon.active.is_(True),
            )
            .update(values, synchronize_session=False)
        )
        db.commit()
        return updated == 1

    @staticmethod
    def conditional_decrement(
        db: Session, coupon_id: str, applied_uses: int, reactivate: bool = False
    ) -> bool:
        """Give back one use, but only while the counter still reads applied_uses"""
        values = {Coupon.current_uses: applied_uses - 1}
        if reactivate:
            values[Coupon.active] = True

        updated = (
            db.query(Coupon)
            .filter(Coupon.id == coupon_id, Coupon.current_uses == applied_uses)
            .update(values, synchronize_session=False)
        )
        db.commit()
        return updated == 1

    @staticmethod
    def add_usage(
        db: Session, tenant_id: str, coupon_id: str, booking_id: Optional[str], user_id: str
    ) -> CouponUsage:
        usage = CouponUsage(
            tenant_id=tenant_id, coupon_id=coupon_id, booking_id=booking_id, user_id=user_id
        )
        db.add(usage)
        db.commit()
        return usage
