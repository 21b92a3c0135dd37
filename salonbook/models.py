import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# max_uses at or above this value means "no usage cap"
UNLIMITED_USES = 999999

BOOKING_STATUSES = ("confirmed", "cancelled", "completed")


def generate_uuid():
    """Generate a string UUID primary key"""
    return str(uuid.uuid4())


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    custom_domain = Column(String(255), unique=True, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class TenantAdmin(Base):
    __tablename__ = "tenant_admins"
    __table_args__ = (UniqueConstraint("tenant_id", "user_id", name="uq_tenant_admins_user"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)  # auth provider subject
    created_at = Column(DateTime, server_default=func.now())


class Profile(Base):
    """Client contact cache per tenant, refreshed on every successful booking"""

    __tablename__ = "profiles"
    __table_args__ = (UniqueConstraint("tenant_id", "user_id", name="uq_profiles_tenant_user"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), index=True, nullable=False)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)
    name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)  # digits only
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class WorkSettings(Base):
    __tablename__ = "work_settings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), unique=True, nullable=False)
    start_time = Column(String(5), nullable=False, default="09:00")  # HH:MM
    end_time = Column(String(5), nullable=False, default="18:00")
    interval_minutes = Column(Integer, nullable=False, default=10)  # gap after each booking
    slot_step_minutes = Column(Integer, nullable=False, default=30)
    lunch_start = Column(String(5), nullable=True)
    lunch_end = Column(String(5), nullable=True)
    working_days = Column(JSON, nullable=False, default=lambda: [1, 2, 3, 4, 5, 6])  # 0=Sunday
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Professional(Base):
    __tablename__ = "professionals"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    photo_url = Column(String(500), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    working_days = Column(JSON, nullable=True)  # None = inherit tenant working days
    created_at = Column(DateTime, server_default=func.now())

    blocked_dates = relationship(
        "ProfessionalBlockedDate", back_populates="professional", cascade="all, delete-orphan"
    )


class ProfessionalBlockedDate(Base):
    __tablename__ = "professional_blocked_dates"
    __table_args__ = (
        UniqueConstraint("professional_id", "blocked_date", name="uq_blocked_dates_professional_day"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False)
    blocked_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    professional = relationship("Professional", back_populates="blocked_dates")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, default=0)
    image_url = Column(String(500), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        # Only non-cancelled bookings compete for a start time
        Index(
            "uq_bookings_active_slot",
            "professional_id",
            "booking_date",
            "booking_time",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("idx_bookings_professional_day", "professional_id", "booking_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    professional_id = Column(String(36), ForeignKey("professionals.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    booking_time = Column(String(5), nullable=False)  # HH:MM
    duration_minutes = Column(Integer, nullable=False)  # snapshot at creation
    total_price = Column(Float, nullable=False)
    client_name = Column(String(255), nullable=False)
    client_phone = Column(String(20), nullable=False)
    notes = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="confirmed")
    coupon_id = Column(String(36), ForeignKey("coupons.id"), nullable=True)
    discount_amount = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    professional = relationship("Professional")
    services = relationship("BookingService", back_populates="booking")


class BookingService(Base):
    __tablename__ = "booking_services"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="services")
    service = relationship("Service")


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_coupons_tenant_code"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    code = Column(String(50), nullable=False)  # always uppercase
    discount_type = Column(String(20), nullable=False)  # fixed, percentage
    discount_value = Column(Float, nullable=False)
    max_uses = Column(Integer, nullable=False, default=1)
    current_uses = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    @property
    def unlimited(self) -> bool:
        return self.max_uses >= UNLIMITED_USES


class CouponUsage(Base):
    __tablename__ = "coupon_usage"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=True)
    coupon_id = Column(String(36), ForeignKey("coupons.id"), nullable=False, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=True)
    user_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())


class AdminNotification(Base):
    __tablename__ = "admin_notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=True, index=True)
    type = Column(String(50), nullable=False)  # booking_cancelled, booking_updated, partial_commit_failure
    booking_id = Column(String(36), nullable=True)
    user_id = Column(String(36), nullable=True)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
