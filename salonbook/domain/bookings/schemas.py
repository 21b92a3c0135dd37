"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_br_phone, validate_client_name, validate_hhmm
from ...utils.sanitization import sanitize_optional_text
from ..coupons.schemas import normalize_code


class BookingCreate(BaseModel):
    """Everything the client confirmed on the last step of the booking flow"""

    professional_id: str
    service_ids: list[str] = Field(min_length=1)
    booking_date: date
    booking_time: str
    client_name: str
    client_phone: str
    notes: Optional[str] = None
    coupon_code: Optional[str] = None

    @field_validator("booking_time")
    @classmethod
    def validate_time(cls, v):
        return validate_hhmm(v)

    @field_validator("client_name")
    @classmethod
    def validate_name(cls, v):
        return validate_client_name(v)

    @field_validator("client_phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_br_phone(v)

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return sanitize_optional_text(v, max_length=500)

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon(cls, v):
        code = normalize_code(v)
        return code or None


class BookingReschedule(BaseModel):
    booking_date: date
    booking_time: str
    notes: Optional[str] = None

    @field_validator("booking_time")
    @classmethod
    def validate_time(cls, v):
        return validate_hhmm(v)

    @field_validator("notes")
    @classmethod
    def sanitize_notes(cls, v):
        return sanitize_optional_text(v, max_length=500)


class BookingStatusUpdate(BaseModel):
    status: Literal["cancelled", "completed"]


class BookingResponse(BaseModel):
    id: str
    professional_id: str
    professional_name: Optional[str] = None
    service_ids: list[str]
    booking_date: date
    booking_time: str
    duration_minutes: int
    total_price: float
    discount_amount: float = 0
    coupon_id: Optional[str] = None
    client_name: str
    client_phone: str
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class BookingDraft(BaseModel):
    """
    In-progress booking flow state. Fields are free-form until confirmation,
    where BookingCreate validates them properly.
    """

    professional_id: Optional[str] = None
    service_ids: list[str] = Field(default_factory=list, max_length=20)
    booking_date: Optional[date] = None
    booking_time: Optional[str] = None
    client_name: Optional[str] = Field(default=None, max_length=255)
    client_phone: Optional[str] = Field(default=None, max_length=20)
    notes: Optional[str] = Field(default=None, max_length=500)
    coupon_code: Optional[str] = Field(default=None, max_length=50)
    step: Optional[Literal["professional", "services", "datetime", "confirm"]] = None
    saved_at: Optional[datetime] = None


class NotificationResponse(BaseModel):
    id: str
    type: str
    booking_id: Optional[str] = None
    user_id: Optional[str] = None
    message: str
    read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
