"""Coupon domain schemas - Pydantic models for validation"""

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

CODE_PATTERN = re.compile(r"^[A-Z0-9_-]{2,50}$")


def normalize_code(code: Optional[str]) -> str:
    """Coupon codes are case-insensitive and stored uppercase"""
    return (code or "").strip().upper()


def _validate_code(v: str) -> str:
    code = normalize_code(v)
    if not CODE_PATTERN.match(code):
        raise ValueError("Code must have 2-50 letters, digits, dashes or underscores")
    return code


class CouponValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    subtotal: float = Field(ge=0)

    @field_validator("code")
    @classmethod
    def normalize(cls, v):
        return normalize_code(v)


class CouponValidateResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    coupon_id: Optional[str] = None
    code: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    discount_amount: Optional[float] = None
    final_total: Optional[float] = None


class CouponCreate(BaseModel):
    """Schema for creating a coupon; unlimited overrides max_uses"""

    code: str
    discount_type: Literal["fixed", "percentage"]
    discount_value: float = Field(gt=0)
    max_uses: int = Field(default=1, ge=1)
    unlimited: bool = False
    active: bool = True
    expires_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        return _validate_code(v)

    @model_validator(mode="after")
    def validate_percentage(self):
        if self.discount_type == "percentage" and not 1 <= self.discount_value <= 100:
            raise ValueError("Percentage discounts must be between 1 and 100")
        return self


class CouponUpdate(BaseModel):
    """Schema for partially updating a coupon"""

    code: Optional[str] = None
    discount_type: Optional[Literal["fixed", "percentage"]] = None
    discount_value: Optional[float] = Field(default=None, gt=0)
    max_uses: Optional[int] = Field(default=None, ge=1)
    unlimited: Optional[bool] = None
    active: Optional[bool] = None
    expires_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        if v is None:
            return v
        return _validate_code(v)


class CouponResponse(BaseModel):
    id: str
    code: str
    discount_type: str
    discount_value: float
    max_uses: int
    current_uses: int
    active: bool
    unlimited: bool
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
