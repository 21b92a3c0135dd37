"""Catalog domain schemas"""

from typing import Optional

from pydantic import BaseModel


class ProfessionalResponse(BaseModel):
    id: str
    name: str
    photo_url: Optional[str] = None
    working_days: Optional[list[int]] = None

    class Config:
        from_attributes = True


class ServiceResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: float
    image_url: Optional[str] = None

    class Config:
        from_attributes = True
