"""Tenant domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_currency, validate_timezone


class TenantCreate(BaseModel):
    """Schema for onboarding a new tenant"""

    name: str
    slug: str
    timezone: str = "UTC"
    currency: str = "NGN"

    @field_validator("name", "slug")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Name and slug are required")
        return v.strip()

    @field_validator("timezone")
    @classmethod
    def validate_tz(cls, v):
        return validate_timezone(v)

    @field_validator("currency")
    @classmethod
    def validate_cur(cls, v):
        return validate_currency(v)


class TenantUpdate(BaseModel):
    """Schema for updating tenant settings"""

    name: Optional[str] = None
    timezone: Optional[str] = None
    currency: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name is required")
        return v.strip() if v else v

    @field_validator("timezone")
    @classmethod
    def validate_tz(cls, v):
        return validate_timezone(v) if v is not None else v

    @field_validator("currency")
    @classmethod
    def validate_cur(cls, v):
        return validate_currency(v) if v is not None else v


class TenantPublic(BaseModel):
    """Fields of a tenant visible to anonymous booking pages"""

    id: str
    name: str
    slug: str
    timezone: str
    currency: str
    status: str


class TenantResponse(TenantPublic):
    created_at: Optional[datetime] = None


class BookingPageService(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: float


class BookingPageResponse(BaseModel):
    """Payload for /book/{slug}"""

    tenant: TenantPublic
    services: list[BookingPageService]
