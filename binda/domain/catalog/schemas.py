"""Catalog domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_email, validate_phone, validate_time_of_day
from ...utils.timezone import parse_instant


# ============================================================================
# SERVICES
# ============================================================================


class ServiceCreate(BaseModel):
    """Schema for creating a bookable service"""

    name: str
    description: Optional[str] = None
    duration_minutes: int
    buffer_before_minutes: int = 0
    buffer_after_minutes: int = 0
    price: float = 0
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be greater than zero")
        return v

    @field_validator("buffer_before_minutes", "buffer_after_minutes")
    @classmethod
    def validate_buffer(cls, v):
        if v < 0:
            raise ValueError("Buffers cannot be negative")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v


class ServiceUpdate(BaseModel):
    """Schema for updating a service; assignedStaffIds replaces the staff assignment"""

    name: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = None
    buffer_before_minutes: Optional[int] = None
    buffer_after_minutes: Optional[int] = None
    price: Optional[float] = None
    is_active: Optional[bool] = None
    assignedStaffIds: Optional[list[str]] = None

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Duration must be greater than zero")
        return v

    @field_validator("buffer_before_minutes", "buffer_after_minutes", "price")
    @classmethod
    def validate_non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("Value cannot be negative")
        return v


class ServiceResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    description: Optional[str] = None
    duration_minutes: int
    buffer_before_minutes: int
    buffer_after_minutes: int
    price: float
    is_active: bool
    created_at: Optional[datetime] = None


class StaffAssignment(BaseModel):
    staffIds: list[str]


# ============================================================================
# STAFF
# ============================================================================


class StaffCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class StaffUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class StaffResponse(BaseModel):
    id: str
    tenant_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class PublicStaffResponse(BaseModel):
    id: str
    name: str
    is_active: bool


# ============================================================================
# WORKING HOURS / TIME OFF
# ============================================================================


class WorkingHoursEntry(BaseModel):
    """One interval of a weekly schedule, tenant-local wall-clock time"""

    day_of_week: int
    start_time: str
    end_time: str

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, v):
        if not 0 <= v <= 6:
            raise ValueError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
        return v

    @field_validator("start_time")
    @classmethod
    def validate_start(cls, v):
        return validate_time_of_day(v)

    @field_validator("end_time")
    @classmethod
    def validate_end(cls, v):
        return validate_time_of_day(v, allow_end_of_day=True)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WorkingHoursUpdate(BaseModel):
    hours: list[WorkingHoursEntry]


class WorkingHoursResponse(WorkingHoursEntry):
    id: str
    staff_id: str


class TimeOffCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v):
        return parse_instant(v)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class TimeOffResponse(BaseModel):
    id: str
    staff_id: str
    start_time: str
    end_time: str
    reason: Optional[str] = None


class ClosureResponse(BaseModel):
    """Business-wide closure; new closures are created from a TimeOffCreate body"""

    id: str
    tenant_id: str
    start_time: str
    end_time: str
    reason: Optional[str] = None
