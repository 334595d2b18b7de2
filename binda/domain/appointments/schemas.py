"""Appointment domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone
from .status import STATUSES


class BookingRequest(BaseModel):
    """Public booking submitted by a customer at the end of the booking flow"""

    serviceId: str
    staffId: str
    startTime: str  # ISO 8601 instant
    customerName: str
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    paymentMethod: Literal["venue", "online"] = "venue"
    callbackUrl: Optional[str] = None
    sessionId: Optional[str] = None  # booking session holding the slot lock
    notes: Optional[str] = None

    @field_validator("customerName")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Customer name is required")
        return v.strip()

    @field_validator("customerEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class AppointmentCreate(BaseModel):
    """Appointment entered by staff from the dashboard (walk-ins, phone bookings)"""

    serviceId: str
    staffId: str
    startTime: str
    customerId: Optional[str] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("customerEmail")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class StatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(STATUSES)}")
        return v


class StatusUpdateResult(BaseModel):
    success: bool
    error: Optional[str] = None


class BookingResult(BaseModel):
    success: bool
    bookingId: str
    status: Literal["confirmed", "payment_pending"]
    message: str
    paymentUrl: Optional[str] = None
    reference: Optional[str] = None


class CustomerSummary(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class NamedRef(BaseModel):
    id: str
    name: str


class AppointmentResponse(BaseModel):
    id: str
    tenant_id: str
    service_id: str
    staff_id: str
    customer_id: Optional[str] = None
    start_time: str
    end_time: str
    local_start: str
    local_end: str
    status: str
    notes: Optional[str] = None
    payment_reference: Optional[str] = None
    deposit_paid: bool
    customer: Optional[CustomerSummary] = None
    service: Optional[NamedRef] = None
    staff: Optional[NamedRef] = None
