"""Appointment router - public bookings and dashboard appointment management"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_tenant_context
from ...database import get_db
from ...rate_limiter import booking_rate_limit
from ...tenancy import TenantContext
from .booking import BookingService
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    BookingRequest,
    BookingResult,
    StatusUpdate,
    StatusUpdateResult,
)
from .service import AppointmentService, appointment_to_dict
from .status import InvalidStatusTransition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def _apply_status(service: AppointmentService, ctx: TenantContext, appointment_id: str, status: str, notes=None):
    try:
        return service.update_status(ctx, appointment_id, status, notes)
    except InvalidStatusTransition as e:
        logger.info(f"🚫 Rejected status change for appointment {appointment_id}: {e}")
        raise HTTPException(status_code=409, detail=str(e)) from e


# ============================================================================
# PUBLIC BOOKING
# ============================================================================


@router.post("/bookings", response_model=BookingResult, status_code=201)
async def create_booking(
    data: BookingRequest,
    _: None = Depends(booking_rate_limit),
    service: BookingService = Depends(get_booking_service),
):
    """Book a slot from the public booking page; online payment returns a checkout URL"""
    return await service.create_booking(data)


# ============================================================================
# DASHBOARD
# ============================================================================


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    staff_id: Optional[str] = Query(None, alias="staffId"),
    start_from: Optional[str] = Query(None, alias="from"),
    start_to: Optional[str] = Query(None, alias="to"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments of the caller's tenant, optionally filtered"""
    return service.list_appointments(ctx, status, date, staff_id, start_from, start_to)


@router.post("/appointments", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: BookingService = Depends(get_booking_service),
):
    """Enter a walk-in or phone booking from the dashboard"""
    appointment = service.create_appointment(ctx, data)
    return appointment_to_dict(appointment, ctx.timezone)


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.get_appointment(ctx, appointment_id)


@router.patch("/appointments/{appointment_id}/status", response_model=StatusUpdateResult)
async def update_appointment_status(
    appointment_id: str,
    data: StatusUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Move an appointment to a new status; illegal transitions are rejected with 409"""
    return _apply_status(service, ctx, appointment_id, data.status, data.notes)


@router.delete("/appointments/{appointment_id}", response_model=StatusUpdateResult)
async def cancel_appointment(
    appointment_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Cancel an appointment (appointments are never hard-deleted)"""
    return _apply_status(service, ctx, appointment_id, "cancelled")
