"""Appointment service - Business logic for the dashboard appointment views"""

import logging
from datetime import date as date_type
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...cache import build_appointment_list_key, cache, invalidate_appointments_cache
from ...config import APPOINTMENTS_CACHE_TTL
from ...models import Appointment
from ...policy import MANAGE_APPOINTMENTS, authorize
from ...tenancy import TenantContext
from ...utils.sanitization import clean_text_input
from ...utils.timezone import (
    ensure_utc,
    isoformat_utc,
    now_in_tenant_time,
    parse_instant,
    parse_time_on_date,
    to_tenant_time,
)
from .repository import AppointmentRepository
from .status import CANCELLED, STATUSES, InvalidStatusTransition, assert_transition

logger = logging.getLogger(__name__)


def appointment_to_dict(appointment: Appointment, tz: str) -> dict:
    """Serialize an appointment with UTC instants and tenant-local wall-clock times"""
    data = {
        "id": appointment.id,
        "tenant_id": appointment.tenant_id,
        "service_id": appointment.service_id,
        "staff_id": appointment.staff_id,
        "customer_id": appointment.customer_id,
        "start_time": isoformat_utc(appointment.start_time),
        "end_time": isoformat_utc(appointment.end_time),
        "local_start": to_tenant_time(appointment.start_time, tz).isoformat(),
        "local_end": to_tenant_time(appointment.end_time, tz).isoformat(),
        "status": appointment.status,
        "notes": appointment.notes,
        "payment_reference": appointment.payment_reference,
        "deposit_paid": bool(appointment.deposit_paid),
        "customer": None,
        "service": None,
        "staff": None,
    }
    if appointment.customer:
        data["customer"] = {
            "id": appointment.customer.id,
            "name": appointment.customer.name,
            "email": appointment.customer.email,
            "phone": appointment.customer.phone,
        }
    if appointment.service:
        data["service"] = {"id": appointment.service.id, "name": appointment.service.name}
    if appointment.staff:
        data["staff"] = {"id": appointment.staff.id, "name": appointment.staff.name}
    return data


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()

    # ============================================================================
    # QUERIES
    # ============================================================================

    def list_appointments(
        self,
        ctx: TenantContext,
        status: Optional[str] = None,
        on_date: Optional[str] = None,
        staff_id: Optional[str] = None,
        start_from: Optional[str] = None,
        start_to: Optional[str] = None,
    ) -> list[dict]:
        """
        List the tenant's appointments ordered by start time.

        Listings filtered only by status and/or a tenant-local day are cached in Redis
        per tenant; bookings and status changes drop the tenant's cached listings.
        """
        authorize(ctx, MANAGE_APPOINTMENTS, ctx.tenant_id)

        if status and status not in STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status")

        cacheable = not (staff_id or start_from or start_to)
        cache_key = build_appointment_list_key(ctx.tenant_id, status, on_date)
        if cacheable:
            cached = cache.get(cache_key)
            if cached is not None:
                logger.info(f"✅ Returning cached appointments for tenant {ctx.tenant_id}")
                return cached

        range_start, range_end = self._resolve_range(ctx, on_date, start_from, start_to)

        try:
            appointments = self.repo.list_appointments(
                self.db, ctx, start_from=range_start, start_to=range_end, status=status, staff_id=staff_id
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to fetch appointments for tenant {ctx.tenant_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch appointments") from e

        result = [appointment_to_dict(a, ctx.timezone) for a in appointments]
        if cacheable:
            cache.set(cache_key, result, ttl=APPOINTMENTS_CACHE_TTL)
        return result

    def _resolve_range(
        self,
        ctx: TenantContext,
        on_date: Optional[str],
        start_from: Optional[str],
        start_to: Optional[str],
    ) -> tuple[Optional[datetime], Optional[datetime]]:
        if on_date:
            try:
                day = date_type.fromisoformat(on_date)
            except ValueError as e:
                raise HTTPException(status_code=400, detail="Invalid date") from e
            day_start = ensure_utc(parse_time_on_date("00:00", day, ctx.timezone))
            day_end = ensure_utc(parse_time_on_date("24:00", day, ctx.timezone))
            # Inclusive upper bound in the repository
            return day_start, day_end - timedelta(microseconds=1)

        try:
            return (
                parse_instant(start_from) if start_from else None,
                parse_instant(start_to) if start_to else None,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid from or to parameter") from e

    def get_appointment(self, ctx: TenantContext, appointment_id: str) -> dict:
        authorize(ctx, MANAGE_APPOINTMENTS, ctx.tenant_id)

        appointment = self.repo.get_appointment(self.db, ctx, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment_to_dict(appointment, ctx.timezone)

    def get_dashboard_summary(self, ctx: TenantContext, now: Optional[datetime] = None) -> dict:
        """Today's appointment counts per status, in the tenant's local day"""
        authorize(ctx, MANAGE_APPOINTMENTS, ctx.tenant_id)

        local_now = to_tenant_time(now, ctx.timezone) if now else now_in_tenant_time(ctx.timezone)
        on_date = local_now.date().isoformat()
        appointments = self.list_appointments(ctx, on_date=on_date)

        counts = {status: 0 for status in STATUSES}
        for appointment in appointments:
            counts[appointment["status"]] = counts.get(appointment["status"], 0) + 1

        return {
            "date": on_date,
            "timezone": ctx.timezone,
            "total": len(appointments),
            "counts": counts,
            "upcoming": [
                a for a in appointments if a["status"] in ("confirmed", "pending_payment")
            ],
        }

    # ============================================================================
    # STATUS CHANGES
    # ============================================================================

    def update_status(
        self,
        ctx: TenantContext,
        appointment_id: str,
        new_status: str,
        notes: Optional[str] = None,
    ) -> dict:
        """
        Move an appointment through the status state machine.

        Notes are replaced when a non-empty value is given. Same-state updates are
        accepted and may still change the notes.

        Raises:
            HTTPException: 404 when the appointment is not in the caller's tenant
            InvalidStatusTransition: when the table forbids the move
        """
        authorize(ctx, MANAGE_APPOINTMENTS, ctx.tenant_id)

        try:
            cleaned_notes = clean_text_input(notes, max_length=2000)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        appointment = self.repo.get_appointment_for_update(self.db, ctx.tenant_id, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        try:
            assert_transition(appointment.status, new_status)
        except InvalidStatusTransition:
            self.db.rollback()
            raise

        previous = appointment.status
        appointment.status = new_status
        if cleaned_notes:
            appointment.notes = cleaned_notes

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update appointment {appointment_id}: {e}")
            return {"success": False, "error": "Failed to update appointment"}

        invalidate_appointments_cache(ctx.tenant_id)
        logger.info(f"✅ Appointment {appointment_id} status {previous} -> {new_status}")
        return {"success": True}

    def cancel_appointment(self, ctx: TenantContext, appointment_id: str) -> dict:
        return self.update_status(ctx, appointment_id, CANCELLED)

