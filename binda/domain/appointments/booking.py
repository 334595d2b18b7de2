"""Booking service - turns a chosen slot into an appointment"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...cache import invalidate_appointments_cache
from ...models import Appointment, Customer, Service, Tenant
from ...policy import MANAGE_WALK_INS, authorize
from ...tenancy import TenantContext
from ...utils.sanitization import clean_text_input
from ...utils.timezone import parse_instant
from ..payments.service import PaymentService
from ..scheduling.repository import SchedulingRepository
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, BookingRequest
from .status import CONFIRMED, PENDING_PAYMENT

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE = "Slot is no longer available"


class BookingService:
    """
    Creates appointments for the public booking flow and the dashboard.

    Every booking runs one transaction: lock the staff row, re-check conflicts
    (ignoring the caller's own slot lock), find or create the customer, insert the
    appointment, delete the consumed lock, commit.
    """

    def __init__(self, db: Session, payments: Optional[PaymentService] = None):
        self.db = db
        self.repo = AppointmentRepository()
        self.scheduling = SchedulingRepository()
        self.payments = payments or PaymentService(db)

    def _resolve_service(self, service_id: str, tenant_id: Optional[str] = None) -> tuple[Service, Tenant]:
        found = self.scheduling.get_bookable_service(self.db, service_id)
        if not found or (tenant_id is not None and found[1].id != tenant_id):
            raise HTTPException(status_code=404, detail="Service not found")
        return found

    def _parse_start(self, value: str) -> datetime:
        try:
            return parse_instant(value)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid start time") from e

    def _reserve(
        self,
        tenant: Tenant,
        service: Service,
        staff_id: str,
        start: datetime,
        status: str,
        customer: Optional[Customer] = None,
        customer_data: Optional[dict] = None,
        notes: Optional[str] = None,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        if not self.scheduling.get_eligible_staff_ids(self.db, tenant.id, service.id, staff_id):
            raise HTTPException(status_code=400, detail="Staff member does not perform this service")

        end = start + timedelta(minutes=service.duration_minutes)
        check_start = start - timedelta(minutes=service.buffer_before_minutes or 0)
        check_end = end + timedelta(minutes=service.buffer_after_minutes or 0)
        now = now or datetime.now(timezone.utc)

        try:
            self.scheduling.lock_staff_row(self.db, staff_id)

            if self.scheduling.has_conflict(
                self.db, staff_id, check_start, check_end, now, ignore_session_id=session_id
            ):
                self.db.rollback()
                raise HTTPException(status_code=409, detail=SLOT_UNAVAILABLE)

            if customer is None:
                customer = self.repo.find_customer(
                    self.db, tenant.id, customer_data.get("email"), customer_data.get("phone")
                ) or self.repo.add_customer(self.db, tenant.id, **customer_data)

            appointment = self.repo.add_appointment(
                self.db,
                tenant_id=tenant.id,
                service_id=service.id,
                staff_id=staff_id,
                customer_id=customer.id,
                start_time=start,
                end_time=end,
                status=status,
                notes=notes,
            )

            if session_id:
                self.scheduling.consume_session_lock(self.db, session_id, staff_id, check_start, check_end)

            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Booking rejected by exclusion constraint for staff {staff_id}: {e.orig}")
            raise HTTPException(status_code=409, detail=SLOT_UNAVAILABLE) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Booking insert failed for staff {staff_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create booking record") from e

        self.db.refresh(appointment)
        invalidate_appointments_cache(tenant.id)
        logger.info(f"📅 Appointment {appointment.id} booked ({status}) for tenant {tenant.slug}")
        return appointment

    async def create_booking(self, data: BookingRequest, now: Optional[datetime] = None) -> dict:
        """
        Public booking. Venue payment confirms immediately; online payment leaves the
        appointment pending_payment and returns the Paystack checkout URL.
        """
        service, tenant = self._resolve_service(data.serviceId)
        start = self._parse_start(data.startTime)

        if not data.customerEmail and not data.customerPhone:
            raise HTTPException(status_code=400, detail="Customer email or phone is required")
        if data.paymentMethod == "online" and not data.customerEmail:
            raise HTTPException(status_code=400, detail="Email is required for online payment")

        online = data.paymentMethod == "online"
        appointment = self._reserve(
            tenant,
            service,
            data.staffId,
            start,
            status=PENDING_PAYMENT if online else CONFIRMED,
            customer_data={
                "name": data.customerName,
                "email": data.customerEmail,
                "phone": data.customerPhone,
            },
            notes=_clean_notes(data.notes) or f"Payment Method: {data.paymentMethod}",
            session_id=data.sessionId,
            now=now,
        )

        if not online:
            return {
                "success": True,
                "bookingId": appointment.id,
                "status": "confirmed",
                "message": "Booking confirmed successfully!",
            }

        # The appointment stays pending_payment if this fails, so the customer can retry
        payment = await self.payments.start_payment(
            appointment,
            email=data.customerEmail,
            amount=float(service.price or 0),
            currency=tenant.currency,
            callback_url=data.callbackUrl,
        )
        return {
            "success": True,
            "bookingId": appointment.id,
            "status": "payment_pending",
            "paymentUrl": payment["authorization_url"],
            "reference": payment["reference"],
            "message": "Redirecting to payment...",
        }

    def create_appointment(self, ctx: TenantContext, data: AppointmentCreate, now: Optional[datetime] = None) -> Appointment:
        """Dashboard booking for an existing or new customer; always confirmed"""
        authorize(ctx, MANAGE_WALK_INS, ctx.tenant_id)

        service, tenant = self._resolve_service(data.serviceId, tenant_id=ctx.tenant_id)
        start = self._parse_start(data.startTime)

        customer = None
        customer_data = None
        if data.customerId:
            customer = self.repo.get_customer(self.db, ctx.tenant_id, data.customerId)
            if not customer:
                raise HTTPException(status_code=404, detail="Customer not found")
        else:
            if not data.customerName or not data.customerPhone:
                raise HTTPException(status_code=400, detail="Customer details required")
            customer_data = {
                "name": data.customerName.strip(),
                "email": data.customerEmail,
                "phone": data.customerPhone,
            }

        return self._reserve(
            tenant,
            service,
            data.staffId,
            start,
            status=CONFIRMED,
            customer=customer,
            customer_data=customer_data,
            notes=_clean_notes(data.notes),
            now=now,
        )


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    try:
        return clean_text_input(notes, max_length=2000)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
