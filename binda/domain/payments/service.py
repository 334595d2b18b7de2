"""Payment service - Paystack deposits and their effect on appointments"""

import logging
import secrets
import time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_appointments_cache
from ...config import APP_URL
from ...models import Appointment, Payment
from ...policy import MANAGE_APPOINTMENTS, authorize
from ...services.paystack_service import PaystackError, PaystackService, paystack_service
from ...tenancy import TenantContext
from ..appointments.status import CONFIRMED, PENDING_PAYMENT, assert_transition
from .repository import PaymentRepository
from .schemas import PaymentInitializeRequest

logger = logging.getLogger(__name__)


def generate_reference() -> str:
    return f"binda_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, gateway: Optional[PaystackService] = None):
        self.db = db
        self.repo = PaymentRepository()
        self.gateway = gateway or paystack_service

    async def start_payment(
        self,
        appointment: Appointment,
        email: str,
        amount: float,
        currency: str,
        callback_url: Optional[str] = None,
    ) -> dict:
        """
        Initialize a Paystack transaction for an appointment and record it as pending.

        Raises:
            HTTPException: 502 when Paystack rejects the request or cannot be reached
        """
        reference = generate_reference()
        try:
            data = await self.gateway.initialize_transaction(
                email=email,
                amount=amount,
                reference=reference,
                currency=currency,
                callback_url=callback_url or f"{APP_URL}/booking/verify",
                metadata={
                    "appointment_id": appointment.id,
                    "tenant_id": appointment.tenant_id,
                    "service_id": appointment.service_id,
                },
            )
        except PaystackError as e:
            raise HTTPException(status_code=502, detail=f"Payment initialization failed: {e}") from e

        self.repo.add_payment(
            self.db,
            tenant_id=appointment.tenant_id,
            appointment_id=appointment.id,
            provider="paystack",
            amount=amount,
            currency=currency,
            status="pending",
            reference=reference,
            provider_reference=data.get("reference") or reference,
        )
        appointment.payment_reference = data.get("reference") or reference
        self.db.commit()

        return {
            "authorization_url": data.get("authorization_url", ""),
            "access_code": data.get("access_code"),
            "reference": data.get("reference") or reference,
        }

    async def initialize(self, ctx: TenantContext, data: PaymentInitializeRequest) -> dict:
        """Collect a deposit for an existing appointment from the dashboard"""
        authorize(ctx, MANAGE_APPOINTMENTS, ctx.tenant_id)

        if not data.email or not data.amount or not data.appointmentId:
            raise HTTPException(status_code=400, detail="Missing appointmentId, email or amount")
        if data.amount <= 0:
            raise HTTPException(status_code=400, detail="Amount must be greater than zero")

        appointment = self.repo.get_appointment(self.db, ctx.tenant_id, data.appointmentId)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        callback_url = data.callbackUrl or f"{APP_URL}/app/appointments/{appointment.id}/confirmation"
        return await self.start_payment(appointment, data.email, data.amount, ctx.currency, callback_url)

    async def verify(self, reference: Optional[str]) -> dict:
        """
        Confirm a transaction with Paystack and apply the outcome.

        A successful payment marks the payment record, sets ``deposit_paid`` and moves a
        ``pending_payment`` appointment to ``confirmed``.
        """
        if not reference:
            raise HTTPException(status_code=400, detail="Missing reference")

        try:
            data = await self.gateway.verify_transaction(reference)
        except PaystackError as e:
            raise HTTPException(status_code=502, detail=f"Payment verification failed: {e}") from e

        status = data.get("status", "unknown")
        payment = self.repo.get_by_reference(self.db, reference)

        if payment and payment.status != "success":
            if status == "success":
                payment.status = "success"
                payment.gateway_response = data
                self._apply_success(payment)
            elif status in ("failed", "abandoned", "reversed"):
                payment.status = "failed"
                payment.gateway_response = data
            self.db.commit()
            if payment.appointment_id:
                invalidate_appointments_cache(payment.tenant_id)
        elif not payment:
            logger.warning(f"⚠️ Verified reference {reference} has no payment record")

        return {
            "status": status,
            "reference": data.get("reference") or reference,
            "amount": (data.get("amount") or 0) / 100,
        }

    def _apply_success(self, payment: Payment) -> None:
        if not payment.appointment_id:
            return

        appointment = self.repo.get_appointment(self.db, payment.tenant_id, payment.appointment_id)
        if not appointment:
            logger.error(f"❌ Payment {payment.reference} references missing appointment")
            return

        appointment.deposit_paid = True
        if appointment.status == PENDING_PAYMENT:
            assert_transition(appointment.status, CONFIRMED)
            appointment.status = CONFIRMED
            logger.info(f"✅ Appointment {appointment.id} confirmed by payment {payment.reference}")
