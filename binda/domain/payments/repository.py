"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Appointment, Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def add_payment(db: Session, **data) -> Payment:
        """Stage a payment record. Caller commits."""
        payment = Payment(**data)
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def get_by_reference(db: Session, reference: str) -> Optional[Payment]:
        """Match either our reference or the one Paystack assigned"""
        return (
            db.query(Payment)
            .filter(or_(Payment.reference == reference, Payment.provider_reference == reference))
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_appointment(db: Session, tenant_id: str, appointment_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )
