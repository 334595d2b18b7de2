"""Appointment repository - Database operations for appointments and customers"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Customer
from ...tenancy import TenantContext


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def list_appointments(
        db: Session,
        ctx: TenantContext,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        status: Optional[str] = None,
        staff_id: Optional[str] = None,
    ) -> list[Appointment]:
        query = (
            db.query(Appointment)
            .options(
                joinedload(Appointment.customer),
                joinedload(Appointment.service),
                joinedload(Appointment.staff),
            )
            .filter(Appointment.tenant_id == ctx.tenant_id)
        )
        if start_from is not None:
            query = query.filter(Appointment.start_time >= start_from)
        if start_to is not None:
            query = query.filter(Appointment.start_time <= start_to)
        if status:
            query = query.filter(Appointment.status == status)
        if staff_id:
            query = query.filter(Appointment.staff_id == staff_id)
        return query.order_by(Appointment.start_time).all()

    @staticmethod
    def get_appointment(db: Session, ctx: TenantContext, appointment_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(
                joinedload(Appointment.customer),
                joinedload(Appointment.service),
                joinedload(Appointment.staff),
            )
            .filter(Appointment.id == appointment_id, Appointment.tenant_id == ctx.tenant_id)
            .first()
        )

    @staticmethod
    def get_appointment_for_update(db: Session, tenant_id: str, appointment_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def find_customer(
        db: Session, tenant_id: str, email: Optional[str], phone: Optional[str]
    ) -> Optional[Customer]:
        """Existing customer of the tenant matching either the email or the phone number"""
        matchers = []
        if email:
            matchers.append(Customer.email == email)
        if phone:
            matchers.append(Customer.phone == phone)
        if not matchers:
            return None
        return (
            db.query(Customer)
            .filter(Customer.tenant_id == tenant_id, or_(*matchers))
            .order_by(Customer.created_at)
            .first()
        )

    @staticmethod
    def get_customer(db: Session, tenant_id: str, customer_id: str) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.tenant_id == tenant_id)
            .first()
        )

    @staticmethod
    def add_customer(db: Session, tenant_id: str, **data) -> Customer:
        """Stage a new customer in the current transaction. Caller commits."""
        customer = Customer(tenant_id=tenant_id, **data)
        db.add(customer)
        db.flush()
        return customer

    @staticmethod
    def add_appointment(db: Session, **data) -> Appointment:
        """Stage a new appointment in the current transaction. Caller commits."""
        appointment = Appointment(**data)
        db.add(appointment)
        db.flush()
        return appointment
