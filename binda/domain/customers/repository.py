"""Customer repository - Database operations for a tenant's customer book"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Appointment, Customer
from ...tenancy import TenantContext


class CustomerRepository:
    """Repository for customer database operations; every query is tenant-scoped"""

    @staticmethod
    def list_customers(db: Session, tenant_id: str, search: Optional[str] = None) -> list[Customer]:
        query = db.query(Customer).filter(Customer.tenant_id == tenant_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(pattern),
                    Customer.email.ilike(pattern),
                    Customer.phone.ilike(pattern),
                )
            )
        return query.order_by(Customer.created_at.desc(), Customer.name).all()

    @staticmethod
    def get_customer(db: Session, ctx: TenantContext, customer_id: str) -> Optional[Customer]:
        return (
            db.query(Customer)
            .filter(Customer.id == customer_id, Customer.tenant_id == ctx.tenant_id)
            .first()
        )

    @staticmethod
    def create_customer(db: Session, ctx: TenantContext, **data) -> Customer:
        customer = Customer(tenant_id=ctx.tenant_id, **data)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def update_customer(db: Session, customer: Customer, **updates) -> Customer:
        for key, value in updates.items():
            if value is not None and hasattr(customer, key):
                setattr(customer, key, value)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def delete_customer(db: Session, customer: Customer) -> int:
        """
        Delete a customer and detach their appointments, which are kept for the
        business's history. Returns the number of appointments detached.
        """
        detached = (
            db.query(Appointment)
            .filter(Appointment.customer_id == customer.id, Appointment.tenant_id == customer.tenant_id)
            .update({Appointment.customer_id: None}, synchronize_session=False)
        )
        db.delete(customer)
        db.commit()
        return detached
