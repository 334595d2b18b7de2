"""Customer service - Business logic for the dashboard customer book"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...cache import invalidate_appointments_cache
from ...models import Customer
from ...policy import MANAGE_CUSTOMERS, authorize
from ...tenancy import TenantContext
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerUpdate

logger = logging.getLogger(__name__)

DUPLICATE_PHONE = "A customer with this phone number already exists"


class CustomerService:
    """Service layer for customer business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CustomerRepository()

    def list_customers(self, ctx: TenantContext, search: Optional[str] = None) -> list[Customer]:
        authorize(ctx, MANAGE_CUSTOMERS, ctx.tenant_id)
        return self.repo.list_customers(self.db, ctx.tenant_id, search.strip() if search else None)

    def get_customer(self, ctx: TenantContext, customer_id: str) -> Customer:
        authorize(ctx, MANAGE_CUSTOMERS, ctx.tenant_id)
        customer = self.repo.get_customer(self.db, ctx, customer_id)
        if not customer:
            raise HTTPException(status_code=404, detail="Customer not found")
        return customer

    def create_customer(self, ctx: TenantContext, data: CustomerCreate) -> Customer:
        authorize(ctx, MANAGE_CUSTOMERS, ctx.tenant_id)
        try:
            customer = self.repo.create_customer(
                self.db, ctx, name=data.name, phone=data.phone, email=data.email
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail=DUPLICATE_PHONE) from e

        logger.info(f"👤 Customer {customer.id} added to tenant {ctx.tenant_id}")
        return customer

    def update_customer(self, ctx: TenantContext, customer_id: str, data: CustomerUpdate) -> Customer:
        customer = self.get_customer(ctx, customer_id)
        try:
            customer = self.repo.update_customer(
                self.db, customer, name=data.name, phone=data.phone, email=data.email
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail=DUPLICATE_PHONE) from e

        # Listings embed the customer's contact details
        invalidate_appointments_cache(ctx.tenant_id)
        return customer

    def delete_customer(self, ctx: TenantContext, customer_id: str) -> dict:
        customer = self.get_customer(ctx, customer_id)
        detached = self.repo.delete_customer(self.db, customer)
        invalidate_appointments_cache(ctx.tenant_id)
        logger.info(
            f"🗑️ Customer {customer_id} deleted from tenant {ctx.tenant_id} ({detached} appointments kept)"
        )
        return {"success": True}
