"""Customers router - the dashboard customer book"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_tenant_context
from ...database import get_db
from ...models import Customer
from ...tenancy import TenantContext
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["Customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db)


def _customer_response(c: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=c.id,
        tenant_id=c.tenant_id,
        name=c.name,
        email=c.email,
        phone=c.phone,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


@router.get("", response_model=list[CustomerResponse])
async def list_customers(
    search: Optional[str] = Query(None, alias="q"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: CustomerService = Depends(get_customer_service),
):
    """Customers of the caller's business, newest first; ``q`` matches name, email or phone"""
    return [_customer_response(c) for c in service.list_customers(ctx, search)]


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CustomerService = Depends(get_customer_service),
):
    return _customer_response(service.create_customer(ctx, data))


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CustomerService = Depends(get_customer_service),
):
    return _customer_response(service.get_customer(ctx, customer_id))


@router.api_route("/{customer_id}", methods=["PUT", "PATCH"], response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CustomerService = Depends(get_customer_service),
):
    """Partial update; omitted fields are left unchanged"""
    return _customer_response(service.update_customer(ctx, customer_id, data))


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CustomerService = Depends(get_customer_service),
):
    """Delete a customer; their past appointments stay on the books without a customer"""
    return service.delete_customer(ctx, customer_id)
