"""
Dashboard views served under the app subdomain.

Requests to ``app.<APP_DOMAIN>/...`` are rewritten to ``/app/...`` by the routing
middleware in ``binda.main``; the tenant always comes from the signed-in user.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_tenant_context
from ..database import get_db
from ..domain.appointments.schemas import AppointmentResponse
from ..domain.appointments.service import AppointmentService
from ..domain.tenants.repository import TenantRepository
from ..tenancy import TenantContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/app", tags=["Dashboard"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


@router.get("/dashboard")
async def dashboard(
    ctx: TenantContext = Depends(get_tenant_context),
    service: AppointmentService = Depends(get_appointment_service),
    db: Session = Depends(get_db),
):
    """Today's schedule for the signed-in user's business"""
    tenant = TenantRepository.get_by_id(db, ctx.tenant_id)
    summary = service.get_dashboard_summary(ctx)
    summary["tenant"] = {"id": tenant.id, "name": tenant.name, "slug": tenant.slug} if tenant else None
    summary["role"] = ctx.role
    return summary


@router.get("/appointments", response_model=list[AppointmentResponse])
async def appointments(
    status: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    ctx: TenantContext = Depends(get_tenant_context),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointment listing (cached per tenant, status and day)"""
    return service.list_appointments(ctx, status=status, on_date=date)
