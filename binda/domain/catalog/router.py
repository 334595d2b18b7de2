"""Catalog router - public catalog reads and tenant-admin CRUD for services and staff"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_tenant_context
from ...database import get_db
from ...models import Service, Staff, StaffTimeOff, TenantTimeOff
from ...tenancy import TenantContext
from ...utils.timezone import isoformat_utc
from .schemas import (
    ClosureResponse,
    PublicStaffResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
    StaffAssignment,
    StaffCreate,
    StaffResponse,
    StaffUpdate,
    TimeOffCreate,
    TimeOffResponse,
    WorkingHoursResponse,
    WorkingHoursUpdate,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/api/public", tags=["Public Catalog"])
router = APIRouter(prefix="/api", tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def _service_response(s: Service) -> ServiceResponse:
    return ServiceResponse(
        id=s.id,
        tenant_id=s.tenant_id,
        name=s.name,
        description=s.description,
        duration_minutes=s.duration_minutes,
        buffer_before_minutes=s.buffer_before_minutes,
        buffer_after_minutes=s.buffer_after_minutes,
        price=float(s.price or 0),
        is_active=s.is_active,
        created_at=s.created_at,
    )


def _staff_response(s: Staff) -> StaffResponse:
    return StaffResponse(
        id=s.id,
        tenant_id=s.tenant_id,
        name=s.name,
        email=s.email,
        phone=s.phone,
        is_active=s.is_active,
        created_at=s.created_at,
    )


def _time_off_response(t: StaffTimeOff) -> TimeOffResponse:
    return TimeOffResponse(
        id=t.id,
        staff_id=t.staff_id,
        start_time=isoformat_utc(t.start_time),
        end_time=isoformat_utc(t.end_time),
        reason=t.reason,
    )


def _closure_response(c: TenantTimeOff) -> ClosureResponse:
    return ClosureResponse(
        id=c.id,
        tenant_id=c.tenant_id,
        start_time=isoformat_utc(c.start_time),
        end_time=isoformat_utc(c.end_time),
        reason=c.reason,
    )


# ============================================================================
# PUBLIC (booking flow, no authentication)
# ============================================================================


@public_router.get("/services", response_model=list[ServiceResponse])
async def get_public_services(
    tenant_id: Optional[str] = Query(None, alias="tenantId"),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services of a tenant, ordered by name"""
    return [_service_response(s) for s in service.get_public_services(tenant_id)]


@public_router.get("/staff", response_model=list[PublicStaffResponse])
async def get_public_staff(
    service_id: Optional[str] = Query(None, alias="serviceId"),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active staff assigned to a service"""
    return [
        PublicStaffResponse(id=s.id, name=s.name, is_active=s.is_active)
        for s in service.get_public_staff(service_id)
    ]


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def list_services(
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return [_service_response(s) for s in service.list_services(ctx)]


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return _service_response(service.create_service(ctx, data))


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return _service_response(service.get_service(ctx, service_id))


@router.put("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: str,
    data: ServiceUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return _service_response(service.update_service(ctx, service_id, data))


@router.delete("/services/{service_id}")
async def deactivate_service(
    service_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_service(ctx, service_id)


@router.get("/services/{service_id}/staff", response_model=list[StaffResponse])
async def get_service_staff(
    service_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return [_staff_response(s) for s in service.get_service_staff(ctx, service_id)]


@router.put("/services/{service_id}/staff", response_model=list[StaffResponse])
async def set_service_staff(
    service_id: str,
    data: StaffAssignment,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    """Replace the set of staff who can perform a service"""
    return [_staff_response(s) for s in service.set_service_staff(ctx, service_id, data.staffIds)]


# ============================================================================
# STAFF
# ============================================================================


@router.get("/staff", response_model=list[StaffResponse])
async def list_staff(
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return [_staff_response(s) for s in service.list_staff(ctx)]


@router.post("/staff", response_model=StaffResponse, status_code=201)
async def create_staff(
    data: StaffCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    """Create a staff member; a Mon-Fri 09:00-17:00 schedule is set up by default"""
    return _staff_response(service.create_staff(ctx, data))


@router.get("/staff/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return _staff_response(service.get_staff(ctx, staff_id))


@router.put("/staff/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: str,
    data: StaffUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return _staff_response(service.update_staff(ctx, staff_id, data))


@router.delete("/staff/{staff_id}")
async def deactivate_staff(
    staff_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_staff(ctx, staff_id)


# ============================================================================
# WORKING HOURS / TIME OFF
# ============================================================================


@router.get("/staff/{staff_id}/working-hours", response_model=list[WorkingHoursResponse])
async def get_working_hours(
    staff_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return [
        WorkingHoursResponse(
            id=h.id,
            staff_id=h.staff_id,
            day_of_week=h.day_of_week,
            start_time=h.start_time,
            end_time=h.end_time,
        )
        for h in service.get_working_hours(ctx, staff_id)
    ]


@router.put("/staff/{staff_id}/working-hours")
async def replace_working_hours(
    staff_id: str,
    data: WorkingHoursUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    """Replace the full weekly schedule; days not listed are days off"""
    return service.replace_working_hours(ctx, staff_id, data.hours)


@router.get("/staff/{staff_id}/time-off", response_model=list[TimeOffResponse])
async def list_time_off(
    staff_id: str,
    from_time: Optional[str] = Query(None, alias="from"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return [_time_off_response(t) for t in service.list_time_off(ctx, staff_id, from_time)]


@router.post("/staff/{staff_id}/time-off", response_model=TimeOffResponse, status_code=201)
async def create_time_off(
    staff_id: str,
    data: TimeOffCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return _time_off_response(service.create_time_off(ctx, staff_id, data))


@router.delete("/staff/{staff_id}/time-off")
async def delete_time_off(
    staff_id: str,
    time_off_id: Optional[str] = Query(None, alias="timeOffId"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.delete_time_off(ctx, staff_id, time_off_id)


# ============================================================================
# BUSINESS CLOSURES
# ============================================================================


@router.get("/tenant/time-off", response_model=list[ClosureResponse])
async def list_closures(
    from_time: Optional[str] = Query(None, alias="from"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return [_closure_response(c) for c in service.list_closures(ctx, from_time)]


@router.post("/tenant/time-off", response_model=ClosureResponse, status_code=201)
async def create_closure(
    data: TimeOffCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    """Close the business for a window; every staff member is unavailable inside it"""
    return _closure_response(service.create_closure(ctx, data))


@router.delete("/tenant/time-off")
async def delete_closure(
    closure_id: Optional[str] = Query(None, alias="id"),
    ctx: TenantContext = Depends(get_tenant_context),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.delete_closure(ctx, closure_id)
