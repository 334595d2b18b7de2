"""Tenant router - public tenant lookup, booking page payload, onboarding and settings"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_tenant_context
from ...database import get_db
from ...models import Tenant, UserProfile
from ...tenancy import TenantContext
from .schemas import (
    BookingPageResponse,
    BookingPageService,
    TenantCreate,
    TenantPublic,
    TenantResponse,
    TenantUpdate,
)
from .service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tenants"])


def get_tenant_service(db: Session = Depends(get_db)) -> TenantService:
    """Dependency injection for TenantService"""
    return TenantService(db)


def _to_public(tenant: Tenant) -> TenantPublic:
    return TenantPublic(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        timezone=tenant.timezone,
        currency=tenant.currency,
        status=tenant.status,
    )


def _to_response(tenant: Tenant) -> TenantResponse:
    return TenantResponse(**_to_public(tenant).model_dump(), created_at=tenant.created_at)


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/api/tenants/{slug}", response_model=TenantPublic)
async def get_tenant_by_slug(slug: str, service: TenantService = Depends(get_tenant_service)):
    """Get an active tenant by slug (public endpoint for booking pages)"""
    return _to_public(service.get_public_tenant(slug))


@router.get("/book/{slug}", response_model=BookingPageResponse)
async def booking_page(slug: str, service: TenantService = Depends(get_tenant_service)):
    """Data for the public booking page: tenant plus its active services"""
    tenant, services = service.get_booking_page(slug)
    return BookingPageResponse(
        tenant=_to_public(tenant),
        services=[
            BookingPageService(
                id=s.id,
                name=s.name,
                description=s.description,
                duration_minutes=s.duration_minutes,
                price=s.price,
            )
            for s in services
        ],
    )


# ============================================================================
# AUTHENTICATED
# ============================================================================


@router.post("/api/tenants", response_model=TenantResponse, status_code=201)
async def create_tenant(
    data: TenantCreate,
    current_user: UserProfile = Depends(get_current_user),
    service: TenantService = Depends(get_tenant_service),
):
    """Create a new tenant during onboarding; the caller becomes its owner"""
    return _to_response(service.create_tenant(data, current_user))


@router.get("/api/tenant", response_model=TenantResponse)
async def get_current_tenant(
    ctx: TenantContext = Depends(get_tenant_context),
    service: TenantService = Depends(get_tenant_service),
):
    return _to_response(service.get_current_tenant(ctx))


@router.patch("/api/tenant", response_model=TenantResponse)
async def update_current_tenant(
    data: TenantUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: TenantService = Depends(get_tenant_service),
):
    """Update tenant settings (owner only)"""
    return _to_response(service.update_tenant(ctx, data))
