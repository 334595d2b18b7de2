"""Tenant service - Business logic for tenant lookup and onboarding"""

import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...cache import invalidate_appointments_cache
from ...models import Tenant, UserProfile
from ...policy import MANAGE_TENANT, authorize
from ...tenancy import TenantContext, is_valid_tenant_slug, normalize_tenant_slug
from .repository import TenantRepository
from .schemas import TenantCreate, TenantUpdate

logger = logging.getLogger(__name__)


class TenantService:
    """Service layer for tenant business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TenantRepository()

    def get_public_tenant(self, slug: str) -> Tenant:
        """
        Resolve an active tenant by exact slug.
        Inactive, suspended and unknown slugs are indistinguishable (404).
        """
        tenant = self.repo.get_active_by_slug(self.db, slug)
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return tenant

    def get_booking_page(self, slug: str) -> tuple[Tenant, list]:
        tenant = self.get_public_tenant(slug)
        return tenant, self.repo.get_active_services(self.db, tenant.id)

    def create_tenant(self, data: TenantCreate, user: UserProfile) -> Tenant:
        """Onboard a new business and make the caller its owner"""
        if user.tenant_id:
            raise HTTPException(status_code=409, detail="Account already belongs to a business")

        slug = normalize_tenant_slug(data.slug)
        if not is_valid_tenant_slug(slug):
            raise HTTPException(status_code=400, detail="Invalid slug format")

        if self.repo.slug_exists(self.db, slug):
            raise HTTPException(status_code=409, detail="Slug is already taken")

        try:
            tenant = self.repo.create_with_owner(
                self.db,
                user,
                name=data.name,
                slug=slug,
                timezone=data.timezone,
                currency=data.currency,
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Slug is already taken") from e

        logger.info(f"🏢 Tenant {tenant.slug} created by user {user.id}")
        return tenant

    def get_current_tenant(self, ctx: TenantContext) -> Tenant:
        tenant = self.repo.get_by_id(self.db, ctx.tenant_id)
        if not tenant:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return tenant

    def update_tenant(self, ctx: TenantContext, data: TenantUpdate) -> Tenant:
        authorize(ctx, MANAGE_TENANT, ctx.tenant_id)
        tenant = self.get_current_tenant(ctx)
        previous_timezone = tenant.timezone
        tenant = self.repo.update_tenant(
            self.db, tenant, name=data.name, timezone=data.timezone, currency=data.currency
        )

        # Cached listings carry local times and day windows of the old zone
        if tenant.timezone != previous_timezone:
            invalidate_appointments_cache(tenant.id)
            logger.info(f"🕒 Tenant {tenant.id} timezone changed {previous_timezone} -> {tenant.timezone}")
        return tenant
