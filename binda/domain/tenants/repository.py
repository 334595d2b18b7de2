"""Tenant repository - Database operations for tenants"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service, Tenant, UserProfile


class TenantRepository:
    """Repository for tenant database operations"""

    @staticmethod
    def get_active_by_slug(db: Session, slug: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.slug == slug, Tenant.status == "active").first()

    @staticmethod
    def get_by_id(db: Session, tenant_id: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.id == tenant_id).first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Tenant.id).filter(Tenant.slug == slug).first() is not None

    @staticmethod
    def create_with_owner(db: Session, user: UserProfile, **tenant_data) -> Tenant:
        """Create a tenant and make ``user`` its owner in one transaction"""
        tenant = Tenant(status="active", **tenant_data)
        db.add(tenant)
        db.flush()

        user.tenant_id = tenant.id
        user.role = "owner"

        db.commit()
        db.refresh(tenant)
        return tenant

    @staticmethod
    def update_tenant(db: Session, tenant: Tenant, **updates) -> Tenant:
        for key, value in updates.items():
            if value is not None and hasattr(tenant, key):
                setattr(tenant, key, value)

        db.commit()
        db.refresh(tenant)
        return tenant

    @staticmethod
    def get_active_services(db: Session, tenant_id: str) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.tenant_id == tenant_id, Service.is_active.is_(True))
            .order_by(Service.name)
            .all()
        )
