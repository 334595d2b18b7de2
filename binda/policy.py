"""
Role permissions and authorization checks.

Every dashboard operation names the capability it needs and the tenant that owns the
resource it touches; ``authorize`` rejects the call with 403 before any data access.
"""

import logging
from typing import Optional

from fastapi import HTTPException

from .tenancy import TenantContext

logger = logging.getLogger(__name__)

ROLES = ("owner", "admin", "staff", "customer")

# Capabilities
MANAGE_TENANT = "manage_tenant"
MANAGE_STAFF = "manage_staff"
MANAGE_SERVICES = "manage_services"
MANAGE_CUSTOMERS = "manage_customers"
MANAGE_APPOINTMENTS = "manage_appointments"
MANAGE_WALK_INS = "manage_walk_ins"
VIEW_ANALYTICS = "view_analytics"
BOOK_APPOINTMENTS = "book_appointments"
CANCEL_OWN_APPOINTMENTS = "cancel_own_appointments"

ROLE_PERMISSIONS = {
    "owner": {
        MANAGE_TENANT,
        MANAGE_STAFF,
        MANAGE_SERVICES,
        MANAGE_CUSTOMERS,
        MANAGE_APPOINTMENTS,
        MANAGE_WALK_INS,
        VIEW_ANALYTICS,
        BOOK_APPOINTMENTS,
        CANCEL_OWN_APPOINTMENTS,
    },
    # Only the owner manages tenant settings
    "admin": {
        MANAGE_STAFF,
        MANAGE_SERVICES,
        MANAGE_CUSTOMERS,
        MANAGE_APPOINTMENTS,
        MANAGE_WALK_INS,
        VIEW_ANALYTICS,
        BOOK_APPOINTMENTS,
        CANCEL_OWN_APPOINTMENTS,
    },
    "staff": {
        MANAGE_CUSTOMERS,
        MANAGE_APPOINTMENTS,
        MANAGE_WALK_INS,
        BOOK_APPOINTMENTS,
        CANCEL_OWN_APPOINTMENTS,
    },
    "customer": {BOOK_APPOINTMENTS, CANCEL_OWN_APPOINTMENTS},
}


def has_permission(role: Optional[str], permission: str) -> bool:
    """Unknown roles have no permissions"""
    return permission in ROLE_PERMISSIONS.get(role or "", set())


def is_admin_or_owner(role: Optional[str]) -> bool:
    return role in ("admin", "owner")


def authorize(ctx: TenantContext, action: str, resource_tenant_id: Optional[str] = None) -> None:
    """
    Check that the caller may perform ``action`` on a resource owned by
    ``resource_tenant_id`` (defaults to the caller's own tenant).

    Raises:
        HTTPException: 403 when the role lacks the capability or the resource
            belongs to another tenant
    """
    if not has_permission(ctx.role, action):
        logger.warning(f"🚫 Role {ctx.role!r} (user {ctx.user_id}) denied {action}")
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action")

    if resource_tenant_id is not None and resource_tenant_id != ctx.tenant_id:
        logger.warning(
            f"🚫 Cross-tenant access denied: user {ctx.user_id} of {ctx.tenant_id} -> {resource_tenant_id}"
        )
        raise HTTPException(status_code=403, detail="You do not have permission to perform this action")
