import pytest
from fastapi import HTTPException

from binda.policy import (
    BOOK_APPOINTMENTS,
    MANAGE_APPOINTMENTS,
    MANAGE_SERVICES,
    MANAGE_TENANT,
    MANAGE_WALK_INS,
    ROLE_PERMISSIONS,
    VIEW_ANALYTICS,
    authorize,
    has_permission,
    is_admin_or_owner,
)
from binda.tenancy import TenantContext


def _ctx(role, tenant_id="tenant-a"):
    return TenantContext(tenant_id=tenant_id, timezone="Africa/Lagos", user_id="user-1", role=role)


def test_owner_has_every_capability():
    every = set().union(*ROLE_PERMISSIONS.values())
    assert ROLE_PERMISSIONS["owner"] == every


def test_admin_cannot_manage_tenant():
    assert has_permission("admin", MANAGE_SERVICES)
    assert has_permission("admin", VIEW_ANALYTICS)
    assert not has_permission("admin", MANAGE_TENANT)


def test_staff_runs_the_front_desk_but_not_the_catalog():
    assert has_permission("staff", MANAGE_APPOINTMENTS)
    assert has_permission("staff", MANAGE_WALK_INS)
    assert not has_permission("staff", MANAGE_SERVICES)
    assert not has_permission("staff", VIEW_ANALYTICS)


def test_customers_only_book():
    assert has_permission("customer", BOOK_APPOINTMENTS)
    assert not has_permission("customer", MANAGE_APPOINTMENTS)


def test_unknown_roles_have_no_permissions():
    assert not has_permission(None, BOOK_APPOINTMENTS)
    assert not has_permission("superuser", BOOK_APPOINTMENTS)


def test_admin_or_owner():
    assert is_admin_or_owner("owner")
    assert is_admin_or_owner("admin")
    assert not is_admin_or_owner("staff")


def test_authorize_allows_own_tenant():
    authorize(_ctx("owner"), MANAGE_SERVICES, "tenant-a")


def test_authorize_rejects_missing_capability():
    with pytest.raises(HTTPException) as exc_info:
        authorize(_ctx("staff"), MANAGE_SERVICES, "tenant-a")
    assert exc_info.value.status_code == 403


def test_authorize_rejects_other_tenants_resource():
    with pytest.raises(HTTPException) as exc_info:
        authorize(_ctx("owner"), MANAGE_SERVICES, "tenant-b")
    assert exc_info.value.status_code == 403


def test_tenant_context_is_immutable():
    ctx = _ctx("owner")
    assert not ctx.is_public
    assert TenantContext(tenant_id="tenant-a").is_public
    with pytest.raises(AttributeError):
        ctx.tenant_id = "tenant-b"
