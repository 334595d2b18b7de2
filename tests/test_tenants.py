from datetime import datetime, timezone

from binda import models
from binda.tenancy import is_valid_tenant_slug, normalize_tenant_slug, tenant_slug_from_url

from .conftest import auth_headers


def test_public_tenant_lookup_returns_public_fields(client, acme):
    response = client.get("/api/tenants/acme")

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "id": acme["tenant_id"],
        "name": "Acme Salon",
        "slug": "acme",
        "timezone": "Africa/Lagos",
        "currency": "NGN",
        "status": "active",
    }


def test_inactive_and_unknown_tenants_are_indistinguishable(client, acme, db):
    tenant = db.get(models.Tenant, acme["tenant_id"])
    tenant.status = "suspended"
    db.commit()

    suspended = client.get("/api/tenants/acme")
    missing = client.get("/api/tenants/nobody-here")

    assert suspended.status_code == missing.status_code == 404
    assert suspended.json() == missing.json() == {"error": "Tenant not found"}


def test_booking_page_lists_active_services(client, acme, db):
    db.add(models.Service(tenant_id=acme["tenant_id"], name="Retired", duration_minutes=15, is_active=False))
    db.commit()

    response = client.get("/book/acme")

    assert response.status_code == 200
    body = response.json()
    assert body["tenant"]["slug"] == "acme"
    assert [s["name"] for s in body["services"]] == ["Haircut"]
    assert body["services"][0]["price"] == 5000


def test_onboarding_makes_caller_the_owner(client, db):
    headers = auth_headers("new-user", email="founder@example.com")
    response = client.post(
        "/api/tenants",
        json={"name": "Fresh Cuts", "slug": "Fresh-Cuts", "timezone": "Africa/Lagos"},
        headers=headers,
    )

    assert response.status_code == 201
    assert response.json()["slug"] == "fresh-cuts"

    profile = db.get(models.UserProfile, "new-user")
    assert profile.role == "owner"
    assert profile.tenant_id == response.json()["id"]

    current = client.get("/api/tenant", headers=headers)
    assert current.status_code == 200
    assert current.json()["name"] == "Fresh Cuts"


def test_onboarding_rejects_taken_slug(client, acme):
    response = client.post(
        "/api/tenants", json={"name": "Copycat", "slug": "acme"}, headers=auth_headers("copycat")
    )

    assert response.status_code == 409
    assert response.json() == {"error": "Slug is already taken"}


def test_onboarding_rejects_unknown_timezone(client):
    response = client.post(
        "/api/tenants",
        json={"name": "Lost", "slug": "lost-co", "timezone": "Nowhere/City"},
        headers=auth_headers("lost"),
    )

    assert response.status_code == 400
    assert "error" in response.json()


def test_only_owner_updates_tenant_settings(client, acme):
    denied = client.patch("/api/tenant", json={"name": "Hijacked"}, headers=acme["staff"])
    assert denied.status_code == 403
    assert denied.json() == {"error": "You do not have permission to perform this action"}

    allowed = client.patch("/api/tenant", json={"name": "Acme Studio"}, headers=acme["owner"])
    assert allowed.status_code == 200
    assert allowed.json()["name"] == "Acme Studio"


def test_timezone_change_refreshes_cached_listings(client, acme, db, fake_redis):
    customer = models.Customer(tenant_id=acme["tenant_id"], name="Ada", phone="+2348012345678")
    db.add(customer)
    db.flush()
    db.add(
        models.Appointment(
            tenant_id=acme["tenant_id"],
            service_id=acme["service_id"],
            staff_id=acme["staff_id"],
            customer_id=customer.id,
            start_time=datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc),
            end_time=datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
            status="confirmed",
        )
    )
    db.commit()

    before = client.get("/api/appointments", headers=acme["owner"]).json()
    assert before[0]["local_start"] == "2024-06-10T10:00:00+01:00"

    response = client.patch("/api/tenant", json={"timezone": "America/New_York"}, headers=acme["owner"])
    assert response.status_code == 200

    after = client.get("/api/appointments", headers=acme["owner"]).json()
    assert after[0]["local_start"] == "2024-06-10T05:00:00-04:00"


def test_dashboard_routes_require_a_token(client, acme):
    response = client.get("/api/tenant")

    assert response.status_code == 401
    assert "error" in response.json()


def test_expired_token_is_flagged(client, acme):
    response = client.get("/api/tenant", headers=auth_headers("owner-1", expires_in=-60))

    assert response.status_code == 401
    assert response.headers.get("X-Token-Expired") == "true"


def test_user_without_business_gets_403(client):
    response = client.get("/api/tenant", headers=auth_headers("drifter"))

    assert response.status_code == 403
    assert response.json() == {"error": "No business is associated with this account"}


def test_slug_helpers():
    assert tenant_slug_from_url("https://acme.binda.app/services") == "acme"
    assert tenant_slug_from_url("https://binda.app/acme/book") == "acme"
    assert tenant_slug_from_url("https://app.binda.app/dashboard") is None
    assert tenant_slug_from_url("https://www.binda.app/") is None

    assert normalize_tenant_slug("  Acme Salon! ") == "acme-salon"
    assert is_valid_tenant_slug("acme")
    assert not is_valid_tenant_slug("-acme")
    assert not is_valid_tenant_slug("ab")
