import fnmatch
import os
import time

# Must be set before binda is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret"
os.environ["CRON_SECRET"] = "test-cron-secret"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from binda import models
from binda.cache import cache
from binda.database import Base, SessionLocal, engine, get_db
from binda.main import app
from binda.rate_limiter import booking_rate_limit, slot_lock_rate_limit

JWT_SECRET = "test-jwt-secret"


class FakeRedis:
    """In-memory stand-in for the few redis commands the cache uses"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def scan_iter(self, match="*"):
        return [k for k in list(self.store) if fnmatch.fnmatch(k, match)]

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


def make_token(sub, email=None, expires_in=3600, **claims):
    payload = {
        "sub": sub,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
        **claims,
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(sub, **claims):
    return {"Authorization": f"Bearer {make_token(sub, **claims)}"}


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    fake = FakeRedis()
    previous = cache.redis_client
    cache.redis_client = fake
    yield fake
    cache.redis_client = previous


@pytest.fixture
def client(fake_redis):
    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[slot_lock_rate_limit] = lambda: None
    app.dependency_overrides[booking_rate_limit] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def acme(db):
    """
    Tenant ``acme`` in Africa/Lagos with a 30 minute Haircut performed by Jane,
    who works Mondays 09:00-17:00, plus an owner and a staff member account.
    """
    tenant = models.Tenant(name="Acme Salon", slug="acme", timezone="Africa/Lagos", currency="NGN")
    db.add(tenant)
    db.flush()

    service = models.Service(
        tenant_id=tenant.id, name="Haircut", duration_minutes=30, price=5000, is_active=True
    )
    jane = models.Staff(tenant_id=tenant.id, name="Jane", email="jane@acme.test", is_active=True)
    db.add_all([service, jane])
    db.flush()

    db.add(models.ServiceStaff(service_id=service.id, staff_id=jane.id))
    db.add(models.StaffWorkingHours(staff_id=jane.id, day_of_week=1, start_time="09:00", end_time="17:00"))
    db.add(models.UserProfile(id="owner-1", tenant_id=tenant.id, role="owner", email="owner@acme.test"))
    db.add(models.UserProfile(id="staff-1", tenant_id=tenant.id, role="staff", email="desk@acme.test"))
    db.commit()

    return {
        "tenant_id": tenant.id,
        "service_id": service.id,
        "staff_id": jane.id,
        "owner": auth_headers("owner-1"),
        "staff": auth_headers("staff-1"),
    }


@pytest.fixture
def other_tenant(db):
    tenant = models.Tenant(name="Other Spa", slug="other-spa", timezone="UTC", currency="USD")
    db.add(tenant)
    db.flush()
    service = models.Service(tenant_id=tenant.id, name="Massage", duration_minutes=60, is_active=True)
    db.add(service)
    db.add(models.UserProfile(id="other-owner", tenant_id=tenant.id, role="owner"))
    db.commit()
    return {"tenant_id": tenant.id, "service_id": service.id, "owner": auth_headers("other-owner")}
