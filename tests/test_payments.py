import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from binda import models
from binda.services import paystack_service as paystack_module
from binda.services.paystack_service import PaystackError, PaystackService, paystack_service, to_minor_units


@pytest.fixture
def pending_booking(db, acme):
    customer = models.Customer(tenant_id=acme["tenant_id"], name="Ada", email="ada@example.com")
    db.add(customer)
    db.flush()
    appointment = models.Appointment(
        tenant_id=acme["tenant_id"],
        service_id=acme["service_id"],
        staff_id=acme["staff_id"],
        customer_id=customer.id,
        start_time=datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc),
        end_time=datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
        status="pending_payment",
        payment_reference="binda_ref_1",
    )
    db.add(appointment)
    db.flush()
    db.add(
        models.Payment(
            tenant_id=acme["tenant_id"],
            appointment_id=appointment.id,
            amount=5000,
            currency="NGN",
            status="pending",
            reference="binda_ref_1",
            provider_reference="binda_ref_1",
        )
    )
    db.commit()
    return appointment.id


def _fake_verify(monkeypatch, status):
    async def verify(reference):
        return {"status": status, "reference": reference, "amount": 500000}

    monkeypatch.setattr(paystack_service, "verify_transaction", verify)


def test_successful_verification_confirms_appointment(client, db, pending_booking, monkeypatch):
    _fake_verify(monkeypatch, "success")

    response = client.post("/api/payments/verify", json={"reference": "binda_ref_1"})

    assert response.status_code == 200
    assert response.json() == {"status": "success", "reference": "binda_ref_1", "amount": 5000}

    db.expire_all()
    appointment = db.get(models.Appointment, pending_booking)
    assert appointment.status == "confirmed"
    assert appointment.deposit_paid is True
    payment = db.query(models.Payment).one()
    assert payment.status == "success"
    assert payment.gateway_response["status"] == "success"


def test_failed_verification_keeps_appointment_pending(client, db, pending_booking, monkeypatch):
    _fake_verify(monkeypatch, "abandoned")

    response = client.post("/api/payments/verify", json={"reference": "binda_ref_1"})

    assert response.status_code == 200
    db.expire_all()
    assert db.get(models.Appointment, pending_booking).status == "pending_payment"
    assert db.query(models.Payment).one().status == "failed"


def test_verify_requires_reference(client):
    response = client.post("/api/payments/verify", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing reference"}


def test_verify_gateway_failure_is_502(client, monkeypatch):
    async def verify(reference):
        raise PaystackError("Transaction reference not found")

    monkeypatch.setattr(paystack_service, "verify_transaction", verify)

    response = client.post("/api/payments/verify", json={"reference": "unknown"})

    assert response.status_code == 502
    assert response.json() == {"error": "Payment verification failed: Transaction reference not found"}


def test_initialize_for_existing_appointment(client, acme, db, pending_booking, monkeypatch):
    async def initialize(**kwargs):
        return {
            "authorization_url": "https://checkout.paystack.com/xyz",
            "access_code": "xyz",
            "reference": kwargs["reference"],
        }

    monkeypatch.setattr(paystack_service, "initialize_transaction", initialize)

    response = client.post(
        "/api/payments/initialize",
        json={"appointmentId": pending_booking, "email": "ada@example.com", "amount": 2500},
        headers=acme["owner"],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["authorization_url"] == "https://checkout.paystack.com/xyz"
    assert body["reference"].startswith("binda_")
    db.expire_all()
    assert db.query(models.Payment).count() == 2


def test_initialize_requires_fields(client, acme):
    response = client.post("/api/payments/initialize", json={"email": "ada@example.com"}, headers=acme["owner"])

    assert response.status_code == 400
    assert response.json() == {"error": "Missing appointmentId, email or amount"}


def test_initialize_requires_authentication(client):
    response = client.post(
        "/api/payments/initialize", json={"appointmentId": "x", "email": "a@b.co", "amount": 10}
    )

    assert response.status_code == 401


def test_to_minor_units():
    assert to_minor_units(5000) == 500000
    assert to_minor_units(19.99) == 1999


def _mock_paystack(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(paystack_module.httpx, "AsyncClient", client_factory)


def test_paystack_client_sends_minor_units(monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "status": True,
                "message": "Authorization URL created",
                "data": {"authorization_url": "https://checkout.paystack.com/a", "access_code": "a", "reference": "r1"},
            },
        )

    _mock_paystack(monkeypatch, handler)
    gateway = PaystackService(secret_key="sk_test_123", base_url="https://paystack.test")

    data = asyncio.run(gateway.initialize_transaction(email="a@b.co", amount=150.5, reference="r1"))

    assert data["reference"] == "r1"
    assert seen["url"] == "https://paystack.test/transaction/initialize"
    assert seen["auth"] == "Bearer sk_test_123"
    assert seen["body"]["amount"] == 15050
    assert seen["body"]["currency"] == "NGN"


def test_paystack_client_raises_on_rejection(monkeypatch):
    def handler(request):
        return httpx.Response(400, json={"status": False, "message": "Invalid key"})

    _mock_paystack(monkeypatch, handler)
    gateway = PaystackService(secret_key="sk_test_bad", base_url="https://paystack.test")

    with pytest.raises(PaystackError, match="Invalid key"):
        asyncio.run(gateway.verify_transaction("r1"))


def test_paystack_client_requires_secret_key():
    gateway = PaystackService(secret_key=None)
    gateway.secret_key = None

    with pytest.raises(PaystackError, match="not configured"):
        asyncio.run(gateway.verify_transaction("r1"))
