from datetime import datetime, timedelta, timezone

from binda import models
from binda.database import SessionLocal
from binda.domain.scheduling.schemas import LockRequest
from binda.domain.scheduling.service import SchedulingService

START = "2024-06-10T09:00:00Z"


def _lock(client, acme, session_id, start=START):
    return client.post(
        "/api/slots/lock",
        json={
            "serviceId": acme["service_id"],
            "staffId": acme["staff_id"],
            "startTime": start,
            "sessionId": session_id,
        },
    )


def test_overlapping_locks_only_one_wins(client, acme):
    first = _lock(client, acme, "session-a")
    second = _lock(client, acme, "session-b", start="2024-06-10T09:15:00Z")

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json() == {"error": "Slot is no longer available"}


def test_lock_hides_slot_from_availability(client, acme):
    assert _lock(client, acme, "session-a").status_code == 200

    response = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]})

    assert START not in [slot["start"] for slot in response.json()]


def test_lock_records_effective_interval_and_expiry(client, acme, db):
    service = db.get(models.Service, acme["service_id"])
    service.buffer_before_minutes = 10
    service.buffer_after_minutes = 5
    db.commit()

    response = _lock(client, acme, "session-a")

    body = response.json()
    assert body["start_time"] == "2024-06-10T08:50:00Z"
    assert body["end_time"] == "2024-06-10T09:35:00Z"
    expires_at = datetime.fromisoformat(body["expires_at"])
    remaining = expires_at - datetime.now(timezone.utc)
    assert timedelta(minutes=9) < remaining <= timedelta(minutes=10)


def test_relocking_replaces_the_sessions_previous_lock(client, acme, db):
    _lock(client, acme, "session-a")
    _lock(client, acme, "session-a", start="2024-06-10T11:00:00Z")

    db.expire_all()
    locks = db.query(models.SlotLock).filter(models.SlotLock.session_id == "session-a").all()
    assert len(locks) == 1
    assert _lock(client, acme, "session-b").status_code == 200


def test_unlock_is_idempotent(client, acme):
    lock_id = _lock(client, acme, "session-a").json()["id"]

    for _ in range(2):
        response = client.post("/api/slots/unlock", json={"lockId": lock_id, "sessionId": "session-a"})
        assert response.status_code == 200
        assert response.json() == {"success": True}

    assert _lock(client, acme, "session-b").status_code == 200


def test_unlock_with_wrong_session_keeps_the_lock(client, acme, db):
    lock_id = _lock(client, acme, "session-a").json()["id"]

    response = client.post("/api/slots/unlock", json={"lockId": lock_id, "sessionId": "intruder"})

    assert response.status_code == 200
    db.expire_all()
    assert db.get(models.SlotLock, lock_id) is not None
    assert _lock(client, acme, "session-b").status_code == 409


def test_unlock_requires_both_ids(client):
    response = client.post("/api/slots/unlock", json={"lockId": "abc"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing lockId or sessionId"}


def test_lock_requires_all_fields(client, acme):
    response = client.post("/api/slots/lock", json={"serviceId": acme["service_id"]})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_expired_locks_do_not_block(acme):
    db = SessionLocal()
    try:
        service = SchedulingService(db)
        request = LockRequest(
            serviceId=acme["service_id"], staffId=acme["staff_id"], startTime=START, sessionId="session-a"
        )
        long_ago = datetime.now(timezone.utc) - timedelta(hours=1)
        service.acquire_lock(request, now=long_ago)

        request.sessionId = "session-b"
        lock = service.acquire_lock(request)
        assert lock.session_id == "session-b"
    finally:
        db.close()


def test_cron_cleanup_removes_expired_locks(client, acme, db):
    db.add(
        models.SlotLock(
            tenant_id=acme["tenant_id"],
            session_id="stale",
            staff_id=acme["staff_id"],
            service_id=acme["service_id"],
            start_time=datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc),
            end_time=datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
    )
    db.commit()

    denied = client.get("/api/cron/cleanup-locks")
    assert denied.status_code == 401

    response = client.get("/api/cron/cleanup-locks", headers={"Authorization": "Bearer test-cron-secret"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "deleted": 1}
