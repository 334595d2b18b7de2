from datetime import datetime, timezone

from binda import models


def _book(db, acme, start, end, status="confirmed"):
    customer = models.Customer(tenant_id=acme["tenant_id"], name="Walk In", phone="+2348000000000")
    db.add(customer)
    db.flush()
    db.add(
        models.Appointment(
            tenant_id=acme["tenant_id"],
            service_id=acme["service_id"],
            staff_id=acme["staff_id"],
            customer_id=customer.id,
            start_time=start,
            end_time=end,
            status=status,
        )
    )
    db.commit()


def _starts(response):
    return [slot["start"] for slot in response.json()]


def test_confirmed_appointment_blocks_its_slot(client, acme, db):
    # 10:00-10:30 Africa/Lagos (UTC+1)
    _book(
        db,
        acme,
        datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc),
        datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
    )

    response = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]})

    assert response.status_code == 200
    starts = _starts(response)
    assert "2024-06-10T08:00:00Z" in starts
    assert "2024-06-10T08:30:00Z" in starts
    assert "2024-06-10T09:30:00Z" in starts
    assert "2024-06-10T09:00:00Z" not in starts


def test_slots_cover_working_day_in_tenant_time(client, acme):
    response = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]})

    slots = response.json()
    # 09:00 to 16:30 local in 30 minute steps
    assert len(slots) == 16
    assert slots[0]["localStart"] == "2024-06-10T09:00:00+01:00"
    assert slots[-1]["localEnd"] == "2024-06-10T17:00:00+01:00"
    assert all(slot["staffIds"] == [acme["staff_id"]] for slot in slots)


def test_cancelled_appointment_frees_the_slot(client, acme, db):
    _book(
        db,
        acme,
        datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc),
        datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc),
        status="cancelled",
    )

    response = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]})

    assert "2024-06-10T09:00:00Z" in _starts(response)


def test_time_off_blocks_slots(client, acme, db):
    db.add(
        models.StaffTimeOff(
            staff_id=acme["staff_id"],
            start_time=datetime(2024, 6, 10, 8, 0, tzinfo=timezone.utc),
            end_time=datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc),
        )
    )
    db.commit()

    response = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]})

    assert _starts(response)[0] == "2024-06-10T12:00:00Z"


def test_buffers_keep_slots_inside_working_hours(client, acme, db):
    service = db.get(models.Service, acme["service_id"])
    service.buffer_before_minutes = 15
    service.buffer_after_minutes = 15
    db.commit()

    response = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]})

    starts = _starts(response)
    # 09:00 local would need the 08:45 buffer; 16:30 would run past 17:00
    assert "2024-06-10T08:00:00Z" not in starts
    assert starts[0] == "2024-06-10T08:30:00Z"
    assert starts[-1] == "2024-06-10T15:00:00Z"


def test_no_slots_on_days_off(client, acme):
    # 2024-06-09 is a Sunday
    response = client.get("/api/slots", params={"date": "2024-06-09", "serviceId": acme["service_id"]})

    assert response.status_code == 200
    assert response.json() == []


def test_slot_query_validation(client, acme):
    missing = client.get("/api/slots", params={"serviceId": acme["service_id"]})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing date or serviceId"}

    bad_date = client.get("/api/slots", params={"date": "10/06/2024", "serviceId": acme["service_id"]})
    assert bad_date.status_code == 400

    unknown = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": "nope"})
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "Service not found"}


def test_signed_in_user_of_another_tenant_sees_public_slots(client, acme, other_tenant):
    params = {"date": "2024-06-10", "serviceId": acme["service_id"]}
    anonymous = client.get("/api/slots", params=params)
    signed_in = client.get("/api/slots", params=params, headers=other_tenant["owner"])

    assert signed_in.status_code == 200
    assert signed_in.json() == anonymous.json()
    assert len(signed_in.json()) == 16


def test_slots_reject_invalid_token(client, acme):
    response = client.get(
        "/api/slots",
        params={"date": "2024-06-10", "serviceId": acme["service_id"]},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
