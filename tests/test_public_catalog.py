from binda import models


def test_public_services_ordered_by_name_and_active_only(client, acme, db):
    db.add_all(
        [
            models.Service(tenant_id=acme["tenant_id"], name="Beard Trim", duration_minutes=15),
            models.Service(tenant_id=acme["tenant_id"], name="Perm", duration_minutes=90, is_active=False),
        ]
    )
    db.commit()

    response = client.get("/api/public/services", params={"tenantId": acme["tenant_id"]})

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Beard Trim", "Haircut"]


def test_public_services_requires_tenant_id(client):
    response = client.get("/api/public/services")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing tenantId"}


def test_public_staff_for_service(client, acme, db):
    # Active but not assigned to the service
    db.add(models.Staff(tenant_id=acme["tenant_id"], name="Tom"))
    db.commit()

    response = client.get("/api/public/staff", params={"serviceId": acme["service_id"]})

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Jane"]


def test_public_staff_requires_service_id(client):
    response = client.get("/api/public/staff")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing serviceId"}


def test_owner_manages_services_and_assignments(client, acme):
    created = client.post(
        "/api/services",
        json={"name": "Colour", "duration_minutes": 60, "buffer_after_minutes": 15, "price": 12000},
        headers=acme["owner"],
    )
    assert created.status_code == 201
    service_id = created.json()["id"]

    assigned = client.put(
        f"/api/services/{service_id}/staff",
        json={"staffIds": [acme["staff_id"]]},
        headers=acme["owner"],
    )
    assert assigned.status_code == 200
    assert [s["id"] for s in assigned.json()] == [acme["staff_id"]]

    removed = client.delete(f"/api/services/{service_id}", headers=acme["owner"])
    assert removed.status_code == 200

    listing = client.get("/api/public/services", params={"tenantId": acme["tenant_id"]})
    assert [s["name"] for s in listing.json()] == ["Haircut"]


def test_staff_role_cannot_manage_services(client, acme):
    response = client.post(
        "/api/services",
        json={"name": "Colour", "duration_minutes": 60},
        headers=acme["staff"],
    )

    assert response.status_code == 403


def test_services_of_another_tenant_are_not_found(client, acme, other_tenant):
    response = client.get(f"/api/services/{other_tenant['service_id']}", headers=acme["owner"])

    assert response.status_code == 404


def test_new_staff_gets_default_weekday_schedule(client, acme):
    created = client.post("/api/staff", json={"name": "Ada"}, headers=acme["owner"])
    assert created.status_code == 201

    hours = client.get(f"/api/staff/{created.json()['id']}/working-hours", headers=acme["owner"])
    assert hours.status_code == 200
    assert sorted(h["day_of_week"] for h in hours.json()) == [1, 2, 3, 4, 5]
    assert {(h["start_time"], h["end_time"]) for h in hours.json()} == {("09:00", "17:00")}


def test_working_hours_are_replaced_as_a_whole(client, acme):
    response = client.put(
        f"/api/staff/{acme['staff_id']}/working-hours",
        json={
            "hours": [
                {"day_of_week": 2, "start_time": "08:00", "end_time": "12:00"},
                {"day_of_week": 2, "start_time": "13:00", "end_time": "18:00"},
            ]
        },
        headers=acme["owner"],
    )
    assert response.status_code == 200

    hours = client.get(f"/api/staff/{acme['staff_id']}/working-hours", headers=acme["owner"])
    assert sorted((h["day_of_week"], h["start_time"]) for h in hours.json()) == [(2, "08:00"), (2, "13:00")]


def test_working_hours_reject_inverted_interval(client, acme):
    response = client.put(
        f"/api/staff/{acme['staff_id']}/working-hours",
        json={"hours": [{"day_of_week": 1, "start_time": "17:00", "end_time": "09:00"}]},
        headers=acme["owner"],
    )

    assert response.status_code == 400


def test_shift_can_end_at_midnight(client, acme):
    response = client.put(
        f"/api/staff/{acme['staff_id']}/working-hours",
        json={"hours": [{"day_of_week": 1, "start_time": "18:00", "end_time": "24:00"}]},
        headers=acme["owner"],
    )
    assert response.status_code == 200

    slots = client.get("/api/slots", params={"date": "2024-06-10", "serviceId": acme["service_id"]}).json()
    assert slots[0]["localStart"] == "2024-06-10T18:00:00+01:00"
    assert slots[-1]["localEnd"] == "2024-06-11T00:00:00+01:00"


def test_midnight_is_not_a_start_time(client, acme):
    response = client.put(
        f"/api/staff/{acme['staff_id']}/working-hours",
        json={"hours": [{"day_of_week": 1, "start_time": "24:00", "end_time": "24:00"}]},
        headers=acme["owner"],
    )

    assert response.status_code == 400


def test_time_off_lifecycle(client, acme):
    created = client.post(
        f"/api/staff/{acme['staff_id']}/time-off",
        json={"start_time": "2024-06-11T08:00:00Z", "end_time": "2024-06-11T16:00:00Z", "reason": "Training"},
        headers=acme["owner"],
    )
    assert created.status_code == 201
    time_off_id = created.json()["id"]

    listed = client.get(f"/api/staff/{acme['staff_id']}/time-off", headers=acme["owner"])
    assert [t["id"] for t in listed.json()] == [time_off_id]

    deleted = client.delete(
        f"/api/staff/{acme['staff_id']}/time-off", params={"timeOffId": time_off_id}, headers=acme["owner"]
    )
    assert deleted.status_code == 200

    listed = client.get(f"/api/staff/{acme['staff_id']}/time-off", headers=acme["owner"])
    assert listed.json() == []
