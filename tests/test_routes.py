import logging

from fastapi.testclient import TestClient

from groombook.main import RedactingFilter, app
from groombook.services import messages

MONDAY = "2025-09-08"
SUNDAY = "2025-09-14"


def _slots(client: TestClient, **overrides):
    body = {"date": MONDAY, "service_id": "svc-banho", "duration_minutes": 60, "staff_id": "staff-ana"}
    body.update(overrides)
    return client.post("/availability/slots", json=body)


def test_health() -> None:
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_list_slots_for_open_day() -> None:
    client = TestClient(app)

    response = _slots(client)
    assert response.status_code == 200
    body = response.json()

    assert body["closed"] is False
    assert body["slots"][0] == {"id": "09:00:00", "time": "09:00", "available": True}
    assert body["snapshot"]["staff_ids"] == ["staff-ana"]
    assert len(body["snapshot"]["rows"]) == 42


def test_sunday_is_closed() -> None:
    client = TestClient(app)

    body = _slots(client, date=SUNDAY).json()

    assert body["closed"] is True
    assert body["slots"] == []


def test_secondary_staff_requires_secondary_duration() -> None:
    client = TestClient(app)

    response = _slots(client, secondary_staff_id="staff-bruno")

    assert response.status_code == 422


def test_booking_round_trip_and_conflict() -> None:
    client = TestClient(app)
    snapshot = _slots(client).json()["snapshot"]
    booking = {
        "user_id": "user-1",
        "pet_id": "pet-thor",
        "service_id": "svc-banho",
        "provider_ids": ["staff-ana"],
        "booking_date": MONDAY,
        "time_slot": "11:00",
        "duration_minutes": 60,
    }

    created = client.post("/bookings", json={"booking": booking, "snapshot": snapshot})
    assert created.status_code == 200
    assert created.json()["status"] == "confirmed"

    rejected = client.post("/bookings", json={"booking": booking, "snapshot": snapshot})
    assert rejected.status_code == 422
    assert rejected.json()["detail"]["kind"] == messages.PROVIDER_UNAVAILABLE

    refreshed = _slots(client).json()["snapshot"]
    blocked = client.post("/bookings", json={"booking": booking, "snapshot": refreshed})
    assert blocked.status_code == 409
    assert blocked.json()["detail"]["code"] == "required_tick_unavailable"


def test_booking_for_unlisted_slot_is_conflict() -> None:
    client = TestClient(app)
    snapshot = _slots(client).json()["snapshot"]
    booking = {
        "user_id": "user-1",
        "pet_id": "pet-thor",
        "service_id": "svc-banho",
        "provider_ids": ["staff-ana"],
        "booking_date": MONDAY,
        "time_slot": "17:00",
    }

    response = client.post("/bookings", json={"booking": booking, "snapshot": snapshot})

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "code": "slot_not_in_snapshot",
        "message": messages.SLOT_NOT_IN_SNAPSHOT,
    }


def test_next_available_skips_sunday() -> None:
    client = TestClient(app)

    response = client.post(
        "/availability/next",
        json={"date": "2025-09-13", "service_id": "svc-banho", "staff_id": "staff-ana"},
    )

    body = response.json()
    assert body["found"] is True
    assert body["date"] == "2025-09-15"
    assert body["time"] == "09:00"
    assert body["provider_name"] == "Próximo disponível"


def test_diagnose_slot_lists_ticks() -> None:
    client = TestClient(app)

    response = client.post(
        "/availability/diagnose",
        json={
            "date": MONDAY,
            "service_id": "svc-banho",
            "duration_minutes": 30,
            "staff_id": "staff-ana",
            "secondary_service_id": "svc-tosa",
            "secondary_staff_id": "staff-bruno",
            "secondary_duration_minutes": 20,
            "time_slot": "09:00:00",
        },
    )

    body = response.json()
    assert body["available"] is True
    assert body["primary_ticks"] == ["09:00:00", "09:10:00", "09:20:00"]
    assert body["secondary_ticks"] == ["09:30:00", "09:40:00"]


def test_catalog_and_pricing_routes() -> None:
    client = TestClient(app)

    services = client.get("/catalog/services", params={"service_type": "veterinary"}).json()
    staff = client.get("/catalog/staff", params={"capability": "can_groom"}).json()
    pets = client.get("/catalog/pets/user-2").json()
    bad = client.get("/catalog/staff", params={"capability": "can_fly"})
    quote = client.post("/pricing/quote", json={"service_id": "svc-banho", "size": "grande"}).json()

    assert [item["id"] for item in services["items"]] == ["svc-consulta"]
    assert [item["id"] for item in staff["items"]] == ["staff-bruno"]
    assert pets["items"][0]["name"] == "Mel"
    assert bad.status_code == 400
    assert quote == {"price": 110.0, "duration": 90, "price_source": "service_size_fallback"}


def test_admin_routes() -> None:
    client = TestClient(app)

    created = client.post(
        "/admin/bookings",
        json={
            "client_user_id": "user-2",
            "pet_id": "pet-mel",
            "service_id": "svc-consulta",
            "provider_ids": ["staff-carla"],
            "booking_date": MONDAY,
            "time_slot": "10:00",
        },
    )
    assert created.status_code == 200
    appointment_id = created.json()["appointment_id"]

    edited = client.patch(
        f"/admin/bookings/{appointment_id}",
        json={"new_date": "2025-09-10", "new_time": "15:00"},
    )
    assert edited.json()["success"] is True

    sunday = client.post(
        "/admin/bookings",
        json={
            "client_user_id": "user-2",
            "pet_id": "pet-mel",
            "service_id": "svc-consulta",
            "provider_ids": ["staff-carla"],
            "booking_date": SUNDAY,
            "time_slot": "10:00",
        },
    )
    assert sunday.status_code == 409
    assert sunday.json()["detail"]["message"] == messages.SUNDAY_CLOSED

    override = client.put(
        "/admin/availability",
        json={"staff_profile_id": "staff-carla", "date": MONDAY, "time_slot": "09:00", "available": False},
    )
    assert override.json() == {"updated": 1}


def test_redacting_filter_masks_emails() -> None:
    record = logging.LogRecord(
        "groombook", logging.INFO, __file__, 1, "Booking for %s failed", ("tutor@example.com",), None
    )

    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "Booking for [email] failed"
