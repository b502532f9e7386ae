import asyncio
from datetime import date

import pytest

from groombook.schemas.admin import (
    AdminBookingRequest,
    AvailabilityOverrideRequest,
    EditBookingRequest,
)
from groombook.services import messages
from groombook.services.admin import AdminBookingService
from groombook.services.exceptions import BookingRejectedError, SlotValidationError
from groombook.services.mock_store import get_mock_store

from stubs import MockLatencyClient, RecordingClient

MONDAY = date(2025, 9, 8)
TUESDAY = date(2025, 9, 9)
SUNDAY = date(2025, 9, 14)


def _admin_request(**overrides) -> AdminBookingRequest:
    data = {
        "client_user_id": "user-1",
        "pet_id": "pet-thor",
        "service_id": "svc-banho",
        "provider_ids": ["staff-ana"],
        "booking_date": MONDAY,
        "time_slot": "09:00",
    }
    data.update(overrides)
    return AdminBookingRequest(**data)


def test_rpc_selection_for_admin_bookings() -> None:
    name, payload = _admin_request().rpc_call()
    assert name == "create_booking_admin"
    assert payload["_override_conflicts"] is False
    assert payload["_time_slot"] == "09:00:00"

    name, payload = _admin_request(override=True).rpc_call()
    assert name == "create_booking_admin_override"
    assert "_admin_notes" in payload

    name, payload = _admin_request(
        secondary_service_id="svc-tosa", provider_ids=["staff-ana", "staff-bruno"]
    ).rpc_call()
    assert name == "create_admin_booking_with_dual_services"
    assert payload["_primary_service_id"] == "svc-banho"
    assert payload["_secondary_service_id"] == "svc-tosa"
    assert "_service_id" not in payload


def test_sunday_and_missing_staff_rejected_locally() -> None:
    client = RecordingClient(rpc_result="apt-1")
    service = AdminBookingService(client)

    with pytest.raises(SlotValidationError) as sunday:
        asyncio.run(service.create_manual_booking(_admin_request(booking_date=SUNDAY)))
    with pytest.raises(SlotValidationError) as no_staff:
        asyncio.run(service.create_manual_booking(_admin_request(provider_ids=[])))

    assert sunday.value.user_message == messages.SUNDAY_CLOSED
    assert no_staff.value.code == "missing_staff"
    assert client.rpc_calls == []


def test_live_admin_booking_calls_selected_procedure() -> None:
    client = RecordingClient(rpc_result="apt-9")
    service = AdminBookingService(client)

    response = asyncio.run(service.create_manual_booking(_admin_request(override=True)))

    assert response.appointment_id == "apt-9"
    assert response.override is True
    assert response.message == messages.BOOKING_CREATED_OVERRIDE
    assert client.rpc_calls[0][0] == "create_booking_admin_override"


def test_mock_override_books_on_top_of_existing_appointment() -> None:
    service = AdminBookingService(MockLatencyClient())

    first = asyncio.run(service.create_manual_booking(_admin_request()))
    with pytest.raises(BookingRejectedError) as excinfo:
        asyncio.run(service.create_manual_booking(_admin_request()))
    second = asyncio.run(
        service.create_manual_booking(
            _admin_request(override=True, override_on_top_of_appointment_id=first.appointment_id)
        )
    )

    assert excinfo.value.kind == messages.PROVIDER_UNAVAILABLE
    assert second.appointment_id != first.appointment_id
    assert len(asyncio.run(get_mock_store().appointments.list(MONDAY))) == 2


def test_mock_dual_service_booking_occupies_both_staff() -> None:
    service = AdminBookingService(MockLatencyClient())
    request = _admin_request(
        secondary_service_id="svc-tosa", provider_ids=["staff-ana", "staff-bruno"]
    )

    asyncio.run(service.create_manual_booking(request))

    availability = get_mock_store().availability
    assert availability.is_open("staff-ana", MONDAY, "09:50:00") is False
    assert availability.is_open("staff-ana", MONDAY, "10:00:00") is True
    assert availability.is_open("staff-bruno", MONDAY, "09:50:00") is True
    assert availability.is_open("staff-bruno", MONDAY, "10:00:00") is False
    assert availability.is_open("staff-bruno", MONDAY, "10:20:00") is False
    assert availability.is_open("staff-bruno", MONDAY, "10:30:00") is True


def test_edit_booking_moves_appointment() -> None:
    service = AdminBookingService(MockLatencyClient())
    created = asyncio.run(service.create_manual_booking(_admin_request()))

    result = asyncio.run(
        service.edit_booking(
            created.appointment_id,
            EditBookingRequest(new_date=TUESDAY, new_time="14:00", extra_fee=15.0, notes="remarcado"),
        )
    )

    assert result.success is True
    record = asyncio.run(get_mock_store().appointments.get(created.appointment_id))
    assert record.date == "2025-09-09"
    assert record.time == "14:00:00"
    assert record.extra_fee == 15.0
    availability = get_mock_store().availability
    assert availability.is_open("staff-ana", MONDAY, "09:00:00") is True
    assert availability.is_open("staff-ana", TUESDAY, "14:00:00") is False


def test_edit_booking_live_payload() -> None:
    client = RecordingClient(rpc_result=True)
    service = AdminBookingService(client)

    result = asyncio.run(
        service.edit_booking("apt-1", EditBookingRequest(new_date=TUESDAY, new_time="10:30", force_override=True))
    )

    assert result.success is True
    name, payload = client.rpc_calls[0]
    assert name == "edit_booking_admin"
    assert payload["_appointment_id"] == "apt-1"
    assert payload["_new_time"] == "10:30:00"
    assert payload["_force_override"] is True


def test_availability_override_updates_row() -> None:
    service = AdminBookingService(MockLatencyClient())

    response = asyncio.run(
        service.set_staff_availability(
            AvailabilityOverrideRequest(
                staff_profile_id="staff-ana", date=MONDAY, time_slot="11:00", available=False
            )
        )
    )

    assert response.updated == 1
    assert get_mock_store().availability.is_open("staff-ana", MONDAY, "11:00:00") is False


def test_live_availability_override_filters_row() -> None:
    client = RecordingClient()
    service = AdminBookingService(client)

    asyncio.run(
        service.set_staff_availability(
            AvailabilityOverrideRequest(
                staff_profile_id="staff-ana", date=MONDAY, time_slot="11:00", available=True
            )
        )
    )

    table, values, filters = client.update_calls[0]
    assert table == "staff_availability"
    assert values == {"available": True}
    assert filters == {
        "staff_profile_id": "eq.staff-ana",
        "date": "eq.2025-09-08",
        "time_slot": "eq.11:00:00",
    }
