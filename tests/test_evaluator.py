import pytest

from groombook.config import BusinessHours
from groombook.scheduling.evaluator import (
    Segment,
    ServiceRequest,
    evaluate_day,
    explain_slot,
    is_client_slot_available,
    required_segment_ticks,
    uniform_day,
)
from groombook.scheduling.matrix import AvailabilityMatrix
from groombook.scheduling.slots import generate_backend_slots


def _open(staff_id, slots):
    return [{"staff_profile_id": staff_id, "time_slot": slot, "available": True} for slot in slots]


def _matrix(rows, staff_ids, end_hour=16):
    return AvailabilityMatrix.build(rows, staff_ids, start_hour=9, end_hour=end_hour)


def test_slot_available_when_every_tick_is_open() -> None:
    rows = _open("A", ["09:00:00", "09:10:00", "09:20:00", "09:30:00", "09:40:00", "09:50:00"])
    matrix = _matrix(rows, ["A"])
    request = ServiceRequest(primary=Segment("A", 30))

    assert is_client_slot_available("09:00", request, matrix, 16) is True


def test_slot_unavailable_when_tick_is_missing_from_rows() -> None:
    rows = _open("A", ["09:00:00", "09:10:00", "09:20:00", "09:30:00", "09:40:00", "09:50:00"])
    matrix = _matrix(rows, ["A"])
    request = ServiceRequest(primary=Segment("A", 30))

    primary, _ = required_segment_ticks("09:40", request, 16)
    assert primary == ["09:40:00", "09:50:00", "10:00:00"]
    assert is_client_slot_available("09:40", request, matrix, 16) is False


@pytest.mark.parametrize("closed_tick", ["09:00:00", "09:10:00", "09:20:00"])
def test_any_closed_tick_blocks_the_slot(closed_tick: str) -> None:
    slots = ["09:00:00", "09:10:00", "09:20:00"]
    rows = _open("A", [slot for slot in slots if slot != closed_tick])
    rows.append({"staff_profile_id": "A", "time_slot": closed_tick, "available": False})
    matrix = _matrix(rows, ["A"])

    assert is_client_slot_available("09:00", ServiceRequest(Segment("A", 30)), matrix, 16) is False


def test_secondary_segment_starts_after_primary() -> None:
    request = ServiceRequest(primary=Segment("A", 30), secondary=Segment("B", 20))

    primary, secondary = required_segment_ticks("09:00", request, 16)

    assert primary == ["09:00:00", "09:10:00", "09:20:00"]
    assert secondary == ["09:30:00", "09:40:00"]
    assert not set(primary) & set(secondary)


def test_dual_service_fails_when_secondary_staff_is_busy() -> None:
    rows = _open("A", ["09:00:00", "09:10:00", "09:20:00"])
    rows += [{"staff_profile_id": "B", "time_slot": "09:30:00", "available": False}]
    rows += _open("B", ["09:40:00"])
    matrix = _matrix(rows, ["A", "B"])
    request = ServiceRequest(primary=Segment("A", 30), secondary=Segment("B", 20))

    assert is_client_slot_available("09:00", request, matrix, 16) is False

    diagnostics = explain_slot("09:00", request, matrix, 16)
    assert diagnostics.available is False
    assert [(check.segment, check.time_slot) for check in diagnostics.failing] == [
        ("secondary", "09:30:00")
    ]


def test_dual_service_passes_when_both_segments_are_open() -> None:
    rows = _open("A", ["09:00:00", "09:10:00", "09:20:00"]) + _open("B", ["09:30:00", "09:40:00"])
    matrix = _matrix(rows, ["A", "B"])
    request = ServiceRequest(primary=Segment("A", 30), secondary=Segment("B", 20))

    assert is_client_slot_available("09:00", request, matrix, 16) is True
    assert request.total_duration == 50
    assert request.staff_ids == ["A", "B"]


def test_evaluation_is_idempotent() -> None:
    rows = _open("A", generate_backend_slots(9, 12))
    matrix = _matrix(rows, ["A"])
    request = ServiceRequest(primary=Segment("A", 60))

    first = [is_client_slot_available(slot, request, matrix, 16) for slot in ("09:00", "11:30")]
    second = [is_client_slot_available(slot, request, matrix, 16) for slot in ("09:00", "11:30")]

    assert first == second == [True, False]


def test_truncated_service_near_close_uses_remaining_ticks() -> None:
    rows = _open("A", ["15:30:00", "15:40:00", "15:50:00"])
    matrix = _matrix(rows, ["A"])
    request = ServiceRequest(primary=Segment("A", 60))

    assert is_client_slot_available("15:30", request, matrix, 16) is True


def test_evaluate_day_lists_every_client_slot() -> None:
    rows = _open("A", generate_backend_slots(9, 10))
    matrix = _matrix(rows, ["A"], end_hour=12)
    request = ServiceRequest(primary=Segment("A", 30))

    slots = evaluate_day(request, matrix, is_saturday=True)

    assert [slot.time for slot in slots] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
    assert [slot.available for slot in slots] == [True, True, False, False, False, False]
    assert slots[0].id == "09:00:00"


def test_uniform_day_uses_configured_hours() -> None:
    hours = BusinessHours(weekday_end_hour=17)

    slots = uniform_day(True, is_saturday=False, hours=hours)

    assert len(slots) == 16
    assert all(slot.available for slot in slots)


def test_explain_slot_reports_listed_flag() -> None:
    matrix = _matrix(_open("A", ["09:00:00"]), ["A"])
    request = ServiceRequest(primary=Segment("A", 10))

    diagnostics = explain_slot("09:00:00", request, matrix, 16, listed_available=True)

    assert diagnostics.client_slot == "09:00"
    assert diagnostics.listed_available is True
    assert diagnostics.primary_ticks == ["09:00:00"]
    assert diagnostics.secondary_ticks == []
    assert diagnostics.available is True
