from types import SimpleNamespace

from groombook.scheduling.matrix import AvailabilityMatrix, unique_staff_ids
from groombook.schemas.availability import AvailabilityRow


def _row(staff_id, time_slot, available=True):
    return {"staff_profile_id": staff_id, "time_slot": time_slot, "available": available}


def test_missing_pairs_are_unavailable() -> None:
    matrix = AvailabilityMatrix.build([_row("A", "09:00:00")], ["A", "B"], start_hour=9, end_hour=16)

    assert matrix.is_available("09:00:00", "A") is True
    assert matrix.is_available("09:10:00", "A") is False
    assert matrix.is_available("09:00:00", "B") is False
    assert matrix.is_available("09:00:00", "unknown") is False
    assert matrix.is_available("20:00:00", "A") is False
    assert matrix.is_available("not-a-time", "A") is False


def test_rows_outside_window_or_staff_are_ignored() -> None:
    matrix = AvailabilityMatrix.build(
        [_row("A", "16:00:00"), _row("Z", "09:00:00"), _row("A", "09:10")],
        ["A"],
        start_hour=9,
        end_hour=16,
    )

    assert "16:00:00" not in matrix.as_dict()
    assert matrix.staff_ids == ["A"]
    assert matrix.is_available("09:10:00", "A") is True


def test_only_literal_true_marks_a_cell_available() -> None:
    matrix = AvailabilityMatrix.build(
        [_row("A", "09:00:00", "true"), _row("A", "09:10:00", 1), _row("A", "09:20:00", None)],
        ["A"],
        start_hour=9,
        end_hour=10,
    )

    assert not any(matrix.as_dict()[slot]["A"] for slot in matrix.slots)


def test_later_rows_override_earlier_ones() -> None:
    matrix = AvailabilityMatrix.build(
        [_row("A", "09:00:00", True), _row("A", "09:00:00", False)],
        ["A"],
        start_hour=9,
        end_hour=10,
    )

    assert matrix.is_available("09:00:00", "A") is False


def test_accepts_model_and_attribute_rows() -> None:
    rows = [
        AvailabilityRow(staff_profile_id="A", time_slot="09:00", available=True),
        SimpleNamespace(staff_profile_id=7, time_slot="09:10:00", available=True),
        SimpleNamespace(staff_profile_id=None, time_slot="09:20:00", available=True),
    ]

    matrix = AvailabilityMatrix.build(rows, ["A", "7"], start_hour=9, end_hour=10)

    assert matrix.is_available("09:00", "A") is True
    assert matrix.is_available("09:10:00", "7") is True


def test_staff_ids_are_deduplicated() -> None:
    assert unique_staff_ids(["A", "", "B", "A", None]) == ["A", "B"]

    matrix = AvailabilityMatrix.build([], ["A", "A"], start_hour=9, end_hour=10)

    assert matrix.staff_ids == ["A"]
    assert len(matrix.slots) == 6
    assert "staff=['A']" in repr(matrix)
