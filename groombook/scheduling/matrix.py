from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Sequence

from groombook.scheduling.slots import (
    BACKEND_INTERVAL_MINUTES,
    generate_backend_slots,
    to_hhmmss,
)


def unique_staff_ids(staff_ids: Iterable[str]) -> List[str]:
    """Drop empty and repeated staff IDs, keeping first-seen order."""

    seen: Dict[str, None] = {}
    for staff_id in staff_ids:
        if staff_id and staff_id not in seen:
            seen[staff_id] = None
    return list(seen)


class AvailabilityMatrix:
    """Lookup of ``(time_slot, staff_id) -> available`` for one date.

    Every combination of backend tick and staff member starts as ``False``
    and is overlaid with the fetched rows. Anything outside the window, or
    never fetched, reads as unavailable.
    """

    def __init__(self, slots: Sequence[str], staff_ids: Sequence[str]) -> None:
        self._slots = list(slots)
        self._staff_ids = unique_staff_ids(staff_ids)
        self._cells: Dict[str, Dict[str, bool]] = {
            slot: {staff_id: False for staff_id in self._staff_ids}
            for slot in self._slots
        }

    @classmethod
    def build(
        cls,
        rows: Iterable[Mapping[str, object] | object],
        staff_ids: Iterable[str],
        *,
        start_hour: int,
        end_hour: int,
        interval: int = BACKEND_INTERVAL_MINUTES,
    ) -> "AvailabilityMatrix":
        matrix = cls(generate_backend_slots(start_hour, end_hour, interval), list(staff_ids))
        for row in rows:
            matrix._overlay(row)
        return matrix

    def _overlay(self, row: Mapping[str, object] | object) -> None:
        if isinstance(row, Mapping):
            staff_id = row.get("staff_profile_id")
            time_slot = row.get("time_slot")
            available = row.get("available")
        else:
            staff_id = getattr(row, "staff_profile_id", None)
            time_slot = getattr(row, "time_slot", None)
            available = getattr(row, "available", None)
        if not staff_id or not time_slot:
            return
        staff_id = str(staff_id)
        column = self._cells.get(to_hhmmss(str(time_slot)))
        if column is None or staff_id not in column:
            return
        column[staff_id] = available is True

    @property
    def slots(self) -> List[str]:
        return list(self._slots)

    @property
    def staff_ids(self) -> List[str]:
        return list(self._staff_ids)

    def is_available(self, time_slot: str, staff_id: str) -> bool:
        column = self._cells.get(to_hhmmss(time_slot))
        if column is None:
            return False
        return column.get(staff_id, False)

    def as_dict(self) -> Dict[str, Dict[str, bool]]:
        return {slot: dict(column) for slot, column in self._cells.items()}

    def __repr__(self) -> str:
        return (
            f"AvailabilityMatrix(slots={len(self._slots)}, "
            f"staff={self._staff_ids!r})"
        )
