"""Client slot evaluation against an :class:`AvailabilityMatrix`.

A service is booked as one or two sequential segments. Each segment is done
by one staff member; the secondary segment starts on the tick right after the
primary one ends, with no gap and no overlap. A client slot is available only
when every tick of every segment is open for that segment's staff member.

This is the fast, advisory tier. The backend booking procedure still decides.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from groombook.config import DEFAULT_HOURS, BusinessHours
from groombook.scheduling.matrix import AvailabilityMatrix
from groombook.scheduling.slots import (
    BACKEND_INTERVAL_MINUTES,
    generate_client_slots,
    get_required_backend_slots,
    to_hhmm,
    to_hhmmss,
)
from groombook.schemas.availability import SlotDiagnostics, TickCheck, TimeSlot


@dataclass(frozen=True)
class Segment:
    staff_id: str
    duration_minutes: int


@dataclass(frozen=True)
class ServiceRequest:
    primary: Segment
    secondary: Optional[Segment] = None

    @property
    def total_duration(self) -> int:
        if self.secondary is None:
            return self.primary.duration_minutes
        return self.primary.duration_minutes + self.secondary.duration_minutes

    @property
    def staff_ids(self) -> List[str]:
        ids = [self.primary.staff_id]
        if self.secondary is not None:
            ids.append(self.secondary.staff_id)
        return ids


def required_segment_ticks(
    client_slot: str,
    request: ServiceRequest,
    end_hour: int,
    interval: int = BACKEND_INTERVAL_MINUTES,
) -> Tuple[List[str], List[str]]:
    """Return ``(primary_ticks, secondary_ticks)`` for a slot.

    Secondary ticks are the tail of the combined-duration tick list once the
    primary ticks are removed.
    """

    primary = get_required_backend_slots(
        client_slot, request.primary.duration_minutes, end_hour, interval
    )
    if request.secondary is None:
        return primary, []
    combined = get_required_backend_slots(
        client_slot, request.total_duration, end_hour, interval
    )
    return primary, combined[len(primary):]


def _segment_open(matrix: AvailabilityMatrix, ticks: List[str], staff_id: str) -> bool:
    return all(matrix.is_available(tick, staff_id) for tick in ticks)


def is_client_slot_available(
    client_slot: str,
    request: ServiceRequest,
    matrix: AvailabilityMatrix,
    end_hour: int,
    interval: int = BACKEND_INTERVAL_MINUTES,
) -> bool:
    primary_ticks, secondary_ticks = required_segment_ticks(
        client_slot, request, end_hour, interval
    )
    if not _segment_open(matrix, primary_ticks, request.primary.staff_id):
        return False
    if request.secondary is not None:
        return _segment_open(matrix, secondary_ticks, request.secondary.staff_id)
    return True


def evaluate_day(
    request: ServiceRequest,
    matrix: AvailabilityMatrix,
    *,
    is_saturday: bool,
    hours: BusinessHours = DEFAULT_HOURS,
) -> List[TimeSlot]:
    end_hour = hours.end_hour(is_saturday)
    return [
        TimeSlot(
            id=to_hhmmss(slot),
            time=slot,
            available=is_client_slot_available(
                slot, request, matrix, end_hour, hours.backend_interval_minutes
            ),
        )
        for slot in generate_client_slots(is_saturday, hours)
    ]


def uniform_day(
    available: bool,
    *,
    is_saturday: bool,
    hours: BusinessHours = DEFAULT_HOURS,
) -> List[TimeSlot]:
    """Whole-day list for services that need no staff, or have none chosen."""

    return [
        TimeSlot(id=to_hhmmss(slot), time=slot, available=available)
        for slot in generate_client_slots(is_saturday, hours)
    ]


def explain_slot(
    client_slot: str,
    request: ServiceRequest,
    matrix: AvailabilityMatrix,
    end_hour: int,
    *,
    listed_available: Optional[bool] = None,
    interval: int = BACKEND_INTERVAL_MINUTES,
) -> SlotDiagnostics:
    primary_ticks, secondary_ticks = required_segment_ticks(
        client_slot, request, end_hour, interval
    )
    checks = [
        TickCheck(
            segment="primary",
            staff_id=request.primary.staff_id,
            time_slot=tick,
            available=matrix.is_available(tick, request.primary.staff_id),
        )
        for tick in primary_ticks
    ]
    if request.secondary is not None:
        checks.extend(
            TickCheck(
                segment="secondary",
                staff_id=request.secondary.staff_id,
                time_slot=tick,
                available=matrix.is_available(tick, request.secondary.staff_id),
            )
            for tick in secondary_ticks
        )
    return SlotDiagnostics(
        client_slot=to_hhmm(client_slot),
        listed_available=listed_available,
        primary_ticks=primary_ticks,
        secondary_ticks=secondary_ticks,
        checks=checks,
        available=all(check.available for check in checks),
    )
