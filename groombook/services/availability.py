from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence

from pydantic import ValidationError

from groombook.clients.backend import BackendClient, eq, in_
from groombook.config import DEFAULT_HOURS, BusinessHours
from groombook.scheduling.evaluator import (
    Segment,
    ServiceRequest,
    evaluate_day,
    explain_slot,
    uniform_day,
)
from groombook.scheduling.matrix import AvailabilityMatrix, unique_staff_ids
from groombook.scheduling.slots import is_saturday, is_sunday
from groombook.schemas.availability import (
    AvailabilityRow,
    AvailabilitySnapshot,
    NextAvailableResponse,
    SlotDiagnostics,
    SlotDiagnosticsRequest,
    SlotListRequest,
    SlotListResponse,
)
from groombook.services.exceptions import ServiceError
from groombook.services.mock_store import AvailabilityRepository, get_mock_store

logger = logging.getLogger(__name__)

AVAILABILITY_TABLE = "staff_availability"
AVAILABILITY_COLUMNS = "staff_profile_id,time_slot,available,date"


def service_request_for(request: SlotListRequest) -> Optional[ServiceRequest]:
    if not request.staff_id:
        return None
    secondary = None
    if request.secondary_staff_id and request.secondary_duration_minutes:
        secondary = Segment(request.secondary_staff_id, request.secondary_duration_minutes)
    return ServiceRequest(
        primary=Segment(request.staff_id, request.duration_minutes),
        secondary=secondary,
    )


def matrix_from_snapshot(
    snapshot: AvailabilitySnapshot, day: date, hours: BusinessHours = DEFAULT_HOURS
) -> AvailabilityMatrix:
    return AvailabilityMatrix.build(
        snapshot.rows,
        snapshot.staff_ids,
        start_hour=hours.start_hour,
        end_hour=hours.end_hour_for(day),
        interval=hours.backend_interval_minutes,
    )


class AvailabilityService:
    def __init__(
        self,
        client: BackendClient,
        *,
        hours: BusinessHours = DEFAULT_HOURS,
        repository: AvailabilityRepository | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._hours = hours
        self._repository = repository
        self._log = log or logger
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().availability

    @property
    def hours(self) -> BusinessHours:
        return self._hours

    async def fetch_rows(
        self,
        day: date,
        staff_ids: Sequence[str],
        *,
        request_seq: int | None = None,
    ) -> AvailabilitySnapshot:
        ids = unique_staff_ids(staff_ids)
        self._log.debug("Fetching availability for %s staff=%s", day, ids)
        if not ids:
            return AvailabilitySnapshot(date=day.isoformat(), request_seq=request_seq)

        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock availability repository not configured")
            raw = await self._repository.rows(day, ids)
        else:
            try:
                raw = await self._client.select(
                    AVAILABILITY_TABLE,
                    columns=AVAILABILITY_COLUMNS,
                    filters={"staff_profile_id": in_(ids), "date": eq(day.isoformat())},
                )
            except ServiceError:
                raise
            except Exception as exc:  # pragma: no cover - defensive
                self._log.exception("Unexpected error while fetching availability")
                raise ServiceError("Failed to fetch availability", cause=exc)

        rows: List[AvailabilityRow] = []
        for row in raw:
            try:
                rows.append(AvailabilityRow.model_validate(row))
            except ValidationError as exc:
                # Unreadable rows stay closed in the matrix.
                self._log.warning("Skipping malformed availability row %r: %s", row, exc)
        self._log.debug("Fetched %s availability rows for %s", len(rows), day)
        return AvailabilitySnapshot(
            date=day.isoformat(), staff_ids=ids, rows=rows, request_seq=request_seq
        )

    async def list_slots(
        self, request: SlotListRequest, *, request_seq: int | None = None
    ) -> SlotListResponse:
        day = request.date
        saturday = is_saturday(day)
        if is_sunday(day):
            return SlotListResponse(
                date=day.isoformat(),
                is_saturday=False,
                closed=True,
                slots=[],
                snapshot=AvailabilitySnapshot(date=day.isoformat(), request_seq=request_seq),
            )

        service_request = service_request_for(request)
        if service_request is None:
            # No staff chosen: open all day if the service needs nobody, closed otherwise.
            slots = uniform_day(not request.requires_staff, is_saturday=saturday, hours=self._hours)
            snapshot = AvailabilitySnapshot(
                date=day.isoformat(), slots=slots, request_seq=request_seq
            )
            return SlotListResponse(
                date=day.isoformat(), is_saturday=saturday, slots=slots, snapshot=snapshot
            )

        snapshot = await self.fetch_rows(
            day, service_request.staff_ids, request_seq=request_seq
        )
        matrix = matrix_from_snapshot(snapshot, day, self._hours)
        slots = evaluate_day(service_request, matrix, is_saturday=saturday, hours=self._hours)
        snapshot.slots = slots
        self._log.info(
            "Listed %s slots for %s (%s available)",
            len(slots),
            day,
            sum(1 for slot in slots if slot.available),
        )
        return SlotListResponse(
            date=day.isoformat(), is_saturday=saturday, slots=slots, snapshot=snapshot
        )

    async def diagnose(self, request: SlotDiagnosticsRequest) -> SlotDiagnostics:
        response = await self.list_slots(request)
        listed = response.snapshot.listed_slot(request.time_slot)
        service_request = service_request_for(request)
        if service_request is None or response.closed:
            return SlotDiagnostics(
                client_slot=request.time_slot,
                listed_available=listed.available if listed else None,
                primary_ticks=[],
                available=bool(listed and listed.available),
            )
        matrix = matrix_from_snapshot(response.snapshot, request.date, self._hours)
        return explain_slot(
            request.time_slot,
            service_request,
            matrix,
            self._hours.end_hour_for(request.date),
            listed_available=listed.available if listed else None,
            interval=self._hours.backend_interval_minutes,
        )

    async def next_available(
        self,
        request: SlotListRequest,
        *,
        days: int = 7,
        provider_name: str = "Próximo disponível",
    ) -> NextAvailableResponse:
        """First open slot on the days after ``request.date``; Sundays are skipped."""

        for offset in range(1, days + 1):
            day = request.date + timedelta(days=offset)
            if is_sunday(day):
                continue
            response = await self.list_slots(request.model_copy(update={"date": day}))
            open_slots: List[str] = [slot.time for slot in response.slots if slot.available]
            if open_slots:
                return NextAvailableResponse(
                    found=True,
                    date=day.isoformat(),
                    time=open_slots[0],
                    provider_name=provider_name,
                )
        return NextAvailableResponse(found=False)
