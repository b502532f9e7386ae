"""Final gate in front of the atomic booking procedure.

The local checks here only protect the user from submitting a slot the
screen no longer agrees with. The booking procedure on the backend is what
actually prevents double booking, and it can still refuse.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from groombook.clients.backend import BackendClient
from groombook.config import DEFAULT_HOURS, BusinessHours
from groombook.scheduling.evaluator import explain_slot
from groombook.schemas.availability import AvailabilitySnapshot, SlotDiagnostics
from groombook.schemas.booking import BookingRequest, BookingResponse
from groombook.services import messages
from groombook.services.availability import matrix_from_snapshot
from groombook.services.exceptions import (
    BackendRPCError,
    BookingRejectedError,
    ServiceError,
    SlotValidationError,
)
from groombook.services.mock_store import AppointmentRepository, get_mock_store

logger = logging.getLogger(__name__)

CREATE_BOOKING_RPC = "create_booking_atomic"


def extract_appointment_id(data: Any) -> Optional[str]:
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get("appointment_id") or data.get("id") or data.get(CREATE_BOOKING_RPC)
    if data in (None, ""):
        return None
    return str(data)


def rejection_from(error: BackendRPCError) -> BookingRejectedError:
    kind, user_message = messages.classify_booking_error(
        str(error), extra=(error.details, error.hint, error.code)
    )
    return BookingRejectedError(
        f"Booking rejected by backend: {error}",
        kind=kind,
        user_message=user_message,
        error=error,
    )


class BookingSubmitter:
    def __init__(
        self,
        client: BackendClient,
        *,
        hours: BusinessHours = DEFAULT_HOURS,
        repository: AppointmentRepository | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._hours = hours
        self._repository = repository
        self._log = log or logger
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().appointments

    def _reject(self, code: str, user_message: str, detail: str) -> SlotValidationError:
        self._log.warning("Booking blocked locally (%s): %s", code, detail)
        return SlotValidationError(detail, code=code, user_message=user_message)

    def validate(
        self, request: BookingRequest, snapshot: AvailabilitySnapshot
    ) -> Optional[SlotDiagnostics]:
        """Check the request against the latest snapshot; raise on mismatch."""

        booking_date = request.booking_date.isoformat()
        if snapshot.date != booking_date:
            raise self._reject(
                "stale_snapshot",
                messages.STALE_SNAPSHOT,
                f"snapshot is for {snapshot.date}, booking is for {booking_date}",
            )

        listed = snapshot.listed_slot(request.time_slot)
        service_request = request.service_request()
        if service_request is None:
            if listed is None:
                raise self._reject(
                    "slot_not_in_snapshot",
                    messages.SLOT_NOT_IN_SNAPSHOT,
                    f"slot {request.time_slot} not in fetched snapshot",
                )
            if not listed.available:
                raise self._reject(
                    "required_tick_unavailable",
                    messages.REQUIRED_TICK_UNAVAILABLE,
                    f"slot {request.time_slot} is not listed as available",
                )
            return None

        if not snapshot.matches(booking_date, service_request.staff_ids):
            raise self._reject(
                "stale_snapshot",
                messages.STALE_SNAPSHOT,
                f"snapshot staff {snapshot.staff_ids} differ from {service_request.staff_ids}",
            )
        if not snapshot.has_time_slot(request.time_slot):
            raise self._reject(
                "slot_not_in_snapshot",
                messages.SLOT_NOT_IN_SNAPSHOT,
                f"slot {request.time_slot} not in fetched snapshot",
            )

        matrix = matrix_from_snapshot(snapshot, request.booking_date, self._hours)
        diagnostics = explain_slot(
            request.time_slot,
            service_request,
            matrix,
            self._hours.end_hour_for(request.booking_date),
            listed_available=listed.available if listed else None,
            interval=self._hours.backend_interval_minutes,
        )
        if not diagnostics.listed_available or not diagnostics.available:
            failing = ", ".join(
                f"{check.segment}:{check.staff_id}@{check.time_slot}"
                for check in diagnostics.failing
            )
            raise self._reject(
                "required_tick_unavailable",
                messages.REQUIRED_TICK_UNAVAILABLE,
                f"slot {request.time_slot} failed local check ({failing or 'not listed'})",
            )
        return diagnostics

    async def submit(
        self, request: BookingRequest, snapshot: AvailabilitySnapshot
    ) -> BookingResponse:
        self.validate(request, snapshot)
        self._log.info(
            "Submitting booking for pet %s on %s at %s",
            request.pet_id,
            request.booking_date,
            request.time_slot,
        )

        try:
            if self._client.use_mock_data:
                await self._client.simulate_latency()
                if not self._repository:
                    raise RuntimeError("Mock appointment repository not configured")
                durations = [request.duration_minutes]
                if request.secondary_duration_minutes:
                    durations.append(request.secondary_duration_minutes)
                data: Any = await self._repository.create(
                    user_id=request.user_id,
                    pet_id=request.pet_id,
                    service_id=request.service_id,
                    provider_ids=request.provider_ids,
                    day=request.booking_date,
                    time_slot=request.time_slot,
                    durations=durations[: len(request.provider_ids)],
                    notes=request.notes,
                )
            else:
                data = await self._client.rpc(CREATE_BOOKING_RPC, request.to_rpc_payload())
        except BackendRPCError as exc:
            self._log.error("Booking error from backend: %s", exc.as_dict())
            raise rejection_from(exc) from exc
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            self._log.exception("Unexpected error while creating booking")
            raise ServiceError("Failed to create booking", cause=exc)

        appointment_id = extract_appointment_id(data)
        if appointment_id is None:
            self._log.error("Booking procedure returned no appointment id: %r", data)
            raise BookingRejectedError(
                "No appointment ID returned",
                kind=messages.UNKNOWN,
                user_message=messages.translate_booking_error("No appointment ID returned"),
            )

        self._log.info("Booking %s created", appointment_id)
        return BookingResponse(
            status="confirmed",
            appointment_id=appointment_id,
            booking_date=request.booking_date.isoformat(),
            time_slot=request.time_slot,
            message=messages.BOOKING_CREATED,
        )
