from __future__ import annotations

import logging
from typing import Any

from groombook.clients.backend import BackendClient, eq
from groombook.scheduling.slots import is_sunday
from groombook.schemas.admin import (
    AdminBookingRequest,
    AdminBookingResponse,
    AvailabilityOverrideRequest,
    AvailabilityOverrideResponse,
    EditBookingRequest,
    EditBookingResponse,
)
from groombook.services import messages
from groombook.services.booking import extract_appointment_id, rejection_from
from groombook.services.exceptions import (
    BackendRPCError,
    BookingRejectedError,
    ServiceError,
    SlotValidationError,
)
from groombook.services.mock_store import MockDataStore, get_mock_store

logger = logging.getLogger(__name__)

EDIT_BOOKING_RPC = "edit_booking_admin"


class AdminBookingService:
    """Admin-only booking operations: manual bookings, edits and overrides."""

    def __init__(
        self,
        client: BackendClient,
        *,
        store: MockDataStore | None = None,
    ) -> None:
        self._client = client
        self._store = store
        if self._client.use_mock_data:
            self._store = store or get_mock_store()

    def _mock_store(self) -> MockDataStore:
        if not self._store:
            raise RuntimeError("Mock data store not configured")
        return self._store

    async def create_manual_booking(self, request: AdminBookingRequest) -> AdminBookingResponse:
        if is_sunday(request.booking_date):
            raise SlotValidationError(
                "Bookings are not allowed on Sundays",
                code="sunday_closed",
                user_message=messages.SUNDAY_CLOSED,
            )
        if not request.provider_ids:
            raise SlotValidationError(
                "At least one staff member is required",
                code="missing_staff",
                user_message=messages.MISSING_STAFF,
            )

        rpc_name, payload = request.rpc_call()
        logger.info("Creating admin booking via %s for %s", rpc_name, request.booking_date)
        try:
            if self._client.use_mock_data:
                await self._client.simulate_latency()
                store = self._mock_store()
                durations = None
                if request.secondary_service_id:
                    primary = store.catalog.get_service(request.service_id)
                    secondary = store.catalog.get_service(request.secondary_service_id)
                    durations = [
                        primary.default_duration if primary else 60,
                        secondary.default_duration if secondary else 60,
                    ][: len(request.provider_ids)]
                elif request.calculated_duration:
                    durations = [request.calculated_duration]
                data: Any = await store.appointments.create(
                    user_id=request.client_user_id,
                    pet_id=request.pet_id,
                    service_id=request.service_id,
                    provider_ids=request.provider_ids,
                    day=request.booking_date,
                    time_slot=request.time_slot,
                    durations=durations,
                    notes=request.notes,
                    override=request.override,
                )
            else:
                data = await self._client.rpc(rpc_name, payload)
        except BackendRPCError as exc:
            logger.error("Admin booking error from backend: %s", exc.as_dict())
            raise rejection_from(exc) from exc
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while creating admin booking")
            raise ServiceError("Failed to create admin booking", cause=exc)

        appointment_id = extract_appointment_id(data)
        if appointment_id is None:
            raise BookingRejectedError(
                "No appointment ID returned",
                kind=messages.UNKNOWN,
                user_message=messages.translate_booking_error("No appointment ID returned"),
            )
        return AdminBookingResponse(
            appointment_id=appointment_id,
            override=request.override,
            message=messages.BOOKING_CREATED_OVERRIDE if request.override else messages.BOOKING_CREATED,
        )

    async def edit_booking(
        self, appointment_id: str, request: EditBookingRequest
    ) -> EditBookingResponse:
        logger.info(
            "Editing booking %s to %s %s (force=%s)",
            appointment_id,
            request.new_date,
            request.new_time,
            request.force_override,
        )
        try:
            if self._client.use_mock_data:
                await self._client.simulate_latency()
                success = await self._mock_store().appointments.edit(
                    appointment_id,
                    new_date=request.new_date,
                    new_time=request.new_time,
                    extra_fee=request.extra_fee,
                    notes=request.notes,
                    force_override=request.force_override,
                )
            else:
                data = await self._client.rpc(
                    EDIT_BOOKING_RPC, request.to_rpc_payload(appointment_id)
                )
                success = data is not False
        except BackendRPCError as exc:
            logger.error("Edit booking error from backend: %s", exc.as_dict())
            raise rejection_from(exc) from exc
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while editing booking")
            raise ServiceError("Failed to edit booking", cause=exc)

        return EditBookingResponse(
            success=bool(success),
            appointment_id=appointment_id,
            message="Agendamento atualizado com sucesso!" if success else None,
        )

    async def set_staff_availability(
        self, request: AvailabilityOverrideRequest
    ) -> AvailabilityOverrideResponse:
        """Toggle one ``staff_availability`` row directly."""

        logger.info(
            "Setting availability of %s on %s %s to %s",
            request.staff_profile_id,
            request.date,
            request.time_slot,
            request.available,
        )
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            updated = await self._mock_store().availability.set_available(
                request.staff_profile_id, request.date, request.time_slot, request.available
            )
            return AvailabilityOverrideResponse(updated=updated)

        try:
            rows = await self._client.update(
                "staff_availability",
                {"available": request.available},
                filters={
                    "staff_profile_id": eq(request.staff_profile_id),
                    "date": eq(request.date.isoformat()),
                    "time_slot": eq(request.time_slot),
                },
            )
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while updating availability")
            raise ServiceError("Failed to update availability", cause=exc)
        return AvailabilityOverrideResponse(updated=len(rows))
