"""State of the multi-step booking wizard.

The controller owns the selections (pet, service, staff, date, time), the
slot list on screen and the availability snapshot the list was computed
from. Slot fetches are tagged with a request sequence number; a response is
applied only if no newer fetch was started in the meantime. Superseded
fetches are not cancelled, their results are dropped on arrival.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from groombook.schemas.availability import AvailabilitySnapshot, SlotListRequest, TimeSlot
from groombook.schemas.booking import BookingRequest, BookingResponse
from groombook.schemas.catalog import PetSummary, ServiceSummary, StaffSummary
from groombook.scheduling.slots import to_hhmm
from groombook.services import messages
from groombook.services.availability import AvailabilityService
from groombook.services.booking import BookingSubmitter
from groombook.services.catalog import CatalogService
from groombook.services.exceptions import (
    BookingRejectedError,
    ServiceError,
    SlotValidationError,
)

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, Tuple[str, ...], str, Tuple[int, Optional[int]]]


class BookingStep(str, Enum):
    SERVICE_SELECT = "service_select"
    STAFF_SELECT = "staff_select"
    TIME_SELECT = "time_select"
    REVIEW = "review"
    SUBMITTED = "submitted"


STEP_ORDER: List[BookingStep] = list(BookingStep)


class AppointmentFormState:
    def __init__(
        self,
        availability: AvailabilityService,
        submitter: BookingSubmitter,
        *,
        user_id: str,
        catalog: CatalogService | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._availability = availability
        self._submitter = submitter
        self._catalog = catalog
        self._log = log or logger
        self.user_id = user_id

        self.step = BookingStep.SERVICE_SELECT
        self.pet_id: Optional[str] = None
        self.service_id: Optional[str] = None
        self.duration_minutes: int = 60
        self.requires_staff: bool = True
        self.secondary_service_id: Optional[str] = None
        self.secondary_duration_minutes: Optional[int] = None
        self.staff_id: Optional[str] = None
        self.secondary_staff_id: Optional[str] = None
        self.date: Optional[date] = None
        self.time_slot: Optional[str] = None
        self.notes: Optional[str] = None

        self.services: List[ServiceSummary] = []
        self.staff: List[StaffSummary] = []
        self.pets: List[PetSummary] = []

        self.slots: List[TimeSlot] = []
        self.snapshot: Optional[AvailabilitySnapshot] = None
        self.loading = False
        self.notices: List[Tuple[str, str]] = []
        self.last_booking: Optional[BookingResponse] = None

        self._request_seq = 0
        self._cache: Dict[CacheKey, List[TimeSlot]] = {}

    # -- notices ---------------------------------------------------------

    def _notify(self, level: str, message: str) -> None:
        self.notices.append((level, message))

    # -- catalog ---------------------------------------------------------

    async def load_catalog(self, service_type: str) -> None:
        if self._catalog is None:
            raise RuntimeError("Catalog service not configured")
        try:
            self.services = (await self._catalog.list_services(service_type)).items
            self.staff = (await self._catalog.list_staff(service_type=service_type)).items
            self.pets = (await self._catalog.list_pets(self.user_id)).items
        except ServiceError:
            self._log.exception("Failed to load booking catalog")
            self._notify("error", "Erro ao carregar dados do agendamento.")

    # -- selections ------------------------------------------------------

    def _fall_back_to(self, step: BookingStep) -> None:
        if STEP_ORDER.index(self.step) > STEP_ORDER.index(step):
            self.step = step

    def select_pet(self, pet_id: str) -> None:
        self.pet_id = pet_id

    async def select_service(
        self,
        service_id: str,
        duration_minutes: int,
        *,
        requires_staff: bool = True,
        secondary_service_id: Optional[str] = None,
        secondary_duration_minutes: Optional[int] = None,
    ) -> None:
        self.service_id = service_id
        self.duration_minutes = duration_minutes
        self.requires_staff = requires_staff
        self.secondary_service_id = secondary_service_id
        self.secondary_duration_minutes = secondary_duration_minutes
        self.staff_id = None
        self.secondary_staff_id = None
        self.time_slot = None
        self._fall_back_to(BookingStep.SERVICE_SELECT)
        await self._refresh_if_ready()

    async def select_staff(
        self, staff_id: Optional[str], secondary_staff_id: Optional[str] = None
    ) -> None:
        self.staff_id = staff_id
        self.secondary_staff_id = secondary_staff_id if self.secondary_service_id else None
        self.time_slot = None
        self._fall_back_to(BookingStep.STAFF_SELECT)
        await self._refresh_if_ready()

    async def select_date(self, day: date) -> None:
        self.date = day
        self.time_slot = None
        self._fall_back_to(BookingStep.TIME_SELECT)
        await self._refresh_if_ready()

    def select_time(self, time_slot: str) -> None:
        wanted = to_hhmm(time_slot)
        listed = next((slot for slot in self.slots if slot.time == wanted), None)
        if listed is None or not listed.available:
            self._notify("error", messages.REQUIRED_TICK_UNAVAILABLE)
            raise SlotValidationError(
                f"slot {wanted} is not available",
                code="required_tick_unavailable",
                user_message=messages.REQUIRED_TICK_UNAVAILABLE,
            )
        self.time_slot = wanted

    def set_notes(self, notes: Optional[str]) -> None:
        self.notes = notes

    # -- navigation ------------------------------------------------------

    def can_advance(self) -> bool:
        if self.step is BookingStep.SERVICE_SELECT:
            return bool(self.pet_id and self.service_id)
        if self.step is BookingStep.STAFF_SELECT:
            if not self.requires_staff:
                return True
            if not self.staff_id:
                return False
            return not (self.secondary_duration_minutes and not self.secondary_staff_id)
        if self.step is BookingStep.TIME_SELECT:
            return bool(self.date and self.time_slot)
        return False

    def advance(self) -> bool:
        if not self.can_advance():
            return False
        self.step = STEP_ORDER[STEP_ORDER.index(self.step) + 1]
        return True

    def back(self) -> bool:
        if self.step in (BookingStep.SERVICE_SELECT, BookingStep.SUBMITTED):
            return False
        self.step = STEP_ORDER[STEP_ORDER.index(self.step) - 1]
        return True

    # -- slots -----------------------------------------------------------

    def staff_ids(self) -> List[str]:
        return [staff_id for staff_id in (self.staff_id, self.secondary_staff_id) if staff_id]

    def cache_key(self) -> Optional[CacheKey]:
        if self.date is None or self.service_id is None:
            return None
        return (
            self.date.isoformat(),
            tuple(sorted(self.staff_ids())),
            self.service_id,
            (self.duration_minutes, self.secondary_duration_minutes),
        )

    def slot_request(self) -> Optional[SlotListRequest]:
        if self.date is None or self.service_id is None:
            return None
        secondary_staff = self.secondary_staff_id if self.secondary_duration_minutes else None
        return SlotListRequest(
            date=self.date,
            service_id=self.service_id,
            duration_minutes=self.duration_minutes,
            staff_id=self.staff_id,
            secondary_service_id=self.secondary_service_id,
            secondary_duration_minutes=self.secondary_duration_minutes if secondary_staff else None,
            secondary_staff_id=secondary_staff,
            requires_staff=self.requires_staff,
        )

    async def _refresh_if_ready(self) -> None:
        if self.date is not None and self.service_id is not None:
            await self.refresh_slots()

    async def refresh_slots(self) -> bool:
        """Fetch and evaluate slots; return whether the result was applied."""

        request = self.slot_request()
        key = self.cache_key()
        if request is None or key is None:
            return False

        self._request_seq += 1
        seq = self._request_seq
        cached = self._cache.get(key)
        if cached is not None:
            self.slots = list(cached)
        self.loading = True

        try:
            response = await self._availability.list_slots(request, request_seq=seq)
        except ServiceError:
            self._log.exception("Slot fetch %s failed", seq)
            if seq == self._request_seq:
                self.loading = False
                self._notify("error", messages.SLOT_FETCH_FAILED)
            return False

        if seq != self._request_seq:
            self._log.debug("Discarding slot response %s, latest is %s", seq, self._request_seq)
            return False

        self.slots = response.slots
        self.snapshot = response.snapshot
        self._cache[key] = list(response.slots)
        self.loading = False
        if self.time_slot and not any(
            slot.time == self.time_slot and slot.available for slot in self.slots
        ):
            self.time_slot = None
        return True

    # -- submit ----------------------------------------------------------

    def booking_request(self) -> BookingRequest:
        if not (self.pet_id and self.service_id and self.date and self.time_slot):
            raise SlotValidationError(
                "booking selections are incomplete",
                code="incomplete_selection",
                user_message="Por favor, preencha todos os campos obrigatórios.",
            )
        return BookingRequest(
            user_id=self.user_id,
            pet_id=self.pet_id,
            service_id=self.service_id,
            provider_ids=self.staff_ids(),
            booking_date=self.date,
            time_slot=self.time_slot,
            notes=self.notes,
            duration_minutes=self.duration_minutes,
            secondary_duration_minutes=self.secondary_duration_minutes,
        )

    async def submit(self) -> BookingResponse:
        if self.step is not BookingStep.REVIEW:
            raise RuntimeError(f"Cannot submit from step {self.step.value}")
        try:
            request = self.booking_request()
            snapshot = self.snapshot or AvailabilitySnapshot(date=request.booking_date.isoformat())
            response = await self._submitter.submit(request, snapshot)
        except (SlotValidationError, BookingRejectedError) as exc:
            self._notify("error", exc.user_message)
            raise
        except ServiceError:
            self._notify("error", messages.translate_booking_error(None))
            raise

        self.last_booking = response
        self.step = BookingStep.SUBMITTED
        self._notify("success", response.message or messages.BOOKING_CREATED)
        return response
