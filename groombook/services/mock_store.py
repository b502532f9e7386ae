from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from groombook.config import DEFAULT_HOURS, BusinessHours
from groombook.scheduling.slots import (
    generate_backend_slots,
    get_required_backend_slots,
    is_sunday,
    to_hhmmss,
)
from groombook.services.exceptions import BackendRPCError


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


@dataclass
class ServiceRecord:
    id: str
    name: str
    service_type: str
    base_price: float
    default_duration: int
    requires_bath: bool = False
    requires_grooming: bool = False
    requires_vet: bool = False
    active: bool = True
    description: Optional[str] = None


@dataclass
class StaffRecord:
    id: str
    name: str
    can_bathe: bool = False
    can_groom: bool = False
    can_vet: bool = False
    active: bool = True
    bio: Optional[str] = None


@dataclass
class PetRecord:
    id: str
    name: str
    user_id: str
    breed: Optional[str] = None
    size: Optional[str] = None


@dataclass
class PricingRecord:
    service_id: str
    price: float
    size: Optional[str] = None
    breed: Optional[str] = None
    duration_override: Optional[int] = None


@dataclass
class AppointmentRecord:
    id: str
    user_id: str
    pet_id: str
    service_id: str
    date: str
    time: str
    provider_ids: List[str]
    segments: List[Tuple[str, List[str]]]
    notes: Optional[str] = None
    extra_fee: float = 0.0
    status: str = "pending"
    created_at: str = field(default_factory=_utc_now_iso)


class CatalogRepository:
    def __init__(self) -> None:
        self.services: Dict[str, ServiceRecord] = {}
        self.staff: Dict[str, StaffRecord] = {}
        self.pets: Dict[str, PetRecord] = {}
        self.pricing: List[PricingRecord] = []
        self._seed()

    def _seed(self) -> None:
        for service in (
            ServiceRecord(
                id="svc-banho",
                name="Banho",
                service_type="grooming",
                base_price=60.0,
                default_duration=60,
                requires_bath=True,
            ),
            ServiceRecord(
                id="svc-tosa",
                name="Tosa Higiênica",
                service_type="grooming",
                base_price=45.0,
                default_duration=30,
                requires_grooming=True,
            ),
            ServiceRecord(
                id="svc-hidratacao",
                name="Hidratação",
                service_type="grooming",
                base_price=30.0,
                default_duration=20,
            ),
            ServiceRecord(
                id="svc-consulta",
                name="Consulta Veterinária",
                service_type="veterinary",
                base_price=120.0,
                default_duration=30,
                requires_vet=True,
            ),
            ServiceRecord(
                id="svc-vacina",
                name="Vacinação",
                service_type="veterinary",
                base_price=90.0,
                default_duration=20,
                requires_vet=True,
                active=False,
            ),
        ):
            self.services[service.id] = service

        for staff in (
            StaffRecord(id="staff-ana", name="Ana Souza", can_bathe=True),
            StaffRecord(id="staff-bruno", name="Bruno Lima", can_groom=True, can_bathe=True),
            StaffRecord(id="staff-carla", name="Dra. Carla Mendes", can_vet=True),
            StaffRecord(id="staff-diego", name="Diego Alves", can_groom=True, active=False),
        ):
            self.staff[staff.id] = staff

        for pet in (
            PetRecord(id="pet-thor", name="Thor", user_id="user-1", breed="Shih Tzu", size="pequeno"),
            PetRecord(id="pet-luna", name="Luna", user_id="user-1", breed="Golden Retriever", size="grande"),
            PetRecord(id="pet-mel", name="Mel", user_id="user-2", breed="SRD", size="medio"),
        ):
            self.pets[pet.id] = pet

        self.pricing.extend([
            PricingRecord(service_id="svc-banho", breed="Shih Tzu", size="pequeno", price=70.0, duration_override=50),
            PricingRecord(service_id="svc-banho", size="grande", price=110.0, duration_override=90),
            PricingRecord(service_id="svc-tosa", size="grande", price=80.0),
        ])

    def list_services(self, service_type: Optional[str] = None) -> List[ServiceRecord]:
        services = [
            service
            for service in self.services.values()
            if service.active and (service_type is None or service.service_type == service_type)
        ]
        return sorted(services, key=lambda service: service.name)

    def list_staff(self, capability: Optional[str] = None) -> List[StaffRecord]:
        staff = [
            member
            for member in self.staff.values()
            if member.active and (capability is None or getattr(member, capability, False))
        ]
        return sorted(staff, key=lambda member: member.name)

    def list_pets(self, user_id: str) -> List[PetRecord]:
        pets = [pet for pet in self.pets.values() if pet.user_id == user_id]
        return sorted(pets, key=lambda pet: pet.name)

    def get_service(self, service_id: str) -> Optional[ServiceRecord]:
        return self.services.get(service_id)

    def find_pricing(
        self, service_id: str, *, breed: Optional[str] = None, size: Optional[str] = None
    ) -> Optional[PricingRecord]:
        for record in self.pricing:
            if record.service_id != service_id or record.size != size:
                continue
            if breed is None or record.breed == breed:
                return record
        return None


class AvailabilityRepository:
    """``staff_availability`` rows, opened lazily for every working day."""

    def __init__(self, catalog: CatalogRepository, hours: BusinessHours = DEFAULT_HOURS) -> None:
        self._catalog = catalog
        self._hours = hours
        self._rows: Dict[Tuple[str, str, str], bool] = {}
        self._seeded_dates: set[str] = set()

    def _ensure_day(self, day: date) -> None:
        key = day.isoformat()
        if key in self._seeded_dates:
            return
        self._seeded_dates.add(key)
        if is_sunday(day):
            return
        end_hour = self._hours.end_hour_for(day)
        for staff in self._catalog.staff.values():
            if not staff.active:
                continue
            for slot in generate_backend_slots(
                self._hours.start_hour, end_hour, self._hours.backend_interval_minutes
            ):
                self._rows.setdefault((staff.id, key, slot), True)

    async def rows(self, day: date, staff_ids: Sequence[str]) -> List[Dict[str, object]]:
        self._ensure_day(day)
        key = day.isoformat()
        wanted = set(staff_ids)
        rows = [
            {
                "staff_profile_id": staff_id,
                "date": row_date,
                "time_slot": slot,
                "available": available,
            }
            for (staff_id, row_date, slot), available in self._rows.items()
            if row_date == key and staff_id in wanted
        ]
        rows.sort(key=lambda row: (row["staff_profile_id"], row["time_slot"]))
        return rows

    async def set_available(self, staff_id: str, day: date, time_slot: str, available: bool) -> int:
        self._ensure_day(day)
        key = (staff_id, day.isoformat(), to_hhmmss(time_slot))
        if key not in self._rows:
            return 0
        self._rows[key] = available
        return 1

    def replace_day(self, day: date, rows: Iterable[Dict[str, object]]) -> None:
        """Load an exact set of rows for a date, dropping the seeded ones."""

        key = day.isoformat()
        self._seeded_dates.add(key)
        for row_key in [row_key for row_key in self._rows if row_key[1] == key]:
            del self._rows[row_key]
        for row in rows:
            self._rows[
                (str(row["staff_profile_id"]), key, to_hhmmss(str(row["time_slot"])))
            ] = bool(row["available"])

    def is_open(self, staff_id: str, day: date, time_slot: str) -> bool:
        self._ensure_day(day)
        return self._rows.get((staff_id, day.isoformat(), time_slot), False)

    def occupy(self, day: date, segments: Sequence[Tuple[str, List[str]]], value: bool = False) -> None:
        for staff_id, ticks in segments:
            for tick in ticks:
                row_key = (staff_id, day.isoformat(), tick)
                if row_key in self._rows:
                    self._rows[row_key] = value


class AppointmentRepository(_BaseRepository):
    """Stands in for the booking procedures when running without a backend."""

    def __init__(
        self,
        catalog: CatalogRepository,
        availability: AvailabilityRepository,
        hours: BusinessHours = DEFAULT_HOURS,
    ) -> None:
        super().__init__("APT")
        self._catalog = catalog
        self._availability = availability
        self._hours = hours
        self._appointments: Dict[str, AppointmentRecord] = {}

    def _segments(
        self,
        day: date,
        time_slot: str,
        provider_ids: Sequence[str],
        durations: Sequence[int],
    ) -> List[Tuple[str, List[str]]]:
        end_hour = self._hours.end_hour_for(day)
        interval = self._hours.backend_interval_minutes
        segments: List[Tuple[str, List[str]]] = []
        elapsed = 0
        for staff_id, duration in zip(provider_ids, durations):
            ticks = get_required_backend_slots(time_slot, elapsed + duration, end_hour, interval)
            skipped = len(get_required_backend_slots(time_slot, elapsed, end_hour, interval))
            segments.append((staff_id, ticks[skipped:]))
            elapsed += duration
        return segments

    def _check_free(self, day: date, segments: Sequence[Tuple[str, List[str]]]) -> None:
        for staff_id, ticks in segments:
            for tick in ticks:
                if not self._availability.is_open(staff_id, day, tick):
                    raise BackendRPCError(
                        f"Provider not available at {tick}",
                        details=f"staff_profile_id={staff_id}",
                        code="P0001",
                        status_code=400,
                    )

    def _validate(self, day: date, pet_id: str, service_id: str) -> ServiceRecord:
        if is_sunday(day):
            raise BackendRPCError(
                "Bookings are not allowed on Sundays", code="P0001", status_code=400
            )
        if pet_id not in self._catalog.pets:
            raise BackendRPCError("Pet not found", code="P0002", status_code=400)
        service = self._catalog.get_service(service_id)
        if service is None:
            raise BackendRPCError("Service not found", code="P0002", status_code=400)
        return service

    async def create(
        self,
        *,
        user_id: str,
        pet_id: str,
        service_id: str,
        provider_ids: Sequence[str],
        day: date,
        time_slot: str,
        durations: Sequence[int] | None = None,
        notes: Optional[str] = None,
        override: bool = False,
    ) -> str:
        service = self._validate(day, pet_id, service_id)
        slot = to_hhmmss(time_slot)
        if durations is None:
            durations = [service.default_duration] * min(len(provider_ids), 1)
        segments = self._segments(day, slot, provider_ids, durations)
        if not override:
            self._check_free(day, segments)
        self._availability.occupy(day, segments)
        appointment_id = self._next_id()
        self._appointments[appointment_id] = AppointmentRecord(
            id=appointment_id,
            user_id=user_id,
            pet_id=pet_id,
            service_id=service_id,
            date=day.isoformat(),
            time=slot,
            provider_ids=list(provider_ids),
            segments=segments,
            notes=notes,
            status="confirmed" if override else "pending",
        )
        return appointment_id

    async def edit(
        self,
        appointment_id: str,
        *,
        new_date: date,
        new_time: str,
        extra_fee: float = 0.0,
        notes: Optional[str] = None,
        force_override: bool = False,
    ) -> bool:
        record = self._appointments.get(appointment_id)
        if record is None:
            raise BackendRPCError("Appointment not found", code="P0002", status_code=404)
        if is_sunday(new_date):
            raise BackendRPCError(
                "Bookings are not allowed on Sundays", code="P0001", status_code=400
            )
        old_day = date.fromisoformat(record.date)
        durations = [len(ticks) * self._hours.backend_interval_minutes for _, ticks in record.segments]
        self._availability.occupy(old_day, record.segments, value=True)
        segments = self._segments(new_date, to_hhmmss(new_time), record.provider_ids, durations)
        try:
            if not force_override:
                self._check_free(new_date, segments)
        except BackendRPCError:
            self._availability.occupy(old_day, record.segments)
            raise
        self._availability.occupy(new_date, segments)
        record.date = new_date.isoformat()
        record.time = to_hhmmss(new_time)
        record.segments = segments
        record.extra_fee += extra_fee
        if notes:
            record.notes = notes
        return True

    async def get(self, appointment_id: str) -> Optional[AppointmentRecord]:
        return self._appointments.get(appointment_id)

    async def list(self, day: Optional[date] = None) -> List[AppointmentRecord]:
        records = list(self._appointments.values())
        if day is not None:
            records = [record for record in records if record.date == day.isoformat()]
        return sorted(records, key=lambda record: (record.date, record.time))


class MockDataStore:
    def __init__(self, hours: BusinessHours = DEFAULT_HOURS) -> None:
        self.catalog = CatalogRepository()
        self.availability = AvailabilityRepository(self.catalog, hours)
        self.appointments = AppointmentRepository(self.catalog, self.availability, hours)


_STORE: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _STORE
    if _STORE is None:
        _STORE = MockDataStore()
    return _STORE


def reset_mock_store(hours: BusinessHours = DEFAULT_HOURS) -> None:
    global _STORE
    _STORE = MockDataStore(hours)
