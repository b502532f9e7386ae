from __future__ import annotations

from datetime import date as Date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from groombook.scheduling.slots import parse_minutes, to_hhmm, to_hhmmss


class AvailabilityRow(BaseModel):
    """One ``staff_availability`` row as returned by the backend."""

    staff_profile_id: str
    time_slot: str
    available: Optional[bool] = None
    date: Optional[str] = None

    @field_validator("time_slot")
    def _normalize_time(cls, value: str) -> str:
        parse_minutes(value)
        return to_hhmmss(value)


class TimeSlot(BaseModel):
    id: str
    time: str  # HH:MM
    available: bool


class AvailabilitySnapshot(BaseModel):
    """The latest availability payload, together with what was asked for."""

    date: str
    staff_ids: List[str] = Field(default_factory=list)
    rows: List[AvailabilityRow] = Field(default_factory=list)
    slots: List[TimeSlot] = Field(default_factory=list)
    request_seq: Optional[int] = None

    def has_time_slot(self, time_slot: str) -> bool:
        wanted = to_hhmmss(time_slot)
        return any(row.time_slot == wanted for row in self.rows)

    def listed_slot(self, time_slot: str) -> Optional[TimeSlot]:
        wanted = to_hhmm(time_slot)
        for slot in self.slots:
            if slot.time == wanted:
                return slot
        return None

    def matches(self, date: str, staff_ids: List[str]) -> bool:
        return self.date == date and sorted(set(self.staff_ids)) == sorted(set(staff_ids))


class SlotListRequest(BaseModel):
    date: Date
    service_id: str
    duration_minutes: int = Field(60, gt=0, le=600)
    staff_id: Optional[str] = None
    secondary_service_id: Optional[str] = None
    secondary_duration_minutes: Optional[int] = Field(None, gt=0, le=600)
    secondary_staff_id: Optional[str] = None
    requires_staff: bool = True

    @model_validator(mode="after")
    def _check_secondary(self) -> "SlotListRequest":
        if self.secondary_staff_id and not self.secondary_duration_minutes:
            raise ValueError("secondary_duration_minutes is required with secondary_staff_id")
        if self.secondary_duration_minutes and not self.secondary_staff_id:
            raise ValueError("secondary_staff_id is required with secondary_duration_minutes")
        return self

    def staff_ids(self) -> List[str]:
        return [staff_id for staff_id in (self.staff_id, self.secondary_staff_id) if staff_id]


class SlotListResponse(BaseModel):
    date: str
    is_saturday: bool
    closed: bool = False
    slots: List[TimeSlot]
    snapshot: AvailabilitySnapshot


class NextAvailableResponse(BaseModel):
    found: bool
    date: Optional[str] = None
    time: Optional[str] = None
    provider_name: Optional[str] = None


class SlotDiagnosticsRequest(SlotListRequest):
    time_slot: str

    @field_validator("time_slot")
    def _check_time(cls, value: str) -> str:
        parse_minutes(value)
        return to_hhmm(value)


class TickCheck(BaseModel):
    segment: str  # primary | secondary
    staff_id: str
    time_slot: str
    available: bool


class SlotDiagnostics(BaseModel):
    client_slot: str
    listed_available: Optional[bool] = None
    primary_ticks: List[str]
    secondary_ticks: List[str] = Field(default_factory=list)
    checks: List[TickCheck] = Field(default_factory=list)
    available: bool

    @property
    def failing(self) -> List[TickCheck]:
        return [check for check in self.checks if not check.available]
