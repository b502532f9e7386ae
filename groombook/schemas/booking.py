from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from groombook.scheduling.evaluator import Segment, ServiceRequest
from groombook.scheduling.slots import parse_minutes, to_hhmmss
from groombook.schemas.availability import AvailabilitySnapshot


class BookingRequest(BaseModel):
    user_id: str
    pet_id: str
    service_id: str
    provider_ids: List[str] = Field(default_factory=list, max_length=2)
    booking_date: date
    time_slot: str = Field(..., description="HH:MM or HH:MM:SS")
    notes: Optional[str] = None
    duration_minutes: int = Field(60, gt=0, le=600)
    secondary_duration_minutes: Optional[int] = Field(None, gt=0, le=600)

    @field_validator("time_slot")
    def _normalize_time(cls, value: str) -> str:
        parse_minutes(value)
        return to_hhmmss(value)

    @field_validator("notes")
    def _strip_notes(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def service_request(self) -> Optional[ServiceRequest]:
        """Segments to check locally, or ``None`` for a staff-less service."""

        if not self.provider_ids:
            return None
        primary = Segment(self.provider_ids[0], self.duration_minutes)
        secondary = None
        if len(self.provider_ids) > 1 and self.secondary_duration_minutes:
            secondary = Segment(self.provider_ids[1], self.secondary_duration_minutes)
        return ServiceRequest(primary=primary, secondary=secondary)

    def to_rpc_payload(self) -> Dict[str, Any]:
        return {
            "_user_id": self.user_id,
            "_pet_id": self.pet_id,
            "_service_id": self.service_id,
            "_provider_ids": list(self.provider_ids),
            "_booking_date": self.booking_date.isoformat(),
            "_time_slot": self.time_slot,
            "_notes": self.notes,
        }


class BookingSubmission(BaseModel):
    booking: BookingRequest
    snapshot: AvailabilitySnapshot


class BookingResponse(BaseModel):
    status: str
    appointment_id: str
    booking_date: str
    time_slot: str
    message: Optional[str] = None
