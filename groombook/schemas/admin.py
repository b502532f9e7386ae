from __future__ import annotations

from datetime import date as Date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from groombook.scheduling.slots import parse_minutes, to_hhmmss


def _normalize_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    parse_minutes(value)
    return to_hhmmss(value)


class AdminBookingRequest(BaseModel):
    client_user_id: str
    pet_id: str
    service_id: str
    provider_ids: List[str] = Field(default_factory=list)
    booking_date: Date
    time_slot: str
    notes: Optional[str] = None
    secondary_service_id: Optional[str] = None
    calculated_price: Optional[float] = Field(None, ge=0)
    calculated_duration: Optional[int] = Field(None, gt=0)
    override: bool = False
    override_on_top_of_appointment_id: Optional[str] = None
    created_by: Optional[str] = None

    @field_validator("time_slot")
    def _check_time(cls, value: str) -> str:
        return _normalize_time(value)

    def rpc_call(self) -> tuple[str, Dict[str, Any]]:
        """Pick the admin booking procedure and build its payload."""

        base: Dict[str, Any] = {
            "_client_user_id": self.client_user_id,
            "_pet_id": self.pet_id,
            "_provider_ids": list(self.provider_ids),
            "_booking_date": self.booking_date.isoformat(),
            "_time_slot": self.time_slot,
            "_notes": self.notes,
            "_calculated_price": self.calculated_price,
            "_calculated_duration": self.calculated_duration,
            "_created_by": self.created_by,
        }
        if self.secondary_service_id:
            base.update({
                "_primary_service_id": self.service_id,
                "_secondary_service_id": self.secondary_service_id,
            })
            return "create_admin_booking_with_dual_services", base

        base["_service_id"] = self.service_id
        if self.override:
            base.update({
                "_override_on_top_of_appointment_id": self.override_on_top_of_appointment_id,
                "_admin_notes": f"Override confirmado em {self.booking_date.isoformat()} às {self.time_slot}",
            })
            return "create_booking_admin_override", base
        base["_override_conflicts"] = False
        return "create_booking_admin", base


class AdminBookingResponse(BaseModel):
    appointment_id: str
    override: bool = False
    message: Optional[str] = None


class EditBookingRequest(BaseModel):
    new_date: Date
    new_time: str
    extra_fee: float = Field(0.0, ge=0)
    notes: Optional[str] = None
    force_override: bool = False
    edited_by: Optional[str] = None

    @field_validator("new_time")
    def _check_time(cls, value: str) -> str:
        return _normalize_time(value)

    def to_rpc_payload(self, appointment_id: str) -> Dict[str, Any]:
        return {
            "_appointment_id": appointment_id,
            "_new_date": self.new_date.isoformat(),
            "_new_time": self.new_time,
            "_extra_fee": self.extra_fee,
            "_admin_notes": self.notes,
            "_edit_reason": self.notes,
            "_force_override": self.force_override,
            "_edited_by": self.edited_by,
        }


class EditBookingResponse(BaseModel):
    success: bool
    appointment_id: str
    message: Optional[str] = None


class AvailabilityOverrideRequest(BaseModel):
    staff_profile_id: str
    date: Date
    time_slot: str
    available: bool

    @field_validator("time_slot")
    def _check_time(cls, value: str) -> str:
        return _normalize_time(value)


class AvailabilityOverrideResponse(BaseModel):
    updated: int
