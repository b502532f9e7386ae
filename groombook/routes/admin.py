from fastapi import APIRouter, Depends, HTTPException

from groombook.dependencies.services import get_admin_booking_service
from groombook.routes.bookings import booking_http_error
from groombook.schemas.admin import (
    AdminBookingRequest,
    AdminBookingResponse,
    AvailabilityOverrideRequest,
    AvailabilityOverrideResponse,
    EditBookingRequest,
    EditBookingResponse,
)
from groombook.services import AdminBookingService
from groombook.services.exceptions import ServiceError

router = APIRouter()


@router.post("/bookings", response_model=AdminBookingResponse)
async def create_manual_booking(
    req: AdminBookingRequest,
    service: AdminBookingService = Depends(get_admin_booking_service),
):
    try:
        return await service.create_manual_booking(req)
    except ServiceError as exc:
        raise booking_http_error(exc) from exc


@router.patch("/bookings/{appointment_id}", response_model=EditBookingResponse)
async def edit_booking(
    appointment_id: str,
    req: EditBookingRequest,
    service: AdminBookingService = Depends(get_admin_booking_service),
):
    try:
        return await service.edit_booking(appointment_id, req)
    except ServiceError as exc:
        raise booking_http_error(exc) from exc


@router.put("/availability", response_model=AvailabilityOverrideResponse)
async def set_staff_availability(
    req: AvailabilityOverrideRequest,
    service: AdminBookingService = Depends(get_admin_booking_service),
):
    try:
        return await service.set_staff_availability(req)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
