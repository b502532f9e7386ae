from fastapi import APIRouter, Depends, HTTPException

from groombook.config import Settings, get_settings
from groombook.dependencies.services import get_availability_service
from groombook.schemas.availability import (
    NextAvailableResponse,
    SlotDiagnostics,
    SlotDiagnosticsRequest,
    SlotListRequest,
    SlotListResponse,
)
from groombook.services import AvailabilityService
from groombook.services.exceptions import ServiceError

router = APIRouter()


@router.post("/slots", response_model=SlotListResponse)
async def list_slots(
    req: SlotListRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    try:
        return await service.list_slots(req)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/next", response_model=NextAvailableResponse)
async def next_available(
    req: SlotListRequest,
    service: AvailabilityService = Depends(get_availability_service),
    settings: Settings = Depends(get_settings),
):
    try:
        return await service.next_available(req, days=settings.next_available_days)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/diagnose", response_model=SlotDiagnostics)
async def diagnose_slot(
    req: SlotDiagnosticsRequest,
    service: AvailabilityService = Depends(get_availability_service),
):
    try:
        return await service.diagnose(req)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
