from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from groombook.dependencies.services import get_catalog_service
from groombook.schemas.catalog import (
    PetListResponse,
    ServiceListResponse,
    StaffListResponse,
)
from groombook.services import CatalogService
from groombook.services.exceptions import ServiceError

router = APIRouter()


@router.get("/services", response_model=ServiceListResponse)
async def list_services(
    service_type: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.list_services(service_type)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/staff", response_model=StaffListResponse)
async def list_staff(
    service_type: Optional[str] = None,
    capability: Optional[str] = None,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.list_staff(service_type=service_type, capability=capability)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get("/pets/{user_id}", response_model=PetListResponse)
async def list_pets(
    user_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    try:
        return await service.list_pets(user_id)
    except ServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
