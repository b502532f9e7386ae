from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from groombook.clients.backend import BackendClient, eq
from groombook.schemas.catalog import (
    PetListResponse,
    PetSummary,
    ServiceListResponse,
    ServiceSummary,
    StaffListResponse,
    StaffSummary,
)
from groombook.services.exceptions import ServiceError
from groombook.services.mock_store import CatalogRepository, get_mock_store

logger = logging.getLogger(__name__)

SERVICE_COLUMNS = (
    "id,name,service_type,base_price,default_duration,description,"
    "requires_bath,requires_grooming,requires_vet,active"
)
STAFF_COLUMNS = "id,name,bio,can_bathe,can_groom,can_vet,active"
PET_COLUMNS = "id,name,breed,size,user_id"

CAPABILITY_BY_SERVICE_TYPE = {
    "grooming": "can_groom",
    "veterinary": "can_vet",
}
CAPABILITIES = ("can_bathe", "can_groom", "can_vet")


class CatalogService:
    """Services, staff and pets the booking wizard picks from."""

    def __init__(
        self,
        client: BackendClient,
        *,
        repository: CatalogRepository | None = None,
    ) -> None:
        self._client = client
        self._repository = repository
        if self._client.use_mock_data:
            self._repository = repository or get_mock_store().catalog

    def _mock_repository(self) -> CatalogRepository:
        if not self._repository:
            raise RuntimeError("Mock catalog repository not configured")
        return self._repository

    async def list_services(self, service_type: Optional[str] = None) -> ServiceListResponse:
        logger.info("Listing %s services", service_type or "all")
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            records = self._mock_repository().list_services(service_type)
            items = [ServiceSummary(**asdict(record)) for record in records]
            return ServiceListResponse(total=len(items), items=items)

        filters = {"active": eq(True)}
        if service_type:
            filters["service_type"] = eq(service_type)
        try:
            data = await self._client.select(
                "services", columns=SERVICE_COLUMNS, filters=filters, order="name"
            )
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while listing services")
            raise ServiceError("Failed to list services", cause=exc)
        items = [ServiceSummary(**row) for row in data]
        return ServiceListResponse(total=len(items), items=items)

    async def get_service(self, service_id: str) -> Optional[ServiceSummary]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            record = self._mock_repository().get_service(service_id)
            return ServiceSummary(**asdict(record)) if record else None

        try:
            data = await self._client.select(
                "services", columns=SERVICE_COLUMNS, filters={"id": eq(service_id)}
            )
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while loading service %s", service_id)
            raise ServiceError("Failed to load service", cause=exc)
        return ServiceSummary(**data[0]) if data else None

    async def list_staff(
        self,
        *,
        service_type: Optional[str] = None,
        capability: Optional[str] = None,
    ) -> StaffListResponse:
        capability = capability or CAPABILITY_BY_SERVICE_TYPE.get(service_type or "")
        if capability and capability not in CAPABILITIES:
            raise ValueError(f"Unknown staff capability: {capability}")
        logger.info("Listing staff with capability %s", capability or "any")
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            records = self._mock_repository().list_staff(capability)
            items = [StaffSummary(**asdict(record)) for record in records]
            return StaffListResponse(total=len(items), items=items)

        filters = {"active": eq(True)}
        if capability:
            filters[capability] = eq(True)
        try:
            data = await self._client.select(
                "staff_profiles", columns=STAFF_COLUMNS, filters=filters, order="name"
            )
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while listing staff")
            raise ServiceError("Failed to list staff", cause=exc)
        items = [StaffSummary(**row) for row in data]
        return StaffListResponse(total=len(items), items=items)

    async def list_pets(self, user_id: str) -> PetListResponse:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            records = self._mock_repository().list_pets(user_id)
            items = [PetSummary(**asdict(record)) for record in records]
            return PetListResponse(total=len(items), items=items)

        try:
            data = await self._client.select(
                "pets", columns=PET_COLUMNS, filters={"user_id": eq(user_id)}, order="name"
            )
        except ServiceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive
            logger.exception("Unexpected error while listing pets")
            raise ServiceError("Failed to list pets", cause=exc)
        items = [PetSummary(**row) for row in data]
        return PetListResponse(total=len(items), items=items)
