from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from groombook.clients.backend import BackendClient, eq
from groombook.schemas.pricing import PricingRequest, PricingResult
from groombook.services.exceptions import ServiceError
from groombook.services.mock_store import CatalogRepository, get_mock_store

logger = logging.getLogger(__name__)

SYSTEM_DEFAULT_PRICE = 50.0
SYSTEM_DEFAULT_DURATION = 60


class PricingService:
    """Price and duration for a service, most specific rule first.

    Lookup order: service + breed + size, then service + size (any breed),
    then the service's own defaults, then the system defaults. A failed
    lookup at one step falls through to the next.
    """

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

    async def quote(self, request: PricingRequest) -> PricingResult:
        logger.debug("Calculating pricing for %s", request.model_dump())

        if request.breed and request.size:
            exact = await self._pricing_row(request.service_id, breed=request.breed, size=request.size)
            if exact:
                return PricingResult(
                    price=float(exact["price"]),
                    duration=exact.get("duration_override") or SYSTEM_DEFAULT_DURATION,
                    price_source="exact_match",
                )

        if request.size:
            by_size = await self._pricing_row(request.service_id, size=request.size)
            if by_size:
                return PricingResult(
                    price=float(by_size["price"]),
                    duration=by_size.get("duration_override") or SYSTEM_DEFAULT_DURATION,
                    price_source="service_size_fallback",
                )

        default = await self._service_default(request.service_id)
        if default:
            return PricingResult(
                price=float(default.get("base_price") or SYSTEM_DEFAULT_PRICE),
                duration=default.get("default_duration") or SYSTEM_DEFAULT_DURATION,
                price_source="service_default",
            )

        logger.warning("Using system default pricing for service %s", request.service_id)
        return PricingResult(
            price=SYSTEM_DEFAULT_PRICE,
            duration=SYSTEM_DEFAULT_DURATION,
            price_source="system_default",
        )

    async def _pricing_row(
        self, service_id: str, *, size: str, breed: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock catalog repository not configured")
            record = self._repository.find_pricing(service_id, breed=breed, size=size)
            if record is None:
                return None
            return {"price": record.price, "duration_override": record.duration_override}

        filters = {"service_id": eq(service_id), "size": eq(size)}
        if breed:
            filters["breed_id"] = eq(breed)
        try:
            rows = await self._client.select(
                "service_pricing", columns="price,duration_override", filters=filters
            )
        except ServiceError as exc:
            logger.info("No pricing row for %s (%s): %s", service_id, size, exc)
            return None
        return rows[0] if rows else None

    async def _service_default(self, service_id: str) -> Optional[Dict[str, Any]]:
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            if not self._repository:
                raise RuntimeError("Mock catalog repository not configured")
            record = self._repository.get_service(service_id)
            if record is None:
                return None
            return {"base_price": record.base_price, "default_duration": record.default_duration}

        try:
            rows = await self._client.select(
                "services", columns="base_price,default_duration", filters={"id": eq(service_id)}
            )
        except ServiceError as exc:
            logger.info("No service default for %s: %s", service_id, exc)
            return None
        return rows[0] if rows else None
