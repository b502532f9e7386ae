from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from groombook.clients.backend import BackendClient
from groombook.config import Settings, get_settings
from groombook.services import (
    AdminBookingService,
    AvailabilityService,
    BookingSubmitter,
    CatalogService,
    PricingService,
)


@lru_cache(maxsize=1)
def get_backend_client_cached() -> BackendClient:
    settings = get_settings()
    return BackendClient(
        str(settings.backend_base_url) if settings.backend_base_url else None,
        api_key=settings.backend_api_key,
        timeout=settings.backend_timeout,
        retries=settings.backend_retries,
        retry_backoff=settings.backend_retry_backoff,
        use_mock_data=settings.use_mock_data,
    )


def get_backend_client(settings: Settings = Depends(get_settings)) -> BackendClient:
    return get_backend_client_cached()


def get_availability_service(
    client: BackendClient = Depends(get_backend_client),
    settings: Settings = Depends(get_settings),
) -> AvailabilityService:
    return AvailabilityService(client, hours=settings.business_hours())


def get_booking_submitter(
    client: BackendClient = Depends(get_backend_client),
    settings: Settings = Depends(get_settings),
) -> BookingSubmitter:
    return BookingSubmitter(client, hours=settings.business_hours())


def get_catalog_service(
    client: BackendClient = Depends(get_backend_client),
) -> CatalogService:
    return CatalogService(client)


def get_pricing_service(
    client: BackendClient = Depends(get_backend_client),
) -> PricingService:
    return PricingService(client)


def get_admin_booking_service(
    client: BackendClient = Depends(get_backend_client),
) -> AdminBookingService:
    return AdminBookingService(client)
