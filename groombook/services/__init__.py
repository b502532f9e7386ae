"""Service package public API.

Service implementations import ``groombook.clients.backend``, which in turn
imports ``groombook.services.exceptions``. Importing them eagerly here would
make that a circular import, so they are loaded on first access.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "AdminBookingService",
    "AppointmentFormState",
    "AvailabilityService",
    "BookingSubmitter",
    "CatalogService",
    "PricingService",
]

_SERVICE_MODULES = {
    "AdminBookingService": "admin",
    "AppointmentFormState": "form_state",
    "AvailabilityService": "availability",
    "BookingSubmitter": "booking",
    "CatalogService": "catalog",
    "PricingService": "pricing",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .admin import AdminBookingService as AdminBookingService
    from .availability import AvailabilityService as AvailabilityService
    from .booking import BookingSubmitter as BookingSubmitter
    from .catalog import CatalogService as CatalogService
    from .form_state import AppointmentFormState as AppointmentFormState
    from .pricing import PricingService as PricingService
