from contextlib import asynccontextmanager
import logging
import re

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from groombook.config import get_settings
from groombook.dependencies.services import get_backend_client_cached
from groombook.health import router as health_router
from groombook.routes.admin import router as admin_router
from groombook.routes.availability import router as availability_router
from groombook.routes.bookings import router as bookings_router
from groombook.routes.catalog import router as catalog_router
from groombook.routes.pricing import router as pricing_router

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")


class RedactingFilter(logging.Filter):
    """Mask e-mail addresses in log messages before they are emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = EMAIL_PATTERN.sub("[email]", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)
    for handler in root_logger.handlers:
        if not any(isinstance(existing, RedactingFilter) for existing in handler.filters):
            handler.addFilter(RedactingFilter())


# Configure logging as soon as the module is loaded
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    settings = get_settings()

    settings_snapshot = settings.model_dump(exclude={"backend_api_key"})
    logger.info("Application settings on startup: %s", settings_snapshot)

    client = get_backend_client_cached()
    logger.info("Application startup complete (mock data: %s).", client.use_mock_data)

    try:
        yield
    finally:
        logger.info("Closing backend client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(availability_router, prefix="/availability")
app.include_router(bookings_router, prefix="/bookings")
app.include_router(catalog_router, prefix="/catalog")
app.include_router(pricing_router, prefix="/pricing")
app.include_router(admin_router, prefix="/admin")
app.include_router(health_router)
