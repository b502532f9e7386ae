from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class BusinessHours:
    """Opening window used by every slot computation.

    The weekday closing hour has two values in the field (16:00 for the
    booking flow, 17:00 for the legacy slot helpers). It is injected from
    settings instead of being hardcoded at each call site.
    """

    start_hour: int = 9
    weekday_end_hour: int = 16
    saturday_end_hour: int = 12
    client_interval_minutes: int = 30
    backend_interval_minutes: int = 10

    def end_hour(self, is_saturday: bool) -> int:
        return self.saturday_end_hour if is_saturday else self.weekday_end_hour

    def end_hour_for(self, day: date) -> int:
        return self.end_hour(day.weekday() == 5)


DEFAULT_HOURS = BusinessHours()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Groombook Booking Service")
    cors_origins: List[AnyHttpUrl] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    backend_base_url: AnyHttpUrl | None = Field(
        default=None
    )
    backend_api_key: str | None = Field(
        default=None
    )
    backend_timeout: float = Field(
        default=12.0
    )
    backend_retries: int = Field(
        default=1, ge=0
    )
    backend_retry_backoff: float = Field(
        default=2.0, ge=0
    )
    use_mock_data: bool = Field(
        default=True
    )
    business_start_hour: int = Field(default=9, ge=0, le=23)
    weekday_end_hour: int = Field(default=16, ge=1, le=24)
    saturday_end_hour: int = Field(default=12, ge=1, le=24)
    backend_interval_minutes: int = Field(default=10, ge=1, le=60)
    next_available_days: int = Field(default=7, ge=1, le=90)

    model_config = SettingsConfigDict(env_prefix="GROOMBOOK_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    def business_hours(self) -> BusinessHours:
        return BusinessHours(
            start_hour=self.business_start_hour,
            weekday_end_hour=self.weekday_end_hour,
            saturday_end_hour=self.saturday_end_hour,
            backend_interval_minutes=self.backend_interval_minutes,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
