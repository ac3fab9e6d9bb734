"""Environment-driven settings and runtime provider snapshot helpers."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _is_configured(value: str | None) -> bool:
    return bool(value and value.strip())


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return max(minimum, value)


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, value)


def strict_external_data_enabled() -> bool:
    return _is_enabled(os.getenv("STRICT_EXTERNAL_DATA"))


def resolve_flight_provider() -> str:
    configured = _is_configured(os.getenv("FLIGHT_API_URL")) and _is_configured(os.getenv("FLIGHT_API_KEY"))
    return "real" if configured else "mock"


def resolve_hotel_provider() -> str:
    if not _is_configured(os.getenv("HOTEL_API_URL")):
        return "mock"
    if _is_configured(os.getenv("HOTEL_API_PASSWORD")) or _is_configured(os.getenv("HOTEL_API_KEY")):
        return "real"
    return "mock"


def resolve_session_backend() -> str:
    return "redis" if _is_configured(os.getenv("REDIS_URL")) else "memory"


def resolve_env_source() -> str:
    explicit = str(os.getenv("ENV_SOURCE") or "").strip()
    if explicit:
        return explicit

    hint = str(os.getenv("ENV_FILE") or os.getenv("DOTENV_FILE") or "").strip()
    if hint:
        return Path(hint).name or hint
    return ".env"


class BookingSettings(BaseModel):
    flight_api_url: str = ""
    hotel_api_url: str = ""
    end_user_ip: str = "127.0.0.1"
    session_ttl_minutes: int = Field(default=30, ge=1)
    http_timeout_seconds: float = Field(default=5.0, gt=0)
    http_max_retries: int = Field(default=3, ge=0)
    http_retry_delay_seconds: float = Field(default=1.0, ge=0)
    redis_url: str = ""
    itinerary_persistence_enabled: bool = False
    itinerary_persistence_db: str = "data/itineraries.db"
    strict_external_data: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])


def load_settings() -> BookingSettings:
    cors_raw = os.getenv("CORS_ORIGINS", "").strip()
    cors = [item.strip() for item in cors_raw.split(",") if item.strip()] if cors_raw else None
    values = dict(
        flight_api_url=os.getenv("FLIGHT_API_URL", "").strip(),
        hotel_api_url=os.getenv("HOTEL_API_URL", "").strip(),
        end_user_ip=os.getenv("END_USER_IP", "").strip() or "127.0.0.1",
        session_ttl_minutes=_env_int("BOOKING_SESSION_TTL_MINUTES", 30, minimum=1),
        http_timeout_seconds=_env_float("HTTP_TIMEOUT_SECONDS", 5.0, minimum=0.1),
        http_max_retries=_env_int("HTTP_MAX_RETRIES", 3),
        http_retry_delay_seconds=_env_float("HTTP_RETRY_DELAY_SECONDS", 1.0),
        redis_url=os.getenv("REDIS_URL", "").strip(),
        itinerary_persistence_enabled=_is_enabled(os.getenv("ITINERARY_PERSISTENCE_ENABLED")),
        itinerary_persistence_db=os.getenv("ITINERARY_PERSISTENCE_DB", "").strip() or "data/itineraries.db",
        strict_external_data=strict_external_data_enabled(),
    )
    if cors:
        values["cors_origins"] = cors
    return BookingSettings(**values)


class ProviderSnapshot(BaseModel):
    flight_provider: str = Field(default="mock")
    hotel_provider: str = Field(default="mock")
    session_backend: str = Field(default="memory")
    strict_external_data: bool = Field(default=False)
    env_source: str = Field(default=".env")


def resolve_provider_snapshot(*, env_source: str | None = None) -> ProviderSnapshot:
    resolved_env = str(env_source or "").strip() or resolve_env_source()
    return ProviderSnapshot(
        flight_provider=resolve_flight_provider(),
        hotel_provider=resolve_hotel_provider(),
        session_backend=resolve_session_backend(),
        strict_external_data=strict_external_data_enabled(),
        env_source=resolved_env,
    )


__all__ = [
    "BookingSettings",
    "ProviderSnapshot",
    "load_settings",
    "resolve_flight_provider",
    "resolve_hotel_provider",
    "resolve_provider_snapshot",
    "strict_external_data_enabled",
]
