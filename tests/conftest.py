"""pytest 全局 fixtures：测试环境隔离"""

from __future__ import annotations

import datetime as dt

import pytest

_ENV_VARS = (
    "FLIGHT_API_URL",
    "FLIGHT_API_KEY",
    "HOTEL_API_URL",
    "HOTEL_API_KEY",
    "HOTEL_API_USERNAME",
    "HOTEL_API_PASSWORD",
    "STRICT_EXTERNAL_DATA",
    "REDIS_URL",
    "ITINERARY_PERSISTENCE_ENABLED",
    "ITINERARY_PERSISTENCE_DB",
    "ENABLE_TOOL_FAULT_INJECTION",
    "TOOL_FAULT_INJECTION",
    "TOOL_FAULT_RATE",
    "BOOKING_SESSION_TTL_MINUTES",
    "CORS_ORIGINS",
    "END_USER_IP",
    "HTTP_TIMEOUT_SECONDS",
    "HTTP_MAX_RETRIES",
    "HTTP_RETRY_DELAY_SECONDS",
    "ENV_SOURCE",
    "ENV_FILE",
    "DOTENV_FILE",
)


@pytest.fixture(autouse=True)
def no_real_apis(monkeypatch):
    """默认禁用真实上游 API 与 Redis，确保测试不依赖外部服务"""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    from travelsphere.infrastructure.kv_store import reset_kv_store
    from travelsphere.security.key_manager import get_key_manager

    km = get_key_manager()
    for key_name in ("FLIGHT_API_KEY", "HOTEL_API_KEY", "HOTEL_API_PASSWORD", "HOTEL_API_USERNAME"):
        km.reload(key_name)

    reset_kv_store()
    yield
    reset_kv_store()


class FakeClock:
    def __init__(self, start: dt.datetime):
        self.current = start

    def __call__(self) -> dt.datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current = self.current + dt.timedelta(**delta)


class FakeTimer:
    """Stands in for threading.Timer; fires only when the test says so."""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function()


class TimerFactory:
    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, function) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer


@pytest.fixture
def clock():
    return FakeClock(dt.datetime(2026, 3, 1, 9, 0, tzinfo=dt.timezone.utc))


@pytest.fixture
def timers():
    return TimerFactory()
