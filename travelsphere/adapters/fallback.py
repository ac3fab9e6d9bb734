"""Mock-data fallback for the flight and hotel APIs.

MockFallbackProvider tracks whether each upstream runs in mock mode and probes
upstream health at most once per check interval. FallbackProxy wraps a real
client: when a call fails because the upstream is unreachable (network,
timeout, 5xx) it switches that side into mock mode and serves the mock
client's response, which has the same shape as the real one.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from travelsphere.shared.exceptions import TransportError

_logger = logging.getLogger("travelsphere.fallback")

FLIGHT = "flight"
HOTEL = "hotel"

_UNREACHABLE_CODES = frozenset({"NETWORK_ERROR", "TIMEOUT", "500", "502", "503", "504"})

# Always sent to the primary client, even while the side is in mock mode.
DEFAULT_EXEMPT_OPERATIONS = frozenset({"create_booking", "cancel_booking"})


class MockFallbackProvider:
    def __init__(
        self,
        *,
        flight_health: Optional[Callable[[], bool]] = None,
        hotel_health: Optional[Callable[[], bool]] = None,
        check_interval: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._health = {FLIGHT: flight_health, HOTEL: hotel_health}
        self._mock_mode = {FLIGHT: False, HOTEL: False}
        self._last_check: dict[str, Optional[float]] = {FLIGHT: None, HOTEL: None}
        self._check_interval = max(0.0, check_interval)
        self._clock = clock

    # ── mock mode flags ─────────────────────────────

    def set_mock_mode(self, enabled: bool) -> None:
        self._mock_mode[FLIGHT] = bool(enabled)

    def set_hotel_mock_mode(self, enabled: bool) -> None:
        self._mock_mode[HOTEL] = bool(enabled)

    def is_mock_mode(self) -> bool:
        return self._mock_mode[FLIGHT]

    def is_hotel_mock_mode(self) -> bool:
        return self._mock_mode[HOTEL]

    def mock_mode_for(self, scope: str) -> bool:
        return self._mock_mode.get(scope, False)

    def set_mock_mode_for(self, scope: str, enabled: bool) -> None:
        if scope not in self._mock_mode:
            raise ValueError(f"unknown fallback scope: {scope}")
        if self._mock_mode[scope] != bool(enabled):
            _logger.warning("%s API mock mode %s", scope, "enabled" if enabled else "disabled")
        self._mock_mode[scope] = bool(enabled)
        if enabled:
            self._last_check[scope] = self._clock()

    # ── health checks ───────────────────────────────

    def register_health_checks(
        self,
        *,
        flight_health: Optional[Callable[[], bool]] = None,
        hotel_health: Optional[Callable[[], bool]] = None,
    ) -> None:
        if flight_health is not None:
            self._health[FLIGHT] = flight_health
        if hotel_health is not None:
            self._health[HOTEL] = hotel_health

    def is_api_available(self) -> bool:
        return self._probe(FLIGHT)

    def is_hotel_api_available(self) -> bool:
        return self._probe(HOTEL)

    def _probe(self, scope: str) -> bool:
        check = self._health.get(scope)
        self._last_check[scope] = self._clock()
        if check is None:
            return False
        try:
            return bool(check())
        except TransportError as exc:
            _logger.info("%s health check failed: %s", scope, exc.code)
            return False

    def recheck_due(self, scope: str) -> bool:
        last = self._last_check.get(scope)
        return last is None or self._clock() - last >= self._check_interval

    def try_recover(self, scope: str) -> bool:
        """Leave mock mode if the upstream answers its health check again."""
        if not self.mock_mode_for(scope) or not self.recheck_due(scope):
            return False
        if self._probe(scope):
            self.set_mock_mode_for(scope, False)
            return True
        return False

    def status(self) -> dict[str, Any]:
        return {
            "flight_mock_mode": self._mock_mode[FLIGHT],
            "hotel_mock_mode": self._mock_mode[HOTEL],
            "check_interval_seconds": self._check_interval,
        }


class FallbackProxy:
    """Routes calls to the primary client, or to the mock client while in mock mode."""

    def __init__(
        self,
        scope: str,
        primary: Any,
        mock: Any,
        provider: MockFallbackProvider,
        *,
        strict: bool = False,
        exempt: frozenset[str] = DEFAULT_EXEMPT_OPERATIONS,
    ):
        self._scope = scope
        self._primary = primary
        self._mock = mock
        self._provider = provider
        self._strict = strict
        self._exempt = exempt

    @property
    def backend(self) -> str:
        return "mock" if self._provider.mock_mode_for(self._scope) else "real"

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._primary, name)
        if not callable(attr) or name.startswith("_"):
            return attr

        def _wrapped(*args: Any, **kwargs: Any):
            if self._strict or name in self._exempt:
                return attr(*args, **kwargs)
            if self._provider.mock_mode_for(self._scope) and not self._provider.try_recover(self._scope):
                return getattr(self._mock, name)(*args, **kwargs)
            try:
                return attr(*args, **kwargs)
            except TransportError as exc:
                if exc.code not in _UNREACHABLE_CODES:
                    raise
                _logger.warning(
                    "%s.%s unreachable (%s), serving mock data",
                    self._scope,
                    name,
                    exc.code,
                )
                self._provider.set_mock_mode_for(self._scope, True)
                return getattr(self._mock, name)(*args, **kwargs)

        return _wrapped


__all__ = [
    "DEFAULT_EXEMPT_OPERATIONS",
    "FLIGHT",
    "FallbackProxy",
    "HOTEL",
    "MockFallbackProvider",
]
