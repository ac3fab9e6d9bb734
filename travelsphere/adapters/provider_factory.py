"""Concrete upstream client selection and wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from travelsphere.adapters.fallback import FLIGHT, HOTEL, FallbackProxy, MockFallbackProvider
from travelsphere.adapters.fault_injection import wrap_tool_with_fault_injection
from travelsphere.adapters.flight import FlightApiClient, MockFlightApi
from travelsphere.adapters.hotel import HotelApiClient, MockHotelApi
from travelsphere.config.settings import (
    BookingSettings,
    load_settings,
    resolve_flight_provider,
    resolve_hotel_provider,
    strict_external_data_enabled,
)
from travelsphere.security.http_client import SecureHttpClient
from travelsphere.security.key_manager import FLIGHT_KEY_NAME, HOTEL_KEY_NAME, get_key_manager
from travelsphere.shared.exceptions import KeyMissingError

_logger = logging.getLogger("travelsphere.providers")


def _http_client(settings: BookingSettings, *, base_url: str, tool_name: str, **kwargs: Any) -> SecureHttpClient:
    return SecureHttpClient(
        base_url=base_url,
        timeout=settings.http_timeout_seconds,
        max_retries=settings.http_max_retries,
        retry_delay=settings.http_retry_delay_seconds,
        tool_name=tool_name,
        **kwargs,
    )


@dataclass
class UpstreamClients:
    flight: Any
    hotel: Any
    fallback: MockFallbackProvider
    http_clients: list[SecureHttpClient] = field(default_factory=list)

    def close(self) -> None:
        for client in self.http_clients:
            client.close()
        self.http_clients.clear()


def build_upstream_clients(settings: Optional[BookingSettings] = None) -> UpstreamClients:
    """Real clients when credentials exist, mock clients otherwise.

    STRICT_EXTERNAL_DATA=true refuses to start without credentials and disables
    the runtime mock fallback.
    """
    settings = settings or load_settings()
    strict = settings.strict_external_data
    km = get_key_manager()
    provider = MockFallbackProvider()
    http_clients: list[SecureHttpClient] = []

    if resolve_flight_provider() == "real":
        http = _http_client(settings, base_url=settings.flight_api_url, tool_name=FLIGHT)
        http_clients.append(http)
        real_flight = FlightApiClient(http, token_id=km.get_flight_key(), end_user_ip=settings.end_user_ip)
        provider.register_health_checks(flight_health=real_flight.health_check)
        flight: Any = FallbackProxy(
            FLIGHT,
            wrap_tool_with_fault_injection(FLIGHT, real_flight),
            MockFlightApi(),
            provider,
            strict=strict,
        )
    else:
        if strict:
            raise KeyMissingError(FLIGHT_KEY_NAME)
        _logger.info("Flight API not configured, using mock flight data")
        provider.set_mock_mode(True)
        flight = wrap_tool_with_fault_injection(FLIGHT, MockFlightApi())

    if resolve_hotel_provider() == "real":
        username, password = km.get_hotel_credentials()
        http = _http_client(
            settings,
            base_url=settings.hotel_api_url,
            tool_name=HOTEL,
            auth=(username, password) if username else None,
            headers=None if username else {"x-api-key": password},
        )
        http_clients.append(http)
        real_hotel = HotelApiClient(http)
        provider.register_health_checks(hotel_health=real_hotel.health_check)
        hotel: Any = FallbackProxy(
            HOTEL,
            wrap_tool_with_fault_injection(HOTEL, real_hotel),
            MockHotelApi(),
            provider,
            strict=strict,
        )
    else:
        if strict:
            raise KeyMissingError(HOTEL_KEY_NAME)
        _logger.info("Hotel API not configured, using mock hotel data")
        provider.set_hotel_mock_mode(True)
        hotel = wrap_tool_with_fault_injection(HOTEL, MockHotelApi())

    return UpstreamClients(flight=flight, hotel=hotel, fallback=provider, http_clients=http_clients)


def describe_active_providers(clients: Optional[UpstreamClients] = None) -> dict[str, str]:
    flight = resolve_flight_provider()
    hotel = resolve_hotel_provider()
    if clients is not None:
        if clients.fallback.is_mock_mode():
            flight = "mock"
        if clients.fallback.is_hotel_mock_mode():
            hotel = "mock"
    return {
        "flight": flight,
        "hotel": hotel,
        "strict_external_data": "true" if strict_external_data_enabled() else "false",
    }


__all__ = [
    "UpstreamClients",
    "build_upstream_clients",
    "describe_active_providers",
]
