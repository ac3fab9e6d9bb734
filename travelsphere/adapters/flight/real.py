"""Real flight adapter backed by the GDS-style flight booking REST API."""

from __future__ import annotations

import logging
from typing import Any

from travelsphere.security.http_client import SecureHttpClient
from travelsphere.shared.exceptions import TransportError

_logger = logging.getLogger("travelsphere.flight")


class FlightApiClient:
    """Thin wrapper injecting credentials and the correlation id into every call."""

    def __init__(self, http: SecureHttpClient, *, token_id: str, end_user_ip: str = "127.0.0.1"):
        self._http = http
        self._token_id = token_id
        self._end_user_ip = end_user_ip

    def _payload(self, correlation_id: str, offer_id: str, **extra: Any) -> dict[str, Any]:
        return {
            "EndUserIp": self._end_user_ip,
            "TokenId": self._token_id,
            "TraceId": correlation_id,
            "ResultIndex": offer_id,
            **extra,
        }

    def reprice_offer(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        return self._http.post_json("/Reprice", self._payload(correlation_id, offer_id))

    def get_seat_map(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        return self._http.post_json("/GetSeatMap", self._payload(correlation_id, offer_id))

    def sell_seats(self, correlation_id: str, offer_id: str, seats: list[dict[str, Any]]) -> dict[str, Any]:
        return self._http.post_json("/SeatSell", self._payload(correlation_id, offer_id, SeatDynamic=seats))

    def list_ancillary(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        return self._http.post_json("/SSR", self._payload(correlation_id, offer_id))

    def get_fare_rules(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        return self._http.post_json("/FareRule", self._payload(correlation_id, offer_id))

    def create_booking(
        self,
        correlation_id: str,
        offer_id: str,
        passengers: list[dict[str, Any]],
    ) -> dict[str, Any]:
        _logger.info("Creating flight booking for offer %s", offer_id)
        return self._http.post_json("/Book", self._payload(correlation_id, offer_id, Passengers=passengers))

    def health_check(self) -> bool:
        try:
            self._http.get_json("/health")
        except TransportError:
            return False
        return True
