"""Real hotel adapter backed by the hotel inventory REST API."""

from __future__ import annotations

import logging
from typing import Any

from travelsphere.security.http_client import SecureHttpClient
from travelsphere.shared.exceptions import TransportError

_logger = logging.getLogger("travelsphere.hotel")


class HotelApiClient:
    """Credentials travel as HTTP basic auth configured on the underlying client."""

    def __init__(self, http: SecureHttpClient):
        self._http = http

    def prebook(self, booking_code: str, payment_mode: str = "Limit") -> dict[str, Any]:
        return self._http.post_json("/PreBook", {"BookingCode": booking_code, "PaymentMode": payment_mode})

    def create_booking(self, request: dict[str, Any]) -> dict[str, Any]:
        _logger.info("Creating hotel booking %s", request.get("ClientReferenceId", ""))
        return self._http.post_json("/Book", request)

    def get_booking_details(self, request: dict[str, Any]) -> dict[str, Any]:
        return self._http.post_json("/BookingDetail", request)

    def get_bookings_by_date_range(self, request: dict[str, Any]) -> dict[str, Any]:
        return self._http.post_json("/BookingDetailsBasedOnDate", request)

    def cancel_booking(self, request: dict[str, Any]) -> dict[str, Any]:
        _logger.info("Cancelling hotel booking %s", request.get("ConfirmationNo", ""))
        return self._http.post_json("/Cancel", request)

    def health_check(self) -> bool:
        try:
            self._http.get_json("/CountryList")
        except TransportError:
            return False
        return True
