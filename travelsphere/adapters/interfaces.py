"""Upstream and collaborator protocols consumed by the booking services.

Flight and hotel clients return the upstream JSON body unchanged (PascalCase
keys); coordinators own the translation into domain models.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from travelsphere.domain.models import BookingConfirmation, HotelBookingConfirmation

ApiPayload = dict[str, Any]


@runtime_checkable
class FlightApi(Protocol):
    def reprice_offer(self, correlation_id: str, offer_id: str) -> ApiPayload: ...

    def get_seat_map(self, correlation_id: str, offer_id: str) -> ApiPayload: ...

    def sell_seats(self, correlation_id: str, offer_id: str, seats: list[ApiPayload]) -> ApiPayload: ...

    def list_ancillary(self, correlation_id: str, offer_id: str) -> ApiPayload: ...

    def get_fare_rules(self, correlation_id: str, offer_id: str) -> ApiPayload: ...

    def create_booking(self, correlation_id: str, offer_id: str, passengers: list[ApiPayload]) -> ApiPayload: ...


@runtime_checkable
class HotelApi(Protocol):
    def prebook(self, booking_code: str, payment_mode: str = "Limit") -> ApiPayload: ...

    def create_booking(self, request: ApiPayload) -> ApiPayload: ...

    def get_booking_details(self, request: ApiPayload) -> ApiPayload: ...

    def get_bookings_by_date_range(self, request: ApiPayload) -> ApiPayload: ...

    def cancel_booking(self, request: ApiPayload) -> ApiPayload: ...


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


@runtime_checkable
class ItineraryRecorder(Protocol):
    def record_flight_booking(self, confirmation: BookingConfirmation) -> None: ...

    def record_hotel_booking(self, confirmation: HotelBookingConfirmation) -> None: ...


__all__ = [
    "ApiPayload",
    "FlightApi",
    "HotelApi",
    "ItineraryRecorder",
    "KeyValueStore",
]
