"""Itinerary collaborator: records confirmed bookings for the traveller's trip view."""

from __future__ import annotations

import logging
from typing import Optional

from travelsphere.domain.models import BookingConfirmation, HotelBookingConfirmation
from travelsphere.persistence.models import ItineraryRecord, ItinerarySummaryItem
from travelsphere.persistence.repository import ItineraryRepository, NoopItineraryRepository

_logger = logging.getLogger("travelsphere.itinerary")


def flight_itinerary_record(confirmation: BookingConfirmation) -> ItineraryRecord:
    offer = confirmation.offer
    route = f"{offer.origin}-{offer.destination}" if offer.origin or offer.destination else offer.result_index
    title = " ".join(part for part in (offer.airline, offer.flight_number, route) if part)
    return ItineraryRecord(
        reference=confirmation.booking_reference,
        kind="flight",
        title=title,
        total_price=confirmation.total_price,
        currency=confirmation.currency,
        starts_on=offer.departure_time or "",
        booked_at=confirmation.booked_at.isoformat(),
        payload={
            "pnr": confirmation.pnr,
            "ticket_numbers": list(confirmation.ticket_numbers),
            "passengers": [f"{p.title.value} {p.first_name} {p.last_name}" for p in confirmation.passengers],
            "departure": {"airport": offer.origin, "time": offer.departure_time},
            "arrival": {"airport": offer.destination, "time": offer.arrival_time},
            "status": "Confirmed",
        },
    )


def hotel_itinerary_record(confirmation: HotelBookingConfirmation) -> ItineraryRecord:
    offer = confirmation.offer
    guests = [
        f"{name.title} {name.first_name} {name.last_name}"
        for room in confirmation.guests
        for name in room.customer_names
    ]
    return ItineraryRecord(
        reference=confirmation.confirmation_number,
        kind="hotel",
        title=offer.hotel_name or offer.hotel_code or offer.booking_code,
        total_price=confirmation.total_fare,
        currency=confirmation.currency,
        starts_on=confirmation.check_in.isoformat(),
        booked_at=confirmation.booked_at.isoformat(),
        payload={
            "booking_reference_id": confirmation.booking_reference_id,
            "hotel_code": offer.hotel_code,
            "address": offer.address,
            "city": offer.city_name,
            "room_type": offer.room_type,
            "check_in": confirmation.check_in.isoformat(),
            "check_out": confirmation.check_out.isoformat(),
            "guests": guests,
            "status": confirmation.status,
            "voucher_url": confirmation.voucher_url,
        },
    )


class ItineraryService:
    def __init__(self, repository: Optional[ItineraryRepository] = None):
        self._repository = repository or NoopItineraryRepository()

    @property
    def backend(self) -> str:
        return self._repository.backend

    def record_flight_booking(self, confirmation: BookingConfirmation) -> None:
        self._repository.save_itinerary(flight_itinerary_record(confirmation))
        _logger.info("Flight booking %s added to itinerary", confirmation.booking_reference)

    def record_hotel_booking(self, confirmation: HotelBookingConfirmation) -> None:
        self._repository.save_itinerary(hotel_itinerary_record(confirmation))
        _logger.info("Hotel booking %s added to itinerary", confirmation.confirmation_number)

    def list_bookings(self, limit: int = 20) -> list[ItinerarySummaryItem]:
        return self._repository.list_itineraries(limit=limit)

    def get_booking(self, kind: str, reference: str) -> Optional[ItineraryRecord]:
        return self._repository.get_itinerary(kind, reference)


__all__ = ["ItineraryService", "flight_itinerary_record", "hotel_itinerary_record"]
