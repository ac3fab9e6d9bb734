"""Mock flight adapter producing deterministic responses shaped like the real API."""

from __future__ import annotations

import hashlib
from typing import Any

_COLUMNS = "ABCDEF"
_SEAT_TYPE_BY_COLUMN = {"A": 1, "F": 1, "B": 2, "E": 2, "C": 3, "D": 3}
_SEAT_PRICE_BY_TYPE = {1: 350.0, 2: 0.0, 3: 250.0}

_BAGGAGE = (
    ("XBAG5", "Excess baggage 5 kg", 5, 1500.0),
    ("XBAG10", "Excess baggage 10 kg", 10, 2800.0),
    ("XBAG15", "Excess baggage 15 kg", 15, 4000.0),
)
_MEALS = (
    ("VGML", "VGML - Vegetarian Meal", "Vegetarian meal (veg)", 350.0),
    ("AVML", "AVML - Vegan Meal", "Strict vegan, dairy free", 400.0),
    ("MOML", "MOML - Halal Chicken Meal", "Halal chicken with rice", 450.0),
    ("KSML", "KSML - Kosher Meal", "Kosher certified", 500.0),
    ("GFML", "GFML - Gluten Free Meal", "Gluten-free, nut free", 450.0),
)
_FARE_RULES = (
    (
        "Cancellation charges of INR 3500 per passenger apply. Fare is refundable after deduction.",
        "Cancellation must be requested 4 hours before departure",
    ),
    (
        "Date change permitted on payment of change fee INR 2500 plus fare difference.",
        "",
    ),
    (
        "Check-in baggage 15 kg, cabin baggage 7 kg. 1 piece checked and 1 piece cabin.",
        "null",
    ),
)


def _hash_int(*parts: Any) -> int:
    raw = "|".join(str(p) for p in parts)
    return int(hashlib.md5(raw.encode()).hexdigest()[:8], 16)


def _mock_trace_id(seed: str) -> str:
    return f"mock-trace-{_hash_int('trace', seed):08x}"


def mock_fare(offer_id: str) -> float:
    return float(3000 + _hash_int("fare", offer_id) % 7000)


def _ok(correlation_id: str, **body: Any) -> dict[str, Any]:
    return {"Response": {"ResponseStatus": 1, "TraceId": correlation_id, **body}}


def _mock_seats(offer_id: str, segment_index: int, rows: int = 30) -> list[dict[str, Any]]:
    seats: list[dict[str, Any]] = []
    for row in range(1, rows + 1):
        if row <= 2:
            compartment = 3
        elif row <= 6:
            compartment = 2
        else:
            compartment = 1
        for column in _COLUMNS:
            seat_type = _SEAT_TYPE_BY_COLUMN[column]
            occupied = _hash_int(offer_id, segment_index, row, column) % 4 == 0
            price = 0.0 if compartment == 3 else _SEAT_PRICE_BY_TYPE[seat_type] + (300.0 if compartment == 2 else 0.0)
            seats.append(
                {
                    "SeatNo": f"{row}{column}",
                    "RowNo": row,
                    "SeatType": seat_type,
                    "Compartment": compartment,
                    "SeatWayType": 3 if occupied else 1,
                    "Price": price,
                    "Currency": "INR",
                }
            )
    return seats


class MockFlightApi:
    """Substitute for FlightApiClient when the upstream API is unreachable."""

    backend = "mock"

    def __init__(self, segment_count: int = 1):
        self._segment_count = max(1, segment_count)
        self._bookings = 0

    def reprice_offer(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        fare = mock_fare(offer_id)
        return _ok(
            correlation_id or _mock_trace_id(offer_id),
            Results={
                "ResultIndex": offer_id,
                "IsPriceChanged": False,
                "IsTimeChanged": False,
                "Fare": {"Currency": "INR", "PublishedFare": fare * 1.1, "OfferedFare": fare},
            },
        )

    def get_seat_map(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        segments = [
            {"SegmentIndex": index, "Seats": _mock_seats(offer_id, index)}
            for index in range(self._segment_count)
        ]
        return _ok(correlation_id, SeatLayout={"SegmentSeat": segments})

    def sell_seats(self, correlation_id: str, offer_id: str, seats: list[dict[str, Any]]) -> dict[str, Any]:
        return _ok(correlation_id, IsPriceChanged=False, SeatDynamic=seats)

    def list_ancillary(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        baggage = [
            {
                "Code": code,
                "Description": description,
                "Weight": weight,
                "Price": price,
                "Currency": "INR",
                "Origin": "",
                "Destination": "",
                "WayType": 1,
            }
            for code, description, weight, price in _BAGGAGE
        ]
        meals = [
            {
                "Code": code,
                "Description": description,
                "AirlineDescription": airline_description,
                "Price": price,
                "Currency": "INR",
                "Origin": "",
                "Destination": "",
                "Quantity": 1,
                "WayType": 1,
            }
            for code, description, airline_description, price in _MEALS
        ]
        return _ok(correlation_id, Baggage=baggage, MealDynamic=meals)

    def get_fare_rules(self, correlation_id: str, offer_id: str) -> dict[str, Any]:
        rules = [
            {"FareRuleDetail": detail, "FareRestriction": restriction}
            for detail, restriction in _FARE_RULES
        ]
        return _ok(correlation_id, FareRules=rules)

    def create_booking(
        self,
        correlation_id: str,
        offer_id: str,
        passengers: list[dict[str, Any]],
    ) -> dict[str, Any]:
        self._bookings += 1
        seed = _hash_int("booking", correlation_id, offer_id, self._bookings)
        fare = mock_fare(offer_id)
        return _ok(
            correlation_id,
            BookingId=100000 + seed % 900000,
            PNR=f"{seed:08X}"[:6],
            FlightItinerary={
                "Passenger": [
                    {"Ticket": {"TicketNumber": f"098{seed % 10_000_000:07d}{index}"}}
                    for index, _ in enumerate(passengers)
                ],
                "Fare": {"OfferedFare": fare * max(1, len(passengers)), "Currency": "INR"},
            },
        )

    def health_check(self) -> bool:
        return True


__all__ = ["MockFlightApi", "mock_fare"]
