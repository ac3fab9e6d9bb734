"""Seat map retrieval and seat reservation."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Optional

from travelsphere.adapters.interfaces import FlightApi
from travelsphere.domain.enums import CabinClass, SeatPosition
from travelsphere.domain.models import Seat, SeatMap, SeatReservationResult, SeatRow, SeatSelection, SegmentSeatMap
from travelsphere.services.upstream import as_float, as_int, raise_for_error, response_body
from travelsphere.shared.exceptions import ValidationError

_logger = logging.getLogger("travelsphere.seats")

SEAT_AVAILABLE = 1

_POSITIONS = {1: SeatPosition.WINDOW, 2: SeatPosition.MIDDLE, 3: SeatPosition.AISLE}
_CABINS = {
    1: CabinClass.ECONOMY,
    2: CabinClass.PREMIUM_ECONOMY,
    3: CabinClass.BUSINESS,
    4: CabinClass.FIRST,
}
_POSITION_FEATURES = {1: ["Window View"], 3: ["Easy Access"]}
_CABIN_FEATURES = {
    2: ["Extra Legroom"],
    3: ["Lie-flat Seat", "Priority Boarding"],
    4: ["Fully Flat Bed", "Premium Service", "Priority Everything"],
}


def seat_features(seat_type: int, compartment: int, price: float) -> list[str]:
    features = list(_POSITION_FEATURES.get(seat_type, []))
    features.extend(_CABIN_FEATURES.get(compartment, []))
    features.append("Free" if price == 0 else "Paid Seat")
    return features


def _to_seat(raw: dict[str, Any]) -> Seat:
    seat_type = as_int(raw.get("SeatType"))
    compartment = as_int(raw.get("Compartment"))
    price = as_float(raw.get("Price"))
    return Seat(
        seat_id=str(raw.get("SeatNo") or ""),
        available=as_int(raw.get("SeatWayType")) == SEAT_AVAILABLE,
        position=_POSITIONS.get(seat_type, SeatPosition.MIDDLE),
        cabin=_CABINS.get(compartment, CabinClass.ECONOMY),
        price=price,
        currency=raw.get("Currency") or "INR",
        features=seat_features(seat_type, compartment, price),
    )


def _to_segment(raw: dict[str, Any]) -> SegmentSeatMap:
    by_row: dict[int, list[Seat]] = defaultdict(list)
    for seat in raw.get("Seats") or []:
        by_row[as_int(seat.get("RowNo"))].append(_to_seat(seat))
    rows = [SeatRow(row_number=row, seats=seats) for row, seats in sorted(by_row.items())]
    # the seat map endpoint does not report the aircraft type
    return SegmentSeatMap(segment_index=as_int(raw.get("SegmentIndex")), rows=rows, aircraft="Unknown")


def validate_seat_selections(selections: list[SeatSelection]) -> None:
    """Checks run in a fixed order; the first failure wins."""
    if not selections:
        raise ValidationError("No seat selections provided", field="selections")

    seen: set[tuple[int, str]] = set()
    for selection in selections:
        key = (selection.segment_index, selection.seat_id)
        if key in seen:
            raise ValidationError(
                f"Duplicate seat selection: {selection.seat_id} for segment {selection.segment_index}",
                field="seat_id",
            )
        seen.add(key)

    for selection in selections:
        if selection.passenger_index < 0:
            raise ValidationError(f"Invalid passenger index: {selection.passenger_index}", field="passenger_index")

    for selection in selections:
        if selection.segment_index < 0:
            raise ValidationError(f"Invalid segment index: {selection.segment_index}", field="segment_index")

    for selection in selections:
        if not selection.seat_id or not selection.seat_id.strip():
            raise ValidationError("Invalid seat number: empty or undefined", field="seat_id")


class SeatSelectionCoordinator:
    def __init__(self, flight_api: FlightApi):
        self._api = flight_api

    def get_seat_map(self, correlation_id: str, offer_id: str) -> SeatMap:
        body = response_body(self._api.get_seat_map(correlation_id, offer_id))
        raise_for_error("flight", body, "Seat map API error")
        layout = body.get("SeatLayout") or {}
        return SeatMap(segments=[_to_segment(segment) for segment in layout.get("SegmentSeat") or []])

    def reserve(
        self,
        correlation_id: str,
        offer_id: str,
        selections: list[SeatSelection],
        *,
        seat_map: Optional[SeatMap] = None,
    ) -> SeatReservationResult:
        """Sell the selected seats.

        ``total_cost`` sums the selected seats' prices from ``seat_map`` when one
        is given; without it the cost is unknown and reported as 0.
        """
        validate_seat_selections(selections)

        seat_dynamic = [
            {
                "SegmentIndex": selection.segment_index,
                "PassengerIndex": selection.passenger_index,
                "SeatNo": selection.seat_id,
            }
            for selection in selections
        ]
        body = response_body(self._api.sell_seats(correlation_id, offer_id, seat_dynamic))
        raise_for_error("flight", body, "Seat reservation API error")

        total_cost = 0.0
        if seat_map is not None:
            for selection in selections:
                seat = seat_map.find_seat(selection.segment_index, selection.seat_id)
                if seat is not None:
                    total_cost += seat.price

        _logger.info("Reserved %d seat(s) for offer %s", len(selections), offer_id)
        return SeatReservationResult(
            success=True,
            reserved_seats=list(selections),
            total_cost=total_cost,
            price_changed=bool(body.get("IsPriceChanged", False)),
        )


__all__ = ["SeatSelectionCoordinator", "seat_features", "validate_seat_selections"]
