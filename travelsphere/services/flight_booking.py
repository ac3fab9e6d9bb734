"""Flight booking orchestrator.

Drives one timed booking session through
repricing → seats → ancillary → passenger → payment → confirmed.
``update`` merges whatever the caller passes; stage order is the caller's
responsibility.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional

from travelsphere.adapters.interfaces import FlightApi, ItineraryRecorder, KeyValueStore
from travelsphere.domain.enums import AncillaryKind, BookingStatus, PassengerType, Title
from travelsphere.domain.models import (
    AncillaryOptions,
    AncillaryResult,
    AncillarySelection,
    BookingConfirmation,
    BookingSession,
    FareRules,
    FlightOffer,
    PassengerDetails,
    PaymentInfo,
    RepricingResult,
    SeatMap,
    SeatReservationResult,
    SeatSelection,
)
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.persistence.session_repository import FLIGHT_SESSION_KEY, SessionRepository
from travelsphere.services.ancillary import AncillaryCoordinator
from travelsphere.services.fare_rules import FareRulesCoordinator
from travelsphere.services.repricing import RepricingCoordinator
from travelsphere.services.seat_selection import SeatSelectionCoordinator
from travelsphere.services.session_slot import DEFAULT_TTL, SessionSlot, utcnow
from travelsphere.services.upstream import as_float, raise_for_error, response_body
from travelsphere.shared.exceptions import UpstreamApiError, ValidationError

_logger = logging.getLogger("travelsphere.booking.flight")

SCOPE = "booking"

PAX_TYPE_CODES = {
    PassengerType.ADULT: 1,
    PassengerType.CHILD: 2,
    PassengerType.INFANT: 3,
}


def new_session_id(prefix: str = "session") -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _gender(title: Title) -> int:
    return 1 if title == Title.MR else 2


def to_wire_passenger(
    passenger: PassengerDetails,
    index: int,
    *,
    ancillaries: Optional[list[AncillarySelection]] = None,
    seats: Optional[list[SeatSelection]] = None,
) -> dict[str, Any]:
    """Map one passenger onto the upstream ``Passengers[]`` record."""
    wire: dict[str, Any] = {
        "Title": passenger.title.value,
        "FirstName": passenger.first_name,
        "LastName": passenger.last_name,
        "PaxType": PAX_TYPE_CODES[passenger.type],
        "DateOfBirth": passenger.date_of_birth.isoformat(),
        "Gender": _gender(passenger.title),
        "PassportNo": passenger.passport_number or "",
        "PassportExpiry": passenger.passport_expiry.isoformat() if passenger.passport_expiry else "",
        "AddressLine1": "N/A",
        "City": "N/A",
        "CountryCode": passenger.nationality[:2].upper(),
        "CountryName": passenger.nationality,
        "Nationality": passenger.nationality,
        "ContactNo": passenger.phone or "",
        "Email": passenger.email or "",
        "IsLeadPax": index == 0,
    }
    mine = [s for s in ancillaries or [] if s.passenger_index == index]
    baggage = [{"Code": s.code} for s in mine if s.kind == AncillaryKind.BAGGAGE]
    meals = [{"Code": s.code} for s in mine if s.kind == AncillaryKind.MEAL]
    if baggage:
        wire["Baggage"] = baggage
    if meals:
        wire["MealDynamic"] = meals
    seat_codes = [
        {"SegmentIndex": s.segment_index, "Code": s.seat_id}
        for s in seats or []
        if s.passenger_index == index
    ]
    if seat_codes:
        wire["SeatDynamic"] = seat_codes
    return wire


def _confirmation_from(
    body: dict[str, Any],
    session: BookingSession,
    passengers: list[PassengerDetails],
    booked_at: dt.datetime,
) -> BookingConfirmation:
    itinerary = body.get("FlightItinerary")
    if not isinstance(itinerary, dict) or body.get("BookingId") in (None, ""):
        raise UpstreamApiError("BOOKING_FAILED", "Booking response is missing the itinerary", context="Booking failed")
    offer = session.offer_to_book
    fare = itinerary.get("Fare") or {}
    tickets = [
        str((pax.get("Ticket") or {}).get("TicketNumber"))
        for pax in itinerary.get("Passenger") or []
        if (pax.get("Ticket") or {}).get("TicketNumber")
    ]
    return BookingConfirmation(
        booking_reference=str(body.get("BookingId")),
        pnr=str(body.get("PNR") or ""),
        ticket_numbers=tickets,
        offer=offer,
        passengers=list(passengers),
        total_price=as_float(fare.get("OfferedFare"), default=offer.price),
        currency=fare.get("Currency") or offer.currency,
        booked_at=booked_at,
        ancillary_selections=session.ancillary_selections,
    )


class BookingOrchestrator:
    """One flight booking session at a time, persisted to ``store``."""

    def __init__(
        self,
        flight_api: FlightApi,
        *,
        store: KeyValueStore,
        itinerary: Optional[ItineraryRecorder] = None,
        events: Optional[StructuredLogger] = None,
        fare_rules: Optional[FareRulesCoordinator] = None,
        ttl: dt.timedelta = DEFAULT_TTL,
        clock: Callable[[], dt.datetime] = utcnow,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._api = flight_api
        self._itinerary = itinerary
        self._events = events
        self._repricing = RepricingCoordinator(flight_api, events=events)
        self._seats = SeatSelectionCoordinator(flight_api)
        self._ancillary = AncillaryCoordinator(flight_api)
        self._fare_rules = fare_rules or FareRulesCoordinator(flight_api)
        self._slot: SessionSlot[BookingSession] = SessionSlot(
            SessionRepository(store, FLIGHT_SESSION_KEY, BookingSession, logger=_logger),
            scope=SCOPE,
            ttl=ttl,
            clock=clock,
            events=events,
            timer_factory=timer_factory,
        )

    @property
    def slot(self) -> SessionSlot[BookingSession]:
        return self._slot

    # ── lifecycle ───────────────────────────────────

    def start(self, offer: FlightOffer, correlation_id: str) -> BookingSession:
        created_at, expires_at = self._slot.lifetime()
        session = BookingSession(
            session_id=new_session_id(),
            correlation_id=correlation_id,
            offer=offer,
            status=BookingStatus.REPRICING,
            created_at=created_at,
            expires_at=expires_at,
        )
        _logger.info("Starting flight booking session %s for offer %s", session.session_id, offer.result_index)
        return self._slot.open(session)

    def get_current(self) -> Optional[BookingSession]:
        return self._slot.current()

    def update(self, **changes: Any) -> BookingSession:
        return self._slot.update(**changes)

    def cancel(self) -> None:
        session = self._slot.current()
        self._slot.clear()
        if session is not None and self._events is not None:
            self._events.session_cancelled(SCOPE, session.session_id)

    def restore(self) -> Optional[BookingSession]:
        return self._slot.restore()

    def close(self) -> None:
        self._slot.close()

    # ── workflow steps ──────────────────────────────

    def reprice(self) -> RepricingResult:
        session = self._slot.require()
        result = self._repricing.validate(session.correlation_id, session.offer.result_index, session.offer.price)
        if result.available:
            repriced = session.offer.model_copy(update={"price": result.current_price, "currency": result.currency})
            self.update(repriced_offer=repriced, status=BookingStatus.SEATS)
        return result

    def get_seat_map(self) -> SeatMap:
        session = self._slot.require()
        return self._seats.get_seat_map(session.correlation_id, session.offer_to_book.result_index)

    def reserve_seats(
        self,
        selections: list[SeatSelection],
        *,
        seat_map: Optional[SeatMap] = None,
    ) -> SeatReservationResult:
        session = self._slot.require()
        result = self._seats.reserve(
            session.correlation_id,
            session.offer_to_book.result_index,
            selections,
            seat_map=seat_map,
        )
        self.update(seat_selections=result.reserved_seats, status=BookingStatus.ANCILLARY)
        return result

    def list_ancillaries(self) -> AncillaryOptions:
        session = self._slot.require()
        return self._ancillary.list(session.correlation_id, session.offer_to_book.result_index)

    def add_ancillaries(self, selections: list[AncillarySelection]) -> AncillaryResult:
        session = self._slot.require()
        result = self._ancillary.add(session.correlation_id, session.offer_to_book.result_index, selections)
        self.update(ancillary_selections=result.added_services, status=BookingStatus.PASSENGER)
        return result

    def load_fare_rules(self) -> FareRules:
        session = self._slot.require()
        rules = self._fare_rules.get(session.correlation_id, session.offer_to_book.result_index)
        self.update(fare_rules=rules)
        return rules

    # ── completion ──────────────────────────────────

    def complete(self, passengers: list[PassengerDetails], payment: PaymentInfo) -> BookingConfirmation:
        """Create the upstream booking for the active session.

        On success the session is destroyed, even if it lapsed while the
        upstream call was in flight. If the upstream call fails the session
        stays in place so the caller can retry, and the error propagates.
        """
        self._slot.require()
        if not passengers:
            raise ValidationError("At least one passenger is required", field="passengers")

        session = self.update(status=BookingStatus.PAYMENT)
        offer = session.offer_to_book
        if self._events is not None:
            self._events.booking_started(SCOPE, session.session_id, payment_method=payment.method.value)

        wire = [
            to_wire_passenger(
                passenger,
                index,
                ancillaries=session.ancillary_selections,
                seats=session.seat_selections,
            )
            for index, passenger in enumerate(passengers)
        ]
        try:
            body = response_body(self._api.create_booking(session.correlation_id, offer.result_index, wire))
            raise_for_error("flight", body, "Booking failed")
            confirmation = _confirmation_from(body, session, passengers, self._slot.now())
        except Exception as exc:
            _logger.warning("Flight booking for session %s failed: %s", session.session_id, exc.__class__.__name__)
            if self._events is not None:
                self._events.booking_failed(SCOPE, session.session_id, str(exc))
            raise

        self._slot.settle(session.session_id, status=BookingStatus.CONFIRMED)
        self._hand_off(confirmation)
        if self._events is not None:
            self._events.booking_confirmed(
                SCOPE,
                session.session_id,
                reference=confirmation.booking_reference,
                total_price=confirmation.total_price,
                currency=confirmation.currency,
            )
        self._slot.clear()
        return confirmation

    def _hand_off(self, confirmation: BookingConfirmation) -> None:
        if self._itinerary is None:
            return
        try:
            self._itinerary.record_flight_booking(confirmation)
        except Exception as exc:
            # itinerary failures never fail a confirmed booking
            _logger.warning("Could not add booking %s to itinerary: %s", confirmation.booking_reference, exc)
            if self._events is not None:
                self._events.warning("itinerary", f"record_flight_booking failed: {exc}")


__all__ = ["BookingOrchestrator", "PAX_TYPE_CODES", "new_session_id", "to_wire_passenger"]
