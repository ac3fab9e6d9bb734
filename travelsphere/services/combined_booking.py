"""Flight + hotel booking composed into one logical session.

The combined session keeps snapshots of the two sub-sessions; the
sub-orchestrators own the live state and their own timers.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Callable, Optional

from travelsphere.adapters.interfaces import KeyValueStore
from travelsphere.domain.enums import CombinedBookingStatus
from travelsphere.domain.models import (
    CombinedBookingConfirmation,
    CombinedBookingSession,
    FlightOffer,
    GuestDetails,
    HotelOffer,
    HotelSearchCriteria,
    PassengerDetails,
    PaymentInfo,
)
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.persistence.session_repository import COMBINED_SESSION_KEY, SessionRepository
from travelsphere.services.flight_booking import BookingOrchestrator, new_session_id
from travelsphere.services.hotel_booking import HotelBookingOrchestrator
from travelsphere.services.session_slot import DEFAULT_TTL, SessionSlot, utcnow
from travelsphere.shared.exceptions import ValidationError

_logger = logging.getLogger("travelsphere.booking.combined")

SCOPE = "combined booking"
DEFAULT_CURRENCY = "USD"


class CombinedBookingOrchestrator:
    def __init__(
        self,
        flights: BookingOrchestrator,
        hotels: HotelBookingOrchestrator,
        *,
        store: KeyValueStore,
        events: Optional[StructuredLogger] = None,
        ttl: dt.timedelta = DEFAULT_TTL,
        clock: Callable[[], dt.datetime] = utcnow,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._flights = flights
        self._hotels = hotels
        self._events = events
        self._slot: SessionSlot[CombinedBookingSession] = SessionSlot(
            SessionRepository(store, COMBINED_SESSION_KEY, CombinedBookingSession, logger=_logger),
            scope=SCOPE,
            ttl=ttl,
            clock=clock,
            events=events,
            timer_factory=timer_factory,
        )

    @property
    def slot(self) -> SessionSlot[CombinedBookingSession]:
        return self._slot

    # ── start ───────────────────────────────────────

    def start(
        self,
        flight: Optional[FlightOffer] = None,
        correlation_id: Optional[str] = None,
        hotel: Optional[HotelOffer] = None,
        search_criteria: Optional[HotelSearchCriteria] = None,
    ) -> CombinedBookingSession:
        """Start a multi-leg session; either leg may be omitted."""
        has_flight = flight is not None and correlation_id is not None
        has_hotel = hotel is not None and search_criteria is not None
        if not has_flight and not has_hotel:
            raise ValidationError("a combined booking needs a flight or a hotel", field="flight")

        self._discard_all()
        flight_session = self._flights.start(flight, correlation_id) if has_flight else None
        hotel_session = self._hotels.start(hotel, search_criteria) if has_hotel else None

        created_at, expires_at = self._slot.lifetime()
        session = CombinedBookingSession(
            session_id=new_session_id("combined"),
            flight_session=flight_session,
            hotel_session=hotel_session,
            status=CombinedBookingStatus.FLIGHT_REPRICING if has_flight else CombinedBookingStatus.HOTEL_PREBOOK,
            created_at=created_at,
            expires_at=expires_at,
        )
        _logger.info(
            "Starting combined session %s (flight=%s, hotel=%s)",
            session.session_id,
            has_flight,
            has_hotel,
        )
        return self._slot.open(session)

    def start_flight_only(self, flight: FlightOffer, correlation_id: str) -> CombinedBookingSession:
        return self.start(flight=flight, correlation_id=correlation_id)

    def start_hotel_only(self, hotel: HotelOffer, search_criteria: HotelSearchCriteria) -> CombinedBookingSession:
        return self.start(hotel=hotel, search_criteria=search_criteria)

    # ── state ───────────────────────────────────────

    def get_current(self) -> Optional[CombinedBookingSession]:
        return self._slot.current()

    def update_status(self, status: CombinedBookingStatus) -> CombinedBookingSession:
        session = self._slot.require()
        return self._slot.update(status=status, **self._live_legs(session))

    def cancel(self) -> None:
        session = self._slot.current()
        self._slot.clear()
        if session is None:
            return
        if session.flight_session is not None:
            self._flights.cancel()
        if session.hotel_session is not None:
            self._hotels.cancel()
        if self._events is not None:
            self._events.session_cancelled(SCOPE, session.session_id)

    def restore(self) -> Optional[CombinedBookingSession]:
        session = self._slot.restore()
        if session is None:
            return None
        if session.flight_session is not None:
            self._flights.restore()
        if session.hotel_session is not None:
            self._hotels.restore()
        return session

    def close(self) -> None:
        self._slot.close()

    def calculate_total_cost(self) -> float:
        """Quoted flight price plus hotel price; missing legs count 0."""
        session = self._slot.current()
        if session is None:
            return 0.0
        legs = self._live_legs(session)
        flight = legs.get("flight_session", session.flight_session)
        hotel = legs.get("hotel_session", session.hotel_session)

        total = 0.0
        if flight is not None:
            total += flight.offer_to_book.price
        if hotel is not None:
            if hotel.prebook_result is not None:
                total += hotel.prebook_result.current_price
            else:
                total += hotel.offer.price
        return total

    # ── completion ──────────────────────────────────

    def complete(
        self,
        passengers: Optional[list[PassengerDetails]],
        guests: Optional[list[GuestDetails]],
        payment: PaymentInfo,
    ) -> CombinedBookingConfirmation:
        """Book the flight leg, then the hotel leg.

        A leg is booked only when its sub-session exists and its traveller
        details were supplied. Each booked leg is recorded on the combined
        session, so if the hotel leg fails after the flight leg was booked the
        error propagates, the session stays in ``confirming`` and a retry books
        only the hotel.
        """
        session = self.update_status(CombinedBookingStatus.CONFIRMING)
        flight_booking = session.flight_booking
        hotel_booking = session.hotel_booking

        try:
            if flight_booking is None and session.flight_session is not None and passengers:
                flight_booking = self._flights.complete(passengers, payment)
                self._slot.settle(session.session_id, flight_booking=flight_booking)

            if hotel_booking is None and session.hotel_session is not None and guests:
                hotel_booking = self._hotels.complete(guests, payment)
                self._slot.settle(session.session_id, hotel_booking=hotel_booking)
        except Exception:
            _logger.exception("Combined booking %s failed", session.session_id)
            raise

        total_cost = 0.0
        currency = DEFAULT_CURRENCY
        if flight_booking is not None:
            total_cost += flight_booking.total_price
            currency = flight_booking.currency
        if hotel_booking is not None:
            total_cost += hotel_booking.total_fare
            if flight_booking is None:
                currency = hotel_booking.currency

        confirmation = CombinedBookingConfirmation(
            session_id=session.session_id,
            flight_booking=flight_booking,
            hotel_booking=hotel_booking,
            total_cost=total_cost,
            currency=currency,
            booked_at=self._slot.now(),
        )
        self._slot.settle(session.session_id, status=CombinedBookingStatus.COMPLETED)
        self.cancel()
        return confirmation

    # ── helpers ─────────────────────────────────────

    def _discard_all(self) -> None:
        self._slot.clear()
        self._flights.cancel()
        self._hotels.cancel()

    def _live_legs(self, session: CombinedBookingSession) -> dict[str, Any]:
        """Fresh snapshots of this session's legs that are still active."""
        legs: dict[str, Any] = {}
        if session.flight_session is not None:
            flight = self._flights.get_current()
            if flight is not None and flight.session_id == session.flight_session.session_id:
                legs["flight_session"] = flight
        if session.hotel_session is not None:
            hotel = self._hotels.get_current()
            if hotel is not None and hotel.session_id == session.hotel_session.session_id:
                legs["hotel_session"] = hotel
        return legs


__all__ = ["CombinedBookingOrchestrator"]
