"""Hotel booking orchestrator: details → prebook → guest_details → payment → confirmed."""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Callable, Optional

from travelsphere.adapters.interfaces import HotelApi, ItineraryRecorder, KeyValueStore
from travelsphere.domain.enums import HotelBookingStatus
from travelsphere.domain.models import (
    GuestDetails,
    HotelBookingConfirmation,
    HotelBookingSession,
    HotelOffer,
    HotelSearchCriteria,
    PaymentInfo,
    PreBookResult,
)
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.persistence.session_repository import HOTEL_SESSION_KEY, SessionRepository
from travelsphere.services.flight_booking import new_session_id
from travelsphere.services.prebook import DEFAULT_PAYMENT_MODE, PreBookCoordinator
from travelsphere.services.session_slot import DEFAULT_TTL, SessionSlot, utcnow
from travelsphere.services.upstream import as_float, raise_for_error, response_body
from travelsphere.shared.exceptions import UpstreamApiError, ValidationError

_logger = logging.getLogger("travelsphere.booking.hotel")

SCOPE = "hotel booking"


def to_wire_guests(guests: list[GuestDetails]) -> list[dict[str, Any]]:
    rooms = sorted(guests, key=lambda room: room.room_index)
    return [
        {
            "CustomerNames": [
                {
                    "Title": name.title,
                    "FirstName": name.first_name,
                    "LastName": name.last_name,
                    "Type": name.type,
                }
                for name in room.customer_names
            ]
        }
        for room in rooms
    ]


def _validate_guests(guests: list[GuestDetails]) -> None:
    if not guests:
        raise ValidationError("Guest details are required", field="guests")
    for room in guests:
        if not room.customer_names:
            raise ValidationError(f"Guest names required for room {room.room_index + 1}", field="customer_names")
        for name in room.customer_names:
            if not name.first_name.strip() or not name.last_name.strip():
                raise ValidationError("Guest first and last name are required", field="customer_names")


class HotelBookingOrchestrator:
    def __init__(
        self,
        hotel_api: HotelApi,
        *,
        store: KeyValueStore,
        itinerary: Optional[ItineraryRecorder] = None,
        events: Optional[StructuredLogger] = None,
        ttl: dt.timedelta = DEFAULT_TTL,
        clock: Callable[[], dt.datetime] = utcnow,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._api = hotel_api
        self._itinerary = itinerary
        self._events = events
        self._prebook = PreBookCoordinator(hotel_api, events=events)
        self._slot: SessionSlot[HotelBookingSession] = SessionSlot(
            SessionRepository(store, HOTEL_SESSION_KEY, HotelBookingSession, logger=_logger),
            scope=SCOPE,
            ttl=ttl,
            clock=clock,
            events=events,
            timer_factory=timer_factory,
        )

    @property
    def slot(self) -> SessionSlot[HotelBookingSession]:
        return self._slot

    def start(self, offer: HotelOffer, search_criteria: HotelSearchCriteria) -> HotelBookingSession:
        created_at, expires_at = self._slot.lifetime()
        session = HotelBookingSession(
            session_id=new_session_id("hotel_session"),
            offer=offer,
            search_criteria=search_criteria,
            booking_code=offer.booking_code,
            status=HotelBookingStatus.DETAILS,
            created_at=created_at,
            expires_at=expires_at,
        )
        _logger.info("Starting hotel booking session %s for %s", session.session_id, offer.hotel_code or offer.booking_code)
        return self._slot.open(session)

    def get_current(self) -> Optional[HotelBookingSession]:
        return self._slot.current()

    def update(self, **changes: Any) -> HotelBookingSession:
        return self._slot.update(**changes)

    def cancel(self) -> None:
        session = self._slot.current()
        self._slot.clear()
        if session is not None and self._events is not None:
            self._events.session_cancelled(SCOPE, session.session_id)

    def restore(self) -> Optional[HotelBookingSession]:
        return self._slot.restore()

    def close(self) -> None:
        self._slot.close()

    def prebook(self, payment_mode: str = DEFAULT_PAYMENT_MODE) -> PreBookResult:
        """Re-validate the room; on success the session moves to guest details."""
        session = self.update(status=HotelBookingStatus.PREBOOK)
        result = self._prebook.validate(session.booking_code, session.offer.price, payment_mode)
        if result.available:
            self.update(
                booking_code=result.booking_code,
                prebook_result=result,
                status=HotelBookingStatus.GUEST_DETAILS,
            )
        return result

    def complete(self, guests: list[GuestDetails], payment: PaymentInfo) -> HotelBookingConfirmation:
        session = self._slot.require()
        prebook = session.prebook_result
        if prebook is None or not prebook.available:
            raise ValidationError("Pre-booking validation required before completing booking", field="prebook_result")
        _validate_guests(guests)

        session = self.update(status=HotelBookingStatus.PAYMENT)
        stamp = int(self._slot.now().timestamp() * 1000)
        request = {
            "BookingCode": session.booking_code,
            "CustomerDetails": to_wire_guests(guests),
            "ClientReferenceId": f"TS_{stamp}",
            "BookingReferenceId": f"BOOK_{stamp}",
            "TotalFare": prebook.current_price,
            "EmailId": payment.email_id or "",
            "PhoneNumber": payment.phone_number or "",
            "BookingType": "API",
            "PaymentMode": DEFAULT_PAYMENT_MODE,
        }
        if self._events is not None:
            self._events.booking_started(SCOPE, session.session_id, payment_method=payment.method.value)

        try:
            body = response_body(self._api.create_booking(request))
            raise_for_error("hotel", body, "Hotel booking failed")
            if not body.get("ConfirmationNo"):
                raise UpstreamApiError(
                    "HOTEL_BOOKING_FAILED",
                    body.get("Message") or "Booking response has no confirmation number",
                    context="Hotel booking failed",
                    recoverable=True,
                )
        except Exception as exc:
            _logger.warning("Hotel booking for session %s failed: %s", session.session_id, exc.__class__.__name__)
            if self._events is not None:
                self._events.booking_failed(SCOPE, session.session_id, str(exc))
            raise

        details = body.get("HotelDetails") or {}
        confirmation = HotelBookingConfirmation(
            confirmation_number=str(body["ConfirmationNo"]),
            booking_reference_id=str(body.get("BookingRefNo") or request["BookingReferenceId"]),
            offer=session.offer,
            guests=list(guests),
            total_fare=as_float(details.get("TotalFare"), default=prebook.current_price),
            currency=details.get("CurrencyCode") or prebook.currency,
            check_in=session.search_criteria.check_in,
            check_out=session.search_criteria.check_out,
            booked_at=self._slot.now(),
            status="Confirmed",
            voucher_url=body.get("VoucherUrl"),
        )
        self._slot.settle(session.session_id, status=HotelBookingStatus.CONFIRMED)
        self._hand_off(confirmation)
        if self._events is not None:
            self._events.booking_confirmed(
                SCOPE,
                session.session_id,
                reference=confirmation.confirmation_number,
                total_price=confirmation.total_fare,
                currency=confirmation.currency,
            )
        self._slot.clear()
        return confirmation

    def _hand_off(self, confirmation: HotelBookingConfirmation) -> None:
        if self._itinerary is None:
            return
        try:
            self._itinerary.record_hotel_booking(confirmation)
        except Exception as exc:
            _logger.warning("Could not add hotel booking %s to itinerary: %s", confirmation.confirmation_number, exc)
            if self._events is not None:
                self._events.warning("itinerary", f"record_hotel_booking failed: {exc}")


__all__ = ["HotelBookingOrchestrator", "to_wire_guests"]
