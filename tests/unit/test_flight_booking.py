"""Flight booking orchestrator tests."""

from __future__ import annotations

import datetime as dt
import io
import json

import pytest

from travelsphere.adapters.fallback import FLIGHT, FallbackProxy, MockFallbackProvider
from travelsphere.adapters.flight import MockFlightApi
from travelsphere.domain.enums import AncillaryKind, BookingStatus, PassengerType, PaymentMethod, Title
from travelsphere.domain.models import AncillarySelection, FlightOffer, PassengerDetails, PaymentInfo, SeatSelection
from travelsphere.infrastructure.kv_store import InMemoryKeyValueStore
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.persistence.session_repository import FLIGHT_SESSION_KEY
from travelsphere.services.flight_booking import BookingOrchestrator, to_wire_passenger
from travelsphere.shared.exceptions import NoActiveSession, SessionExpired, TransportError, UpstreamApiError, ValidationError

OFFER = FlightOffer(
    result_index="OB7",
    price=5000.0,
    airline="AI",
    flight_number="865",
    origin="DEL",
    destination="BOM",
    departure_time="2026-04-01T07:00:00",
)

ADULT = PassengerDetails(
    title=Title.MR,
    first_name="Ravi",
    last_name="Kumar",
    date_of_birth=dt.date(1990, 5, 17),
    nationality="india",
    passport_number="P1234567",
    passport_expiry=dt.date(2031, 1, 2),
    email="ravi@example.com",
    phone="9999999999",
)
CHILD = PassengerDetails(
    type=PassengerType.CHILD,
    title=Title.MISS,
    first_name="Asha",
    last_name="Kumar",
    date_of_birth=dt.date(2018, 1, 9),
    nationality="IN",
)


class _BookingApi(MockFlightApi):
    """Mock flight API that records create_booking calls and can be told to fail."""

    def __init__(self, *, fail_with=None, reprice_fare=None):
        super().__init__()
        self.fail_with = fail_with
        self.reprice_fare = reprice_fare
        self.bookings = []

    def reprice_offer(self, correlation_id, offer_id):
        response = super().reprice_offer(correlation_id, offer_id)
        if self.reprice_fare is not None:
            response["Response"]["Results"]["Fare"]["OfferedFare"] = self.reprice_fare
            response["Response"]["Results"]["IsPriceChanged"] = True
        return response

    def create_booking(self, correlation_id, offer_id, passengers):
        self.bookings.append((correlation_id, offer_id, passengers))
        if self.fail_with is not None:
            raise self.fail_with
        return super().create_booking(correlation_id, offer_id, passengers)


class _Itinerary:
    def __init__(self, fail=False):
        self.fail = fail
        self.flights = []

    def record_flight_booking(self, confirmation):
        if self.fail:
            raise RuntimeError("itinerary db locked")
        self.flights.append(confirmation)

    def record_hotel_booking(self, confirmation):
        raise AssertionError("not expected")


def _orchestrator(api, clock, timers, **kwargs):
    return BookingOrchestrator(api, store=InMemoryKeyValueStore(), clock=clock, timer_factory=timers, **kwargs)


def test_wire_passenger_mapping():
    wire = to_wire_passenger(ADULT, 0)

    assert wire["PaxType"] == 1
    assert wire["Gender"] == 1
    assert wire["DateOfBirth"] == "1990-05-17"
    assert wire["PassportExpiry"] == "2031-01-02"
    assert wire["CountryCode"] == "IN"
    assert wire["IsLeadPax"] is True
    assert "Baggage" not in wire


def test_wire_passenger_for_child_without_passport():
    wire = to_wire_passenger(CHILD, 1)

    assert wire["PaxType"] == 2
    assert wire["Gender"] == 2
    assert wire["PassportNo"] == ""
    assert wire["PassportExpiry"] == ""
    assert wire["IsLeadPax"] is False


def test_wire_passenger_carries_own_ancillaries_and_seats():
    ancillaries = [
        AncillarySelection(passenger_index=0, kind=AncillaryKind.BAGGAGE, code="XBAG5"),
        AncillarySelection(passenger_index=1, kind=AncillaryKind.MEAL, code="VGML"),
    ]
    seats = [SeatSelection(passenger_index=0, segment_index=0, seat_id="7C")]

    wire = to_wire_passenger(ADULT, 0, ancillaries=ancillaries, seats=seats)

    assert wire["Baggage"] == [{"Code": "XBAG5"}]
    assert "MealDynamic" not in wire
    assert wire["SeatDynamic"] == [{"SegmentIndex": 0, "Code": "7C"}]


def test_reprice_stores_repriced_offer_and_advances(clock, timers):
    orchestrator = _orchestrator(_BookingApi(reprice_fare=5500), clock, timers)
    orchestrator.start(OFFER, "trace-1")

    result = orchestrator.reprice()

    session = orchestrator.get_current()
    assert result.price_increase == 500
    assert session.status == BookingStatus.SEATS
    assert session.repriced_offer.price == 5500
    assert session.offer.price == 5000


def test_workflow_steps_update_session(clock, timers):
    orchestrator = _orchestrator(_BookingApi(), clock, timers)
    orchestrator.start(OFFER, "trace-1")

    seat_map = orchestrator.get_seat_map()
    free_seat = next(s for row in seat_map.segments[0].rows for s in row.seats if s.available)
    orchestrator.reserve_seats([SeatSelection(passenger_index=0, segment_index=0, seat_id=free_seat.seat_id)])
    assert orchestrator.get_current().status == BookingStatus.ANCILLARY

    orchestrator.add_ancillaries([AncillarySelection(passenger_index=0, kind=AncillaryKind.MEAL, code="VGML")])
    assert orchestrator.get_current().status == BookingStatus.PASSENGER

    rules = orchestrator.load_fare_rules()
    session = orchestrator.get_current()
    assert session.fare_rules == rules
    assert session.seat_selections[0].seat_id == free_seat.seat_id
    assert session.ancillary_selections[0].code == "VGML"


def test_complete_books_repriced_offer_and_destroys_session(clock, timers):
    api = _BookingApi(reprice_fare=5200)
    itinerary = _Itinerary()
    orchestrator = _orchestrator(api, clock, timers, itinerary=itinerary)
    orchestrator.start(OFFER, "trace-1")
    orchestrator.reprice()

    confirmation = orchestrator.complete([ADULT, CHILD], PaymentInfo(method=PaymentMethod.UPI))

    correlation_id, offer_id, passengers = api.bookings[0]
    assert (correlation_id, offer_id) == ("trace-1", "OB7")
    assert [p["IsLeadPax"] for p in passengers] == [True, False]
    assert confirmation.pnr
    assert confirmation.ticket_numbers and len(confirmation.ticket_numbers) == 2
    assert confirmation.offer.price == 5200
    assert confirmation.passengers == [ADULT, CHILD]
    assert confirmation.booked_at == clock()
    assert itinerary.flights == [confirmation]
    assert orchestrator.get_current() is None
    assert timers.timers[0].cancelled


def test_confirmation_is_immutable(clock, timers):
    orchestrator = _orchestrator(_BookingApi(), clock, timers)
    orchestrator.start(OFFER, "trace-1")
    confirmation = orchestrator.complete([ADULT], PaymentInfo())

    with pytest.raises(ValueError):
        confirmation.pnr = "CHANGED"


def test_failed_booking_preserves_session(clock, timers):
    api = _BookingApi(fail_with=TransportError("flight", "request timeout", code="TIMEOUT"))
    orchestrator = _orchestrator(api, clock, timers)
    started = orchestrator.start(OFFER, "trace-1")

    with pytest.raises(TransportError):
        orchestrator.complete([ADULT], PaymentInfo())

    session = orchestrator.get_current()
    assert session is not None
    assert session.session_id == started.session_id
    assert session.status == BookingStatus.PAYMENT
    assert not timers.timers[0].cancelled


def test_structured_booking_error_raises_and_preserves(clock, timers):
    class _RejectingApi(_BookingApi):
        def create_booking(self, correlation_id, offer_id, passengers):
            return {"Response": {"Error": {"ErrorCode": 5, "ErrorMessage": "Card declined"}}}

    orchestrator = _orchestrator(_RejectingApi(), clock, timers)
    orchestrator.start(OFFER, "trace-1")

    with pytest.raises(UpstreamApiError) as exc:
        orchestrator.complete([ADULT], PaymentInfo())

    assert exc.value.code == "PAYMENT_FAILED"
    assert orchestrator.get_current() is not None


def test_itinerary_failure_does_not_fail_booking(clock, timers):
    orchestrator = _orchestrator(_BookingApi(), clock, timers, itinerary=_Itinerary(fail=True))
    orchestrator.start(OFFER, "trace-1")

    confirmation = orchestrator.complete([ADULT], PaymentInfo())

    assert confirmation.booking_reference
    assert orchestrator.get_current() is None


def test_complete_without_session(clock, timers):
    api = _BookingApi()
    orchestrator = _orchestrator(api, clock, timers)

    with pytest.raises(NoActiveSession):
        orchestrator.complete([ADULT], PaymentInfo())
    assert api.bookings == []


def test_complete_on_expired_session(clock, timers):
    api = _BookingApi()
    orchestrator = _orchestrator(api, clock, timers)
    orchestrator.start(OFFER, "trace-1")
    clock.advance(minutes=31)

    with pytest.raises(SessionExpired):
        orchestrator.complete([ADULT], PaymentInfo())
    assert api.bookings == []
    assert orchestrator.get_current() is None


def test_complete_requires_passengers(clock, timers):
    api = _BookingApi()
    orchestrator = _orchestrator(api, clock, timers)
    orchestrator.start(OFFER, "trace-1")

    with pytest.raises(ValidationError):
        orchestrator.complete([], PaymentInfo())
    assert api.bookings == []


def test_booking_events_are_scrubbed_json_lines(clock, timers, monkeypatch):
    monkeypatch.setenv("FLIGHT_API_KEY", "flight-secret-key-123456")
    from travelsphere.security.key_manager import get_key_manager

    get_key_manager().reload("FLIGHT_API_KEY")
    output = io.StringIO()
    events = StructuredLogger(trace_id="t-1", output=output)
    api = _BookingApi(fail_with=RuntimeError("upstream rejected token flight-secret-key-123456"))
    orchestrator = _orchestrator(api, clock, timers, events=events)
    orchestrator.start(OFFER, "trace-1")

    with pytest.raises(RuntimeError):
        orchestrator.complete([ADULT], PaymentInfo())

    lines = [json.loads(line) for line in output.getvalue().splitlines()]
    assert [line["event"] for line in lines] == ["session_started", "booking_started", "booking_failed"]
    assert "flight-secret-key-123456" not in output.getvalue()


def test_store_keeps_persisted_copy_until_completion(clock, timers):
    store = InMemoryKeyValueStore()
    orchestrator = BookingOrchestrator(_BookingApi(), store=store, clock=clock, timer_factory=timers)
    orchestrator.start(OFFER, "trace-1")
    assert store.get(FLIGHT_SESSION_KEY) is not None

    orchestrator.complete([ADULT], PaymentInfo())

    assert store.get(FLIGHT_SESSION_KEY) is None


class _SlowApi(_BookingApi):
    """Booking call that outlives the session: advances the clock, optionally fires the TTL timer."""

    def __init__(self, clock, timers=None):
        super().__init__()
        self.clock = clock
        self.timers = timers

    def create_booking(self, correlation_id, offer_id, passengers):
        self.clock.advance(minutes=31)
        if self.timers is not None:
            self.timers.timers[0].fire()
        return super().create_booking(correlation_id, offer_id, passengers)


@pytest.mark.parametrize("timer_fires", [False, True])
def test_booking_confirmed_after_session_lapsed_mid_call(clock, timers, timer_fires):
    api = _SlowApi(clock, timers if timer_fires else None)
    itinerary = _Itinerary()
    store = InMemoryKeyValueStore()
    orchestrator = BookingOrchestrator(api, store=store, itinerary=itinerary, clock=clock, timer_factory=timers)
    orchestrator.start(OFFER, "trace-1")

    confirmation = orchestrator.complete([ADULT], PaymentInfo())

    assert confirmation.booking_reference
    assert itinerary.flights == [confirmation]
    assert orchestrator.get_current() is None
    assert store.get(FLIGHT_SESSION_KEY) is None


class _DownFlightApi(MockFlightApi):
    def __init__(self):
        super().__init__()
        self.calls = []

    def reprice_offer(self, correlation_id, offer_id):
        self.calls.append("reprice_offer")
        raise TransportError("flight", "HTTP 503", code="503")

    def create_booking(self, correlation_id, offer_id, passengers):
        self.calls.append("create_booking")
        raise TransportError("flight", "HTTP 503", code="503")


def test_booking_in_mock_mode_still_goes_upstream(clock, timers):
    primary = _DownFlightApi()
    provider = MockFallbackProvider(clock=lambda: 0.0)
    api = FallbackProxy(FLIGHT, primary, MockFlightApi(), provider)
    itinerary = _Itinerary()
    orchestrator = _orchestrator(api, clock, timers, itinerary=itinerary)
    orchestrator.start(OFFER, "trace-1")
    orchestrator.reprice()
    assert provider.is_mock_mode() is True

    with pytest.raises(TransportError):
        orchestrator.complete([ADULT], PaymentInfo())

    assert primary.calls == ["reprice_offer", "create_booking"]
    assert itinerary.flights == []
    assert orchestrator.get_current().status == BookingStatus.PAYMENT
