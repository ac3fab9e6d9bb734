"""Combined flight + hotel orchestrator tests."""

from __future__ import annotations

import datetime as dt

import pytest

from travelsphere.adapters.flight import MockFlightApi
from travelsphere.adapters.hotel import MockHotelApi
from travelsphere.domain.enums import CombinedBookingStatus
from travelsphere.domain.models import (
    CustomerName,
    FlightOffer,
    GuestDetails,
    HotelOffer,
    HotelSearchCriteria,
    PassengerDetails,
    PaymentInfo,
)
from travelsphere.infrastructure.kv_store import InMemoryKeyValueStore
from travelsphere.services.combined_booking import CombinedBookingOrchestrator
from travelsphere.services.flight_booking import BookingOrchestrator
from travelsphere.services.hotel_booking import HotelBookingOrchestrator
from travelsphere.shared.exceptions import NoActiveSession, UpstreamApiError, ValidationError

FLIGHT = FlightOffer(result_index="OB1", price=500.0, currency="USD", airline="UA", flight_number="90")
HOTEL = HotelOffer(booking_code="BC-7", price=200.0, currency="USD", hotel_name="Midtown Inn")
CRITERIA = HotelSearchCriteria(check_in=dt.date(2026, 5, 1), check_out=dt.date(2026, 5, 3))
PASSENGERS = [
    PassengerDetails(first_name="June", last_name="Park", date_of_birth=dt.date(1988, 2, 2), nationality="US"),
]
GUESTS = [GuestDetails(room_index=0, customer_names=[CustomerName(title="Ms", first_name="June", last_name="Park")])]


class _HotelApi(MockHotelApi):
    def __init__(self, fail=False):
        self.fail = fail

    def prebook(self, booking_code, payment_mode="Limit"):
        return {
            "BookingCode": booking_code,
            "Status": 1,
            "HotelDetails": {"Price": {"CurrencyCode": "USD", "OfferedPrice": 260.0}},
        }

    def create_booking(self, request):
        if self.fail:
            return {"Error": {"ErrorCode": 3, "ErrorMessage": "Room sold out"}}
        response = super().create_booking(request)
        response["HotelDetails"]["CurrencyCode"] = "USD"
        return response


class _FlightApi(MockFlightApi):
    def create_booking(self, correlation_id, offer_id, passengers):
        response = super().create_booking(correlation_id, offer_id, passengers)
        response["Response"]["FlightItinerary"]["Fare"] = {"OfferedFare": 510.0, "Currency": "USD"}
        return response


@pytest.fixture
def parts(clock, timers):
    store = InMemoryKeyValueStore()
    options = {"store": store, "clock": clock, "timer_factory": timers}
    flights = BookingOrchestrator(_FlightApi(), **options)
    hotels = HotelBookingOrchestrator(_HotelApi(), **options)
    combined = CombinedBookingOrchestrator(flights, hotels, **options)
    return flights, hotels, combined


def test_total_cost_sums_quoted_prices(parts):
    _, _, combined = parts
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)

    assert combined.calculate_total_cost() == 700.0


def test_total_cost_without_session_is_zero(parts):
    assert parts[2].calculate_total_cost() == 0.0


def test_total_cost_prefers_prebook_price(parts):
    _, hotels, combined = parts
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)

    hotels.prebook()

    assert combined.calculate_total_cost() == 760.0


def test_start_without_legs_is_rejected(parts):
    with pytest.raises(ValidationError) as exc:
        parts[2].start()

    assert exc.value.field == "flight"


def test_start_with_half_a_leg_is_rejected(parts):
    with pytest.raises(ValidationError):
        parts[2].start(flight=FLIGHT)


def test_flight_only_and_hotel_only(parts):
    flights, hotels, combined = parts

    flight_only = combined.start_flight_only(FLIGHT, "trace-1")
    assert flight_only.status == CombinedBookingStatus.FLIGHT_REPRICING
    assert flight_only.hotel_session is None
    assert combined.calculate_total_cost() == 500.0

    hotel_only = combined.start_hotel_only(HOTEL, CRITERIA)
    assert hotel_only.status == CombinedBookingStatus.HOTEL_PREBOOK
    assert hotel_only.flight_session is None
    assert flights.get_current() is None
    assert hotels.get_current().session_id == hotel_only.hotel_session.session_id
    assert combined.calculate_total_cost() == 200.0


def test_start_cancels_previous_sub_sessions(parts, timers):
    flights, hotels, combined = parts
    standalone = flights.start(FLIGHT, "standalone")

    first = combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)
    second = combined.start(FLIGHT, "trace-2", HOTEL, CRITERIA)

    assert flights.get_current().session_id == second.flight_session.session_id
    assert flights.get_current().session_id not in (standalone.session_id, first.flight_session.session_id)
    assert hotels.get_current().session_id == second.hotel_session.session_id
    assert combined.get_current().session_id == second.session_id
    live = [t for t in timers.timers if not t.cancelled]
    assert len(live) == 3


def test_update_status_refreshes_leg_snapshots(parts):
    flights, _, combined = parts
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)
    flights.reprice()

    session = combined.update_status(CombinedBookingStatus.PASSENGER_DETAILS)

    assert session.status == CombinedBookingStatus.PASSENGER_DETAILS
    assert session.flight_session.repriced_offer is not None


def test_standalone_session_is_not_picked_up(parts):
    flights, _, combined = parts
    combined.start_hotel_only(HOTEL, CRITERIA)
    flights.start(FLIGHT, "standalone")

    session = combined.update_status(CombinedBookingStatus.GUEST_DETAILS)

    assert session.flight_session is None
    assert combined.calculate_total_cost() == 200.0


def test_cancel_clears_all_three(parts):
    flights, hotels, combined = parts
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)

    combined.cancel()
    combined.cancel()

    assert combined.get_current() is None
    assert flights.get_current() is None
    assert hotels.get_current() is None


def test_complete_books_both_legs(parts):
    flights, hotels, combined = parts
    session = combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)
    hotels.prebook()

    confirmation = combined.complete(PASSENGERS, GUESTS, PaymentInfo())

    assert confirmation.session_id == session.session_id
    assert confirmation.flight_booking.total_price == 510.0
    assert confirmation.hotel_booking.total_fare == 260.0
    assert confirmation.total_cost == 770.0
    assert confirmation.currency == "USD"
    assert combined.get_current() is None
    assert flights.get_current() is None
    assert hotels.get_current() is None


def test_complete_hotel_only_uses_hotel_currency(parts):
    _, hotels, combined = parts
    combined.start_hotel_only(HOTEL, CRITERIA)
    hotels.prebook()

    confirmation = combined.complete(None, GUESTS, PaymentInfo())

    assert confirmation.flight_booking is None
    assert confirmation.total_cost == 260.0
    assert confirmation.currency == "USD"


def test_hotel_failure_after_flight_keeps_combined_session(clock, timers):
    store = InMemoryKeyValueStore()
    options = {"store": store, "clock": clock, "timer_factory": timers}
    flights = BookingOrchestrator(_FlightApi(), **options)
    hotels = HotelBookingOrchestrator(_HotelApi(fail=True), **options)
    combined = CombinedBookingOrchestrator(flights, hotels, **options)
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)
    hotels.prebook()

    with pytest.raises(UpstreamApiError):
        combined.complete(PASSENGERS, GUESTS, PaymentInfo())

    assert combined.get_current().status == CombinedBookingStatus.CONFIRMING
    assert flights.get_current() is None
    assert hotels.get_current() is not None


def test_complete_without_session(parts):
    with pytest.raises(NoActiveSession, match="No active combined booking session"):
        parts[2].complete(PASSENGERS, GUESTS, PaymentInfo())


class _CountingFlightApi(_FlightApi):
    def __init__(self):
        super().__init__()
        self.bookings = 0

    def create_booking(self, correlation_id, offer_id, passengers):
        self.bookings += 1
        return super().create_booking(correlation_id, offer_id, passengers)


def test_retry_after_hotel_failure_books_only_the_hotel(clock, timers):
    store = InMemoryKeyValueStore()
    options = {"store": store, "clock": clock, "timer_factory": timers}
    flight_api = _CountingFlightApi()
    hotel_api = _HotelApi(fail=True)
    flights = BookingOrchestrator(flight_api, **options)
    hotels = HotelBookingOrchestrator(hotel_api, **options)
    combined = CombinedBookingOrchestrator(flights, hotels, **options)
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)
    hotels.prebook()

    with pytest.raises(UpstreamApiError):
        combined.complete(PASSENGERS, GUESTS, PaymentInfo())
    assert combined.get_current().flight_booking.total_price == 510.0

    hotel_api.fail = False
    confirmation = combined.complete(PASSENGERS, GUESTS, PaymentInfo())

    assert flight_api.bookings == 1
    assert confirmation.flight_booking.total_price == 510.0
    assert confirmation.hotel_booking.total_fare == 260.0
    assert confirmation.total_cost == 770.0
    assert combined.get_current() is None
    assert hotels.get_current() is None


def test_booked_leg_survives_restart(clock, timers):
    store = InMemoryKeyValueStore()
    options = {"store": store, "clock": clock, "timer_factory": timers}
    flights = BookingOrchestrator(_FlightApi(), **options)
    hotels = HotelBookingOrchestrator(_HotelApi(fail=True), **options)
    combined = CombinedBookingOrchestrator(flights, hotels, **options)
    combined.start(FLIGHT, "trace-1", HOTEL, CRITERIA)
    hotels.prebook()
    with pytest.raises(UpstreamApiError):
        combined.complete(PASSENGERS, GUESTS, PaymentInfo())

    fresh_flights = BookingOrchestrator(_FlightApi(), **options)
    fresh_hotels = HotelBookingOrchestrator(_HotelApi(), **options)
    restored = CombinedBookingOrchestrator(fresh_flights, fresh_hotels, **options).restore()

    assert restored.status == CombinedBookingStatus.CONFIRMING
    assert restored.flight_booking.currency == "USD"
    assert restored.hotel_booking is None
