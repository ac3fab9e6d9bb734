"""End-to-end workflow through the default application wiring."""

from __future__ import annotations

import datetime as dt
import io

import pytest

from travelsphere.application.context import make_app_context
from travelsphere.config.settings import load_settings
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
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.services.error_classifier import ErrorClassifier
from travelsphere.shared.exceptions import NoActiveSession

OFFER = FlightOffer(result_index="OB3", price=3900.0, origin="HYD", destination="MAA")
HOTEL = HotelOffer(booking_code="HB-3", price=5100.0, hotel_name="Marina Bay Lodge")
CRITERIA = HotelSearchCriteria(check_in=dt.date(2026, 6, 1), check_out=dt.date(2026, 6, 2))


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def make_context(store):
    contexts = []

    def _make():
        ctx = make_app_context(load_settings(), store=store, events=StructuredLogger(output=io.StringIO()))
        contexts.append(ctx)
        return ctx

    yield _make
    for ctx in contexts:
        ctx.close()


def test_session_ttl_follows_settings(monkeypatch, make_context):
    monkeypatch.setenv("BOOKING_SESSION_TTL_MINUTES", "10")

    session = make_context().flights.start(OFFER, "trace-1")

    assert session.expires_at - session.created_at == dt.timedelta(minutes=10)


def test_sessions_survive_process_restart(make_context):
    first = make_context()
    combined = first.combined.start(OFFER, "trace-1", HOTEL, CRITERIA)
    first.hotels.prebook()
    first.close()

    second = make_context()
    restored = second.restore_sessions()

    assert restored == {
        "flight": combined.flight_session.session_id,
        "hotel": combined.hotel_session.session_id,
        "combined": combined.session_id,
    }
    assert second.hotels.get_current().prebook_result is not None
    assert second.combined.calculate_total_cost() == 3900.0 + second.hotels.get_current().prebook_result.current_price


def test_restore_with_empty_store(make_context):
    assert make_context().restore_sessions() == {"flight": None, "hotel": None, "combined": None}


def test_completed_booking_is_not_restored(make_context):
    first = make_context()
    first.flights.start(OFFER, "trace-1")
    first.flights.complete(
        [PassengerDetails(first_name="Arun", last_name="Das", date_of_birth=dt.date(1979, 3, 3), nationality="IN")],
        PaymentInfo(),
    )

    second = make_context()

    assert second.restore_sessions()["flight"] is None
    with pytest.raises(NoActiveSession):
        second.flights.reprice()


def test_error_from_workflow_classifies_for_ui(make_context):
    ctx = make_context()
    ctx.hotels.start(HOTEL, CRITERIA)

    try:
        ctx.hotels.complete(
            [GuestDetails(customer_names=[CustomerName(title="Mr", first_name="Arun", last_name="Das")])],
            PaymentInfo(),
        )
    except Exception as exc:
        classification = ErrorClassifier().classify(exc)
    else:
        pytest.fail("completing without prebook should fail")

    assert classification.error_code == "VALIDATION_ERROR"
    assert classification.recovery_action.type == "preserve"
    assert ctx.hotels.get_current() is not None
