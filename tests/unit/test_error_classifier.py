"""Error classification and recovery-action policy tests."""

from __future__ import annotations

import re

import pytest

from travelsphere.services.error_classifier import (
    CODE_INFERENCE_RULES,
    DEFAULT_ERROR_MESSAGE,
    ERROR_MESSAGES,
    ErrorClassifier,
    FallbackAction,
    GenericError,
    NotifyAction,
    PreserveAction,
    RestartAction,
    RetryAction,
    StructuredError,
    UnknownError,
    infer_error_code,
    normalize_error,
    normalize_flight_error_code,
    normalize_hotel_error_code,
    upstream_error,
)
from travelsphere.shared.exceptions import NoActiveSession, SessionExpired, TransportError, UpstreamApiError, ValidationError


@pytest.fixture
def classifier():
    return ErrorClassifier()


def _api_error(code: str, recoverable: bool = False) -> dict:
    return {"error": {"code": code, "message": "upstream said no"}, "recoverable": recoverable}


def test_invalid_trace_id_restarts_from_search(classifier):
    result = classifier.classify(_api_error("INVALID_TRACEID"))

    assert result.error_code == "INVALID_TRACEID"
    assert result.recovery_action == RestartAction()
    assert result.recovery_action.model_dump() == {"type": "restart", "from_step": "search"}


def test_booking_failure_preserves_session(classifier):
    result = classifier.classify(_api_error("BOOKING_FAILED", recoverable=True))

    assert result.recovery_action.model_dump() == {"type": "preserve", "allow_retry": True}


def test_generic_network_error_with_recoverable_retries(classifier):
    result = classifier.classify(Exception("Network error"), recoverable=True)

    assert result.error_code == "NETWORK_ERROR"
    assert result.recovery_action == RetryAction(delay_ms=2000)


def test_network_error_not_recoverable_notifies(classifier):
    result = classifier.classify(Exception("Network error"))

    assert isinstance(result.recovery_action, NotifyAction)
    assert result.recovery_action.message == ERROR_MESSAGES["NETWORK_ERROR"]


def test_server_error_falls_back_to_mock(classifier):
    result = classifier.classify(TransportError("flight", "HTTP 503: upstream down", code="503"))

    assert result.error_code == "503"
    assert result.recovery_action == FallbackAction()
    assert result.recovery_action.use_mock_data is True


@pytest.mark.parametrize("code", ["FLIGHT_SOLD_OUT", "SEAT_NOT_AVAILABLE", "ROOM_SOLD_OUT", "INVALID_HOTEL_CODE"])
def test_unavailable_codes_notify_with_code_message(classifier, code):
    result = classifier.classify(_api_error(code))

    assert result.recovery_action == NotifyAction(message=ERROR_MESSAGES[code])


def test_restart_takes_priority_over_recoverable_flag(classifier):
    result = classifier.classify(_api_error("INVALID_BOOKING_CODE", recoverable=True))

    assert isinstance(result.recovery_action, RestartAction)


def test_session_lifecycle_errors_restart(classifier):
    assert isinstance(classifier.classify(SessionExpired("hotel booking")).recovery_action, RestartAction)
    assert isinstance(classifier.classify(NoActiveSession()).recovery_action, RestartAction)


def test_validation_error_preserves_session(classifier):
    result = classifier.classify(ValidationError("No seat selections provided"))

    assert result.error_code == "VALIDATION_ERROR"
    assert isinstance(result.recovery_action, PreserveAction)


def test_upstream_api_error_uses_normalized_code(classifier):
    error = upstream_error("hotel", 3, "Room sold out", context="Pre-booking failed")

    result = classifier.classify(error)

    assert isinstance(error, UpstreamApiError)
    assert error.upstream_code == "3"
    assert result.error_code == "ROOM_SOLD_OUT"


def test_unknown_input_gets_default_message(classifier):
    result = classifier.classify(42)

    assert result.error_code == "UNKNOWN_ERROR"
    assert result.user_message == DEFAULT_ERROR_MESSAGE
    assert isinstance(result.recovery_action, NotifyAction)


def test_unrecognized_code_gets_default_message(classifier):
    result = classifier.classify(_api_error("SOMETHING_NEW"))

    assert result.user_message == DEFAULT_ERROR_MESSAGE


def test_user_message_never_leaks_transport_details(classifier):
    raw = TransportError("flight", "network error: connect to 10.0.0.12:8443 failed\nTraceback (most recent call last)")

    result = classifier.classify(raw)

    assert "10.0.0.12" not in result.user_message
    assert "Traceback" not in result.user_message
    assert result.user_message == ERROR_MESSAGES["NETWORK_ERROR"]


def test_known_messages_are_user_safe():
    ip = re.compile(r"\b\d{1,3}(?:\.\d{1,3}){3}\b")
    status = re.compile(r"\b[1-5]\d\d\b")
    for message in list(ERROR_MESSAGES.values()) + [DEFAULT_ERROR_MESSAGE]:
        assert not ip.search(message)
        assert not status.search(message)
        assert "Traceback" not in message
        assert 'File "' not in message
    assert len(ERROR_MESSAGES) >= 35


def test_normalize_error_shapes():
    assert isinstance(normalize_error(_api_error("X")), StructuredError)
    assert isinstance(normalize_error(ValueError("boom")), GenericError)
    assert isinstance(normalize_error("just a string"), UnknownError)
    assert isinstance(normalize_error({"unrelated": True}), UnknownError)


def test_normalize_error_reads_upstream_envelope():
    payload = {"Response": {"Error": {"ErrorCode": 2, "ErrorMessage": "Flight not available"}}}

    normalized = normalize_error(payload)

    assert normalized == StructuredError(code="2", message="Flight not available", recoverable=False)


@pytest.mark.parametrize(
    "message, code",
    [
        ("Booking session has expired", "SESSION_EXPIRED"),
        ("No active hotel booking session", "NO_ACTIVE_SESSION"),
        ("Invalid TraceId supplied", "INVALID_TRACEID"),
        ("Invalid booking code", "INVALID_BOOKING_CODE"),
        ("Flight is sold out", "FLIGHT_NOT_AVAILABLE"),
        ("Seat 12A not available", "SEAT_NOT_AVAILABLE"),
        ("Hotel unavailable for dates", "HOTEL_NOT_AVAILABLE"),
        ("Room sold out", "ROOM_SOLD_OUT"),
        ("Hotel booking rejected", "HOTEL_BOOKING_FAILED"),
        ("Could not cancel hotel", "HOTEL_CANCELLATION_FAILED"),
        ("PreBook step rejected", "PREBOOK_FAILED"),
        ("Invalid guest name", "INVALID_GUEST_DATA"),
        ("request timeout", "TIMEOUT"),
        ("Network error", "NETWORK_ERROR"),
        ("Booking could not be created", "BOOKING_FAILED"),
        ("something odd", "UNKNOWN_ERROR"),
    ],
)
def test_infer_error_code(message, code):
    assert infer_error_code(message) == code


def test_inference_rules_are_ordered_session_first():
    assert CODE_INFERENCE_RULES[0][1] == "SESSION_EXPIRED"
    # also matches the hotel booking rule further down
    assert infer_error_code("Hotel booking session has expired") == "SESSION_EXPIRED"


def test_upstream_code_normalization():
    assert normalize_flight_error_code(1) == "INVALID_TRACEID"
    assert normalize_flight_error_code("3") == "BOOKING_FAILED"
    assert normalize_flight_error_code("XYZ") == "XYZ"
    assert normalize_flight_error_code(None) == "UNKNOWN_ERROR"
    assert normalize_hotel_error_code(1) == "INVALID_BOOKING_CODE"
    assert normalize_hotel_error_code("12") == "INVALID_GUEST_COUNT"
    assert normalize_hotel_error_code("") == "UNKNOWN_ERROR"
