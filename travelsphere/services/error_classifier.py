"""Error classification and recovery-action policy.

Every error that reaches the caller boundary is normalized into one of three
shapes, mapped to an internal error code, and paired with a user-safe message
and a recovery action:

  restart   the correlation id / booking code is no longer valid
  notify    the offer is gone, or nothing better can be done
  preserve  booking, payment or input failure; keep the session and retry
  retry     transient network failure marked recoverable
  fallback  upstream server failure; switch to mock data

User messages come only from the lookup table below, so raw transport
details (hosts, status lines, tracebacks) never reach the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from travelsphere.shared.exceptions import BookingError, UpstreamApiError

ERROR_MESSAGES: dict[str, str] = {
    # correlation / session
    "INVALID_TRACEID": "Your session has expired. Please start a new search.",
    "TRACEID_EXPIRED": "Your session has expired. Please start a new search.",
    "TRACEID_NOT_FOUND": "Your session could not be found. Please start a new search.",
    "SESSION_EXPIRED": "Your booking session has expired. Please start a new search.",
    "NO_ACTIVE_SESSION": "There is no booking in progress. Please start a new search.",
    # flight availability
    "FLIGHT_NOT_AVAILABLE": "This flight is no longer available. Please select another flight.",
    "FLIGHT_SOLD_OUT": "This flight is sold out. Please select another flight.",
    "SEAT_NOT_AVAILABLE": "The selected seat is no longer available. Please choose another seat.",
    # flight booking
    "BOOKING_FAILED": "We couldn't complete your booking. Please try again.",
    "PAYMENT_FAILED": "Payment processing failed. Please check your payment details and try again.",
    "INVALID_PASSENGER_DATA": "Some passenger information is invalid. Please review and correct the details.",
    "VALIDATION_ERROR": "Some of the details you entered are invalid. Please review them and try again.",
    # hotel
    "HOTEL_NOT_AVAILABLE": "This hotel is no longer available. Please select another hotel.",
    "ROOM_SOLD_OUT": "The selected room is sold out. Please choose another room type.",
    "INVALID_BOOKING_CODE": "Your session has expired. Please start a new search.",
    "HOTEL_BOOKING_FAILED": "We couldn't complete your hotel booking. Please try again.",
    "HOTEL_CANCELLATION_FAILED": "Unable to cancel the booking. Please contact support.",
    "INVALID_GUEST_DATA": "Some guest information is invalid. Please review and correct the details.",
    "PREBOOK_FAILED": "Unable to validate hotel availability. Please try again.",
    "PRICE_CHANGED": "The hotel price has changed. Please review the new price before continuing.",
    "HOTEL_DETAILS_UNAVAILABLE": "Unable to retrieve hotel details. Please try again.",
    "INVALID_HOTEL_CODE": "The selected hotel is invalid. Please start a new search.",
    "INVALID_CITY_CODE": "The selected location is invalid. Please choose a different destination.",
    "INVALID_DATE_RANGE": "The selected dates are invalid. Please choose valid check-in and check-out dates.",
    "INVALID_GUEST_COUNT": "The guest count is invalid. Please verify the number of adults and children.",
    "BOOKING_REFERENCE_NOT_FOUND": "The booking reference could not be found. Please check your confirmation number.",
    # network
    "NETWORK_ERROR": "Unable to connect to the booking service. Please check your internet connection.",
    "TIMEOUT": "The request took too long. Please try again.",
    "ECONNABORTED": "Connection was interrupted. Please try again.",
    "ECONNRESET": "Connection was reset. Please try again.",
    "ETIMEDOUT": "Connection timed out. Please try again.",
    # http status
    "400": "Invalid request. Please check your information and try again.",
    "401": "Authentication failed. Please refresh the page and try again.",
    "403": "Access denied. Please contact support.",
    "404": "The requested resource was not found.",
    "408": "Request timeout. Please try again.",
    "429": "Too many requests. Please wait a moment and try again.",
    "500": "Server error. Please try again later.",
    "502": "Service temporarily unavailable. Please try again.",
    "503": "Service temporarily unavailable. Please try again.",
    "504": "Gateway timeout. Please try again.",
    # generic
    "UNKNOWN_ERROR": "An unexpected error occurred. Please try again.",
    "API_ERROR": "A service error occurred. Please try again.",
}

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred. Please try again or contact support."

RETRY_DELAY_MS = 2000

RESTART_CODES = frozenset({
    "INVALID_TRACEID",
    "TRACEID_EXPIRED",
    "TRACEID_NOT_FOUND",
    "INVALID_BOOKING_CODE",
    "SESSION_EXPIRED",
    "NO_ACTIVE_SESSION",
})
FLIGHT_UNAVAILABLE_CODES = frozenset({"FLIGHT_NOT_AVAILABLE", "FLIGHT_SOLD_OUT", "SEAT_NOT_AVAILABLE"})
HOTEL_UNAVAILABLE_CODES = frozenset({"HOTEL_NOT_AVAILABLE", "ROOM_SOLD_OUT", "INVALID_HOTEL_CODE"})
FLIGHT_BOOKING_CODES = frozenset({"BOOKING_FAILED", "PAYMENT_FAILED", "INVALID_PASSENGER_DATA", "VALIDATION_ERROR"})
HOTEL_BOOKING_CODES = frozenset({
    "HOTEL_BOOKING_FAILED",
    "HOTEL_CANCELLATION_FAILED",
    "INVALID_GUEST_DATA",
    "PREBOOK_FAILED",
    "HOTEL_DETAILS_UNAVAILABLE",
    "BOOKING_REFERENCE_NOT_FOUND",
})
NETWORK_CODES = frozenset({"NETWORK_ERROR", "TIMEOUT", "ECONNABORTED", "ECONNRESET", "ETIMEDOUT", "408"})
SERVER_CODES = frozenset({"500", "502", "503", "504"})

_FLIGHT_CODE_MAP = {
    "1": "INVALID_TRACEID",
    "2": "FLIGHT_NOT_AVAILABLE",
    "3": "BOOKING_FAILED",
    "4": "INVALID_PASSENGER_DATA",
    "5": "PAYMENT_FAILED",
}
_HOTEL_CODE_MAP = {
    "1": "INVALID_BOOKING_CODE",
    "2": "HOTEL_NOT_AVAILABLE",
    "3": "ROOM_SOLD_OUT",
    "4": "HOTEL_BOOKING_FAILED",
    "5": "INVALID_GUEST_DATA",
    "6": "PREBOOK_FAILED",
    "7": "HOTEL_CANCELLATION_FAILED",
    "8": "BOOKING_REFERENCE_NOT_FOUND",
    "9": "INVALID_HOTEL_CODE",
    "10": "INVALID_CITY_CODE",
    "11": "INVALID_DATE_RANGE",
    "12": "INVALID_GUEST_COUNT",
}


# ── Recovery actions ────────────────────────────────


class RetryAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["retry"] = "retry"
    delay_ms: int = RETRY_DELAY_MS


class FallbackAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["fallback"] = "fallback"
    use_mock_data: Literal[True] = True


class RestartAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["restart"] = "restart"
    from_step: Literal["search"] = "search"


class NotifyAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["notify"] = "notify"
    message: str


class PreserveAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["preserve"] = "preserve"
    allow_retry: Literal[True] = True


RecoveryAction = Annotated[
    Union[RetryAction, FallbackAction, RestartAction, NotifyAction, PreserveAction],
    Field(discriminator="type"),
]


class ErrorClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_message: str
    recovery_action: RecoveryAction
    error_code: str


# ── Normalized error shapes ─────────────────────────


@dataclass(frozen=True)
class StructuredError:
    code: str
    message: str
    recoverable: bool


@dataclass(frozen=True)
class GenericError:
    message: str
    recoverable: bool


@dataclass(frozen=True)
class UnknownError:
    value: Any


NormalizedError = Union[StructuredError, GenericError, UnknownError]


def _structured_from_mapping(payload: dict[str, Any]) -> Optional[StructuredError]:
    error = payload.get("error")
    if isinstance(error, dict) and "code" in error and "message" in error and "recoverable" in payload:
        return StructuredError(
            code=str(error["code"]),
            message=str(error["message"] or ""),
            recoverable=bool(payload["recoverable"]),
        )
    response = payload.get("Response")
    if isinstance(response, dict) and isinstance(response.get("Error"), dict):
        upstream = response["Error"]
        code = upstream.get("ErrorCode")
        if code not in (None, "", 0, "0"):
            return StructuredError(
                code=str(code),
                message=str(upstream.get("ErrorMessage") or ""),
                recoverable=bool(payload.get("recoverable", False)),
            )
    return None


def normalize_error(error: Any) -> NormalizedError:
    if isinstance(error, BookingError):
        return StructuredError(code=str(error.code), message=str(error), recoverable=bool(error.recoverable))
    if isinstance(error, dict):
        structured = _structured_from_mapping(error)
        if structured is not None:
            return structured
        return UnknownError(error)
    if isinstance(error, BaseException):
        return GenericError(message=str(error), recoverable=bool(getattr(error, "recoverable", False)))
    return UnknownError(error)


# ── Code inference from free-form messages ──────────


def _has(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(n in text for n in needles)


def _both(first: Callable[[str], bool], second: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: first(text) and second(text)


# Evaluated in order; first match wins.
CODE_INFERENCE_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (_both(_has("session"), _has("expired")), "SESSION_EXPIRED"),
    (_has("no active"), "NO_ACTIVE_SESSION"),
    (_has("traceid", "trace id"), "INVALID_TRACEID"),
    (_has("booking code", "bookingcode"), "INVALID_BOOKING_CODE"),
    (_both(_has("flight"), _has("not available", "sold out")), "FLIGHT_NOT_AVAILABLE"),
    (_both(_has("seat"), _has("not available")), "SEAT_NOT_AVAILABLE"),
    (_both(_has("hotel"), _has("not available", "unavailable")), "HOTEL_NOT_AVAILABLE"),
    (_both(_has("room"), _has("sold out", "not available")), "ROOM_SOLD_OUT"),
    (_both(_has("hotel"), _has("booking")), "HOTEL_BOOKING_FAILED"),
    (_both(_has("hotel"), _has("cancel")), "HOTEL_CANCELLATION_FAILED"),
    (_has("prebook", "pre-book"), "PREBOOK_FAILED"),
    (_both(_has("guest"), _has("invalid")), "INVALID_GUEST_DATA"),
    (_has("timeout"), "TIMEOUT"),
    (_has("network"), "NETWORK_ERROR"),
    (lambda text: "booking" in text and "hotel" not in text, "BOOKING_FAILED"),
)


def infer_error_code(message: str) -> str:
    text = (message or "").lower()
    for predicate, code in CODE_INFERENCE_RULES:
        if predicate(text):
            return code
    return "UNKNOWN_ERROR"


# ── Upstream code normalization ─────────────────────


def normalize_flight_error_code(code: Any) -> str:
    raw = str(code if code is not None else "").strip()
    return _FLIGHT_CODE_MAP.get(raw, raw or "UNKNOWN_ERROR")


def normalize_hotel_error_code(code: Any) -> str:
    raw = str(code if code is not None else "").strip()
    if not raw:
        return "UNKNOWN_ERROR"
    return _HOTEL_CODE_MAP.get(raw, raw)


def is_recoverable_code(code: str) -> bool:
    return code in NETWORK_CODES or code in SERVER_CODES or code in FLIGHT_BOOKING_CODES or code in HOTEL_BOOKING_CODES


def upstream_error(scope: str, code: Any, message: Any, *, context: str = "") -> UpstreamApiError:
    """Build the UpstreamApiError raised for a structured error found in an upstream response."""
    normalize = normalize_hotel_error_code if scope == "hotel" else normalize_flight_error_code
    normalized = normalize(code)
    return UpstreamApiError(
        normalized,
        str(message or "Unknown error"),
        context=context,
        recoverable=is_recoverable_code(normalized),
        upstream_code=str(code if code is not None else ""),
    )


# ── Classifier ──────────────────────────────────────


def user_message_for(code: str) -> str:
    return ERROR_MESSAGES.get(code, DEFAULT_ERROR_MESSAGE)


def determine_recovery_action(code: str, recoverable: bool):
    if code in RESTART_CODES:
        return RestartAction()
    if code in FLIGHT_UNAVAILABLE_CODES or code in HOTEL_UNAVAILABLE_CODES:
        return NotifyAction(message=user_message_for(code))
    if code in FLIGHT_BOOKING_CODES or code in HOTEL_BOOKING_CODES:
        return PreserveAction()
    if code in NETWORK_CODES and recoverable:
        return RetryAction()
    if code in SERVER_CODES:
        return FallbackAction()
    return NotifyAction(message=user_message_for(code))


class ErrorClassifier:
    def classify(self, error: Any, *, recoverable: Optional[bool] = None) -> ErrorClassification:
        """Classify any raised or returned error.

        ``recoverable`` overrides the flag carried by the error itself.
        """
        normalized = normalize_error(error)
        if isinstance(normalized, StructuredError):
            code = normalized.code
            flag = normalized.recoverable
        elif isinstance(normalized, GenericError):
            code = infer_error_code(normalized.message)
            flag = normalized.recoverable
        else:
            return ErrorClassification(
                user_message=DEFAULT_ERROR_MESSAGE,
                recovery_action=NotifyAction(message=DEFAULT_ERROR_MESSAGE),
                error_code="UNKNOWN_ERROR",
            )

        if recoverable is not None:
            flag = recoverable
        return ErrorClassification(
            user_message=user_message_for(code),
            recovery_action=determine_recovery_action(code, flag),
            error_code=code,
        )


__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "ERROR_MESSAGES",
    "ErrorClassification",
    "ErrorClassifier",
    "FallbackAction",
    "GenericError",
    "NotifyAction",
    "PreserveAction",
    "RecoveryAction",
    "RestartAction",
    "RetryAction",
    "StructuredError",
    "UnknownError",
    "determine_recovery_action",
    "infer_error_code",
    "is_recoverable_code",
    "normalize_error",
    "normalize_flight_error_code",
    "normalize_hotel_error_code",
    "upstream_error",
]
