"""Booking exception taxonomy shared by services, adapters and the API layer."""

from __future__ import annotations


class BookingError(Exception):
    """Base class for every error raised by the booking layer."""

    code = "UNKNOWN_ERROR"
    recoverable = False


class NoActiveSession(BookingError):
    """No booking session exists for the orchestrator."""

    code = "NO_ACTIVE_SESSION"

    def __init__(self, scope: str = "booking"):
        self.scope = scope
        super().__init__(f"No active {scope} session")


class SessionExpired(BookingError):
    """The booking session passed its expiry time and was purged."""

    code = "SESSION_EXPIRED"

    def __init__(self, scope: str = "booking"):
        self.scope = scope
        label = scope[:1].upper() + scope[1:]
        super().__init__(f"{label} session has expired")


class ValidationError(BookingError, ValueError):
    """Caller input (seats, ancillaries, guests) failed validation."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: str = ""):
        self.field = field
        super().__init__(message)


class UpstreamApiError(BookingError):
    """A structured error returned by the flight or hotel API."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        context: str = "",
        recoverable: bool = False,
        upstream_code: str = "",
    ):
        self.code = str(code or "API_ERROR")
        self.upstream_code = str(upstream_code or code or "")
        self.message = message or "Unknown error"
        self.context = context
        self.recoverable = recoverable
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}{self.message} ({self.code})")


class TransportError(BookingError):
    """Network, timeout or HTTP status failure talking to an upstream API."""

    def __init__(self, tool: str, message: str, *, code: str = "NETWORK_ERROR", recoverable: bool = True):
        self.tool = tool
        self.code = code
        self.recoverable = recoverable
        super().__init__(f"[{tool}] {message}")


class PersistenceError(BookingError):
    """Reading or writing the persisted session failed."""

    code = "PERSISTENCE_ERROR"


class KeyMissingError(Exception):
    """Required key is missing."""

    def __init__(self, name: str):
        self.key_name = name
        super().__init__(f"Missing required API key: {name} (configure it in .env)")
