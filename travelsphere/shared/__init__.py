"""Shared cross-layer types and exceptions."""

from travelsphere.shared.exceptions import (
    BookingError,
    KeyMissingError,
    NoActiveSession,
    PersistenceError,
    SessionExpired,
    TransportError,
    UpstreamApiError,
    ValidationError,
)

__all__ = [
    "BookingError",
    "KeyMissingError",
    "NoActiveSession",
    "PersistenceError",
    "SessionExpired",
    "TransportError",
    "UpstreamApiError",
    "ValidationError",
]
