"""Persistence package exports."""

from travelsphere.persistence.models import ItineraryRecord, ItinerarySummaryItem
from travelsphere.persistence.repository import (
    ItineraryRepository,
    NoopItineraryRepository,
    get_itinerary_repository,
)
from travelsphere.persistence.session_repository import (
    COMBINED_SESSION_KEY,
    FLIGHT_SESSION_KEY,
    HOTEL_SESSION_KEY,
    SessionRepository,
)
from travelsphere.persistence.sqlite_repository import SQLiteItineraryRepository

__all__ = [
    "COMBINED_SESSION_KEY",
    "FLIGHT_SESSION_KEY",
    "HOTEL_SESSION_KEY",
    "ItineraryRecord",
    "ItineraryRepository",
    "ItinerarySummaryItem",
    "NoopItineraryRepository",
    "SQLiteItineraryRepository",
    "SessionRepository",
    "get_itinerary_repository",
]
