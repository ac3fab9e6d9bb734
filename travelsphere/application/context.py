"""Application context for dependency injection."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Optional

from travelsphere.adapters.flight import MockFlightApi
from travelsphere.adapters.provider_factory import UpstreamClients, build_upstream_clients
from travelsphere.config.settings import BookingSettings, load_settings
from travelsphere.infrastructure.cache import MemoryCache
from travelsphere.infrastructure.kv_store import get_kv_store
from travelsphere.infrastructure.logging import StructuredLogger, get_logger
from travelsphere.persistence.repository import get_itinerary_repository
from travelsphere.services.booking_management import BookingManagementService
from travelsphere.services.combined_booking import CombinedBookingOrchestrator
from travelsphere.services.error_classifier import ErrorClassifier
from travelsphere.services.fare_rules import FareRulesCoordinator
from travelsphere.services.flight_booking import BookingOrchestrator
from travelsphere.services.hotel_booking import HotelBookingOrchestrator
from travelsphere.services.itinerary import ItineraryService

_logger = logging.getLogger("travelsphere.app")

FARE_RULES_CACHE_TTL = 1800.0


@dataclass
class AppContext:
    settings: BookingSettings
    upstream: UpstreamClients
    store: Any
    itinerary: ItineraryService
    events: StructuredLogger
    classifier: ErrorClassifier
    flights: BookingOrchestrator
    hotels: HotelBookingOrchestrator
    combined: CombinedBookingOrchestrator
    bookings: BookingManagementService

    def restore_sessions(self) -> dict[str, Optional[str]]:
        """Reload persisted sessions, e.g. after a process restart."""
        combined = self.combined.restore()
        flight = self.flights.get_current() or self.flights.restore()
        hotel = self.hotels.get_current() or self.hotels.restore()
        restored = {
            "flight": flight.session_id if flight else None,
            "hotel": hotel.session_id if hotel else None,
            "combined": combined.session_id if combined else None,
        }
        _logger.info("Restored sessions: %s", restored)
        return restored

    def close(self) -> None:
        self.combined.close()
        self.flights.close()
        self.hotels.close()
        self.upstream.close()


def make_app_context(
    settings: Optional[BookingSettings] = None,
    *,
    upstream: Optional[UpstreamClients] = None,
    store: Any = None,
    itinerary: Optional[ItineraryService] = None,
    events: Optional[StructuredLogger] = None,
) -> AppContext:
    settings = settings or load_settings()
    upstream = upstream or build_upstream_clients(settings)
    store = store if store is not None else get_kv_store()
    itinerary = itinerary or ItineraryService(get_itinerary_repository())
    events = events or get_logger()
    ttl = dt.timedelta(minutes=settings.session_ttl_minutes)

    fare_rules = FareRulesCoordinator(
        upstream.flight,
        cache=MemoryCache(default_ttl=FARE_RULES_CACHE_TTL, max_size=200),
        fallback=upstream.fallback,
        mock_api=MockFlightApi(),
    )
    flights = BookingOrchestrator(
        upstream.flight,
        store=store,
        itinerary=itinerary,
        events=events,
        fare_rules=fare_rules,
        ttl=ttl,
    )
    hotels = HotelBookingOrchestrator(upstream.hotel, store=store, itinerary=itinerary, events=events, ttl=ttl)
    combined = CombinedBookingOrchestrator(flights, hotels, store=store, events=events, ttl=ttl)

    return AppContext(
        settings=settings,
        upstream=upstream,
        store=store,
        itinerary=itinerary,
        events=events,
        classifier=ErrorClassifier(),
        flights=flights,
        hotels=hotels,
        combined=combined,
        bookings=BookingManagementService(upstream.hotel, events=events),
    )


__all__ = ["AppContext", "make_app_context"]
