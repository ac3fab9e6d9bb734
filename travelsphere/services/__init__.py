"""Service layer public exports."""

from travelsphere.services.combined_booking import CombinedBookingOrchestrator
from travelsphere.services.error_classifier import ErrorClassification, ErrorClassifier
from travelsphere.services.flight_booking import BookingOrchestrator
from travelsphere.services.hotel_booking import HotelBookingOrchestrator
from travelsphere.services.itinerary import ItineraryService

__all__ = [
    "BookingOrchestrator",
    "CombinedBookingOrchestrator",
    "ErrorClassification",
    "ErrorClassifier",
    "HotelBookingOrchestrator",
    "ItineraryService",
]
