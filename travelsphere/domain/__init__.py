"""Domain package exports."""

from travelsphere.domain.enums import (
    AncillaryKind,
    BookingStatus,
    CabinClass,
    CombinedBookingStatus,
    HotelBookingStatus,
    PassengerType,
    PaymentMethod,
    SeatPosition,
    Title,
    WeightUnit,
)
from travelsphere.domain.models import (
    AncillaryOptions,
    AncillaryResult,
    AncillarySelection,
    BookingConfirmation,
    BookingSession,
    CombinedBookingConfirmation,
    CombinedBookingSession,
    FareRules,
    FlightOffer,
    GuestDetails,
    HotelBookingConfirmation,
    HotelBookingSession,
    HotelOffer,
    HotelSearchCriteria,
    PassengerDetails,
    PaymentInfo,
    PreBookResult,
    RepricingResult,
    SeatMap,
    SeatReservationResult,
    SeatSelection,
)

__all__ = [
    "AncillaryKind",
    "AncillaryOptions",
    "AncillaryResult",
    "AncillarySelection",
    "BookingConfirmation",
    "BookingSession",
    "BookingStatus",
    "CabinClass",
    "CombinedBookingConfirmation",
    "CombinedBookingSession",
    "CombinedBookingStatus",
    "FareRules",
    "FlightOffer",
    "GuestDetails",
    "HotelBookingConfirmation",
    "HotelBookingSession",
    "HotelBookingStatus",
    "HotelOffer",
    "HotelSearchCriteria",
    "PassengerDetails",
    "PassengerType",
    "PaymentInfo",
    "PaymentMethod",
    "PreBookResult",
    "RepricingResult",
    "SeatMap",
    "SeatPosition",
    "SeatReservationResult",
    "SeatSelection",
    "Title",
    "WeightUnit",
]
