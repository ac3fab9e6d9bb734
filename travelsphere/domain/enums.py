"""Domain enums."""

from enum import Enum


class BookingStatus(str, Enum):
    REPRICING = "repricing"
    SEATS = "seats"
    ANCILLARY = "ancillary"
    PASSENGER = "passenger"
    PAYMENT = "payment"
    CONFIRMED = "confirmed"


class HotelBookingStatus(str, Enum):
    DETAILS = "details"
    PREBOOK = "prebook"
    GUEST_DETAILS = "guest_details"
    PAYMENT = "payment"
    CONFIRMED = "confirmed"


class CombinedBookingStatus(str, Enum):
    FLIGHT_SELECTION = "flight_selection"
    HOTEL_SELECTION = "hotel_selection"
    FLIGHT_REPRICING = "flight_repricing"
    HOTEL_PREBOOK = "hotel_prebook"
    PASSENGER_DETAILS = "passenger_details"
    GUEST_DETAILS = "guest_details"
    PAYMENT = "payment"
    CONFIRMING = "confirming"
    COMPLETED = "completed"


class AncillaryKind(str, Enum):
    BAGGAGE = "baggage"
    MEAL = "meal"


class SeatPosition(str, Enum):
    WINDOW = "window"
    MIDDLE = "middle"
    AISLE = "aisle"


class CabinClass(str, Enum):
    ECONOMY = "economy"
    PREMIUM_ECONOMY = "premium_economy"
    BUSINESS = "business"
    FIRST = "first"


class PassengerType(str, Enum):
    ADULT = "Adult"
    CHILD = "Child"
    INFANT = "Infant"


class Title(str, Enum):
    MR = "Mr"
    MRS = "Mrs"
    MS = "Ms"
    MISS = "Miss"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    NET_BANKING = "net_banking"


class WeightUnit(str, Enum):
    KG = "kg"
    LBS = "lbs"
