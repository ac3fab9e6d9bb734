"""Pydantic domain models."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

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


# ── Offers ──────────────────────────────────────────


class FlightOffer(BaseModel):
    result_index: str
    price: float
    currency: str = "INR"
    airline: str = ""
    flight_number: str = ""
    origin: str = ""
    destination: str = ""
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    segment_count: int = 1


class HotelOffer(BaseModel):
    booking_code: str
    price: float
    currency: str = "INR"
    hotel_code: str = ""
    hotel_name: str = ""
    star_rating: int = 0
    address: str = ""
    city_name: str = ""
    country_name: str = ""
    room_type: str = ""
    meal_type: str = ""
    refundable: bool = False


class PaxRoom(BaseModel):
    adults: int = 1
    children: int = 0
    children_ages: list[int] = Field(default_factory=list)


class HotelSearchCriteria(BaseModel):
    check_in: dt.date
    check_out: dt.date
    guest_nationality: str = "IN"
    hotel_codes: Optional[str] = None
    city_code: Optional[str] = None
    pax_rooms: list[PaxRoom] = Field(default_factory=lambda: [PaxRoom()])


# ── Selections ──────────────────────────────────────


class SeatSelection(BaseModel):
    passenger_index: int
    segment_index: int
    seat_id: str


class AncillarySelection(BaseModel):
    passenger_index: int
    kind: AncillaryKind
    code: str
    segment_index: Optional[int] = None


# ── Seat map ────────────────────────────────────────


class Seat(BaseModel):
    seat_id: str
    available: bool
    position: SeatPosition = SeatPosition.MIDDLE
    cabin: CabinClass = CabinClass.ECONOMY
    price: float = 0.0
    currency: str = "INR"
    features: list[str] = Field(default_factory=list)


class SeatRow(BaseModel):
    row_number: int
    seats: list[Seat] = Field(default_factory=list)


class SegmentSeatMap(BaseModel):
    segment_index: int
    rows: list[SeatRow] = Field(default_factory=list)
    aircraft: str = "Unknown"


class SeatMap(BaseModel):
    segments: list[SegmentSeatMap] = Field(default_factory=list)

    def find_seat(self, segment_index: int, seat_id: str) -> Optional[Seat]:
        for segment in self.segments:
            if segment.segment_index != segment_index:
                continue
            for row in segment.rows:
                for seat in row.seats:
                    if seat.seat_id == seat_id:
                        return seat
        return None


class SeatReservationResult(BaseModel):
    success: bool
    reserved_seats: list[SeatSelection] = Field(default_factory=list)
    total_cost: float = 0.0
    price_changed: bool = False


# ── Ancillaries ─────────────────────────────────────


class BaggageOption(BaseModel):
    code: str
    description: str = ""
    weight: float = 0.0
    unit: WeightUnit = WeightUnit.KG
    price: float = 0.0
    currency: str = "INR"
    origin: str = ""
    destination: str = ""
    way_type: int = 0


class MealOption(BaseModel):
    code: str
    name: str = ""
    description: str = ""
    dietary_info: list[str] = Field(default_factory=list)
    price: float = 0.0
    currency: str = "INR"
    origin: str = ""
    destination: str = ""
    quantity: int = 0
    way_type: int = 0


class AncillaryOptions(BaseModel):
    baggage: list[BaggageOption] = Field(default_factory=list)
    meals: list[MealOption] = Field(default_factory=list)


class AncillaryResult(BaseModel):
    success: bool
    added_services: list[AncillarySelection] = Field(default_factory=list)
    total_cost: float = 0.0


# ── Fare rules ──────────────────────────────────────


class BaggageAllowance(BaseModel):
    checked_bags: int = 1
    checked_bag_weight: int = 15
    carry_on_bags: int = 1
    carry_on_weight: int = 7
    unit: WeightUnit = WeightUnit.KG


class FareRules(BaseModel):
    cancellation_policy: str = "No cancellation policy available"
    change_fee: float = 0.0
    refundable: bool = False
    baggage_allowance: BaggageAllowance = Field(default_factory=BaggageAllowance)
    restrictions: list[str] = Field(default_factory=list)
    currency: str = "INR"


# ── Price validation ────────────────────────────────


class RepricingResult(BaseModel):
    original_price: float
    current_price: float
    price_changed: bool
    price_increase: float
    available: bool
    currency: str = "INR"
    time_changed: bool = False


class PreBookResult(BaseModel):
    booking_code: str
    original_price: float
    current_price: float
    price_changed: bool
    price_increase: float
    available: bool
    currency: str = "INR"
    cancellation_policy_changed: bool = False


# ── Travellers & payment ────────────────────────────


class PassengerDetails(BaseModel):
    type: PassengerType = PassengerType.ADULT
    title: Title = Title.MR
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    date_of_birth: dt.date
    nationality: str = Field(min_length=2)
    passport_number: Optional[str] = None
    passport_expiry: Optional[dt.date] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class CustomerName(BaseModel):
    title: str
    first_name: str
    last_name: str
    type: str = "Adult"


class GuestDetails(BaseModel):
    room_index: int = 0
    customer_names: list[CustomerName] = Field(default_factory=list)


class PaymentInfo(BaseModel):
    method: PaymentMethod = PaymentMethod.CREDIT_CARD
    email_id: Optional[str] = None
    phone_number: Optional[str] = None


# ── Sessions ────────────────────────────────────────


class TimedSession(BaseModel):
    session_id: str
    created_at: AwareDatetime
    expires_at: AwareDatetime

    def is_expired(self, now: dt.datetime) -> bool:
        return now > self.expires_at


class BookingSession(TimedSession):
    correlation_id: str
    offer: FlightOffer
    repriced_offer: Optional[FlightOffer] = None
    seat_selections: Optional[list[SeatSelection]] = None
    ancillary_selections: Optional[list[AncillarySelection]] = None
    fare_rules: Optional[FareRules] = None
    status: BookingStatus = BookingStatus.REPRICING

    @property
    def offer_to_book(self) -> FlightOffer:
        return self.repriced_offer or self.offer


class HotelBookingSession(TimedSession):
    offer: HotelOffer
    search_criteria: HotelSearchCriteria
    booking_code: str
    prebook_result: Optional[PreBookResult] = None
    status: HotelBookingStatus = HotelBookingStatus.DETAILS


# ── Confirmations ───────────────────────────────────


class BookingConfirmation(BaseModel):
    model_config = ConfigDict(frozen=True)

    booking_reference: str
    pnr: str
    ticket_numbers: list[str] = Field(default_factory=list)
    offer: FlightOffer
    passengers: list[PassengerDetails] = Field(default_factory=list)
    total_price: float
    currency: str
    booked_at: dt.datetime
    ancillary_selections: Optional[list[AncillarySelection]] = None


class HotelBookingConfirmation(BaseModel):
    model_config = ConfigDict(frozen=True)

    confirmation_number: str
    booking_reference_id: str
    offer: HotelOffer
    guests: list[GuestDetails] = Field(default_factory=list)
    total_fare: float
    currency: str
    check_in: dt.date
    check_out: dt.date
    booked_at: dt.datetime
    status: str = "Confirmed"
    voucher_url: Optional[str] = None


class CombinedBookingSession(TimedSession):
    flight_session: Optional[BookingSession] = None
    hotel_session: Optional[HotelBookingSession] = None
    # legs already booked upstream; skipped when completion is retried
    flight_booking: Optional[BookingConfirmation] = None
    hotel_booking: Optional[HotelBookingConfirmation] = None
    status: CombinedBookingStatus = CombinedBookingStatus.FLIGHT_REPRICING


class CombinedBookingConfirmation(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    flight_booking: Optional[BookingConfirmation] = None
    hotel_booking: Optional[HotelBookingConfirmation] = None
    total_cost: float = 0.0
    currency: str = "USD"
    booked_at: dt.datetime


# ── Booking management ──────────────────────────────


class BookingDetails(BaseModel):
    confirmation_number: str
    booking_reference_id: str = ""
    booking_id: int = 0
    status: str
    hotel_name: str = ""
    check_in: Optional[dt.date] = None
    check_out: Optional[dt.date] = None
    total_fare: float = 0.0
    currency: str = "USD"
    guests: list[GuestDetails] = Field(default_factory=list)
    booked_on: Optional[dt.datetime] = None
    voucher_url: Optional[str] = None


class BookingSummary(BaseModel):
    confirmation_number: str
    booking_reference_id: str = ""
    hotel_name: str = ""
    check_in: Optional[dt.date] = None
    check_out: Optional[dt.date] = None
    status: str
    total_fare: float = 0.0
    currency: str = "USD"


class BookingList(BaseModel):
    bookings: list[BookingSummary] = Field(default_factory=list)
    total_count: int = 0


class CancellationResult(BaseModel):
    success: bool
    confirmation_number: str
    cancellation_status: str = ""
    refund_amount: float = 0.0
    cancellation_charge: float = 0.0
    message: str = ""
