"""API request/response models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from travelsphere.domain.enums import CombinedBookingStatus
from travelsphere.domain.models import (
    AncillarySelection,
    FlightOffer,
    GuestDetails,
    HotelOffer,
    HotelSearchCriteria,
    PassengerDetails,
    PaymentInfo,
    SeatMap,
    SeatSelection,
)

_CORRELATION_ID_PATTERN = r"^[A-Za-z0-9_.:-]+$"


class StartFlightBookingRequest(BaseModel):
    offer: FlightOffer
    correlation_id: str = Field(
        min_length=1,
        max_length=128,
        pattern=_CORRELATION_ID_PATTERN,
        description="Trace id from the flight search, echoed on every upstream call",
    )


class SeatReservationRequest(BaseModel):
    selections: list[SeatSelection] = Field(default_factory=list)
    seat_map: Optional[SeatMap] = Field(default=None, description="Seat map used to price the selections")


class AncillaryRequest(BaseModel):
    selections: list[AncillarySelection] = Field(default_factory=list)


class CompleteFlightBookingRequest(BaseModel):
    passengers: list[PassengerDetails] = Field(default_factory=list)
    payment: PaymentInfo = Field(default_factory=PaymentInfo)


class StartHotelBookingRequest(BaseModel):
    offer: HotelOffer
    search_criteria: HotelSearchCriteria


class PreBookRequest(BaseModel):
    payment_mode: str = Field(default="Limit", min_length=1, max_length=32)


class CompleteHotelBookingRequest(BaseModel):
    guests: list[GuestDetails] = Field(default_factory=list)
    payment: PaymentInfo = Field(default_factory=PaymentInfo)


class StartCombinedBookingRequest(BaseModel):
    flight: Optional[FlightOffer] = None
    correlation_id: Optional[str] = Field(default=None, max_length=128, pattern=_CORRELATION_ID_PATTERN)
    hotel: Optional[HotelOffer] = None
    search_criteria: Optional[HotelSearchCriteria] = None


class CombinedStatusRequest(BaseModel):
    status: CombinedBookingStatus


class CompleteCombinedBookingRequest(BaseModel):
    passengers: Optional[list[PassengerDetails]] = None
    guests: Optional[list[GuestDetails]] = None
    payment: PaymentInfo = Field(default_factory=PaymentInfo)


class TotalCostResponse(BaseModel):
    total_cost: float = 0.0


class CancelResponse(BaseModel):
    status: str = "cancelled"


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    recovery_action: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = ""


class ProvidersResponse(BaseModel):
    flight_provider: str = Field(default="mock")
    hotel_provider: str = Field(default="mock")
    session_backend: str = Field(default="memory")
    itinerary_backend: str = Field(default="noop")
    strict_external_data: bool = Field(default=False)
    env_source: str = Field(default=".env")
    fallback: dict[str, Any] = Field(default_factory=dict)
