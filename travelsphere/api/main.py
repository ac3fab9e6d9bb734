"""FastAPI application exposing the flight, hotel and combined booking workflow."""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from travelsphere import __version__
from travelsphere.adapters.provider_factory import describe_active_providers
from travelsphere.api.schemas import (
    AncillaryRequest,
    CancelResponse,
    CombinedStatusRequest,
    CompleteCombinedBookingRequest,
    CompleteFlightBookingRequest,
    CompleteHotelBookingRequest,
    ErrorResponse,
    HealthResponse,
    PreBookRequest,
    ProvidersResponse,
    SeatReservationRequest,
    StartCombinedBookingRequest,
    StartFlightBookingRequest,
    StartHotelBookingRequest,
    TotalCostResponse,
)
from travelsphere.application.context import AppContext, make_app_context
from travelsphere.config.settings import load_settings, resolve_provider_snapshot
from travelsphere.domain.models import (
    AncillaryOptions,
    AncillaryResult,
    BookingConfirmation,
    BookingDetails,
    BookingList,
    BookingSession,
    CancellationResult,
    CombinedBookingConfirmation,
    CombinedBookingSession,
    FareRules,
    HotelBookingConfirmation,
    HotelBookingSession,
    PreBookResult,
    RepricingResult,
    SeatMap,
    SeatReservationResult,
)
from travelsphere.persistence.models import ItinerarySummaryItem
from travelsphere.security.key_manager import get_key_manager
from travelsphere.services.error_classifier import ErrorClassifier
from travelsphere.shared.exceptions import (
    BookingError,
    NoActiveSession,
    SessionExpired,
    TransportError,
    UpstreamApiError,
    ValidationError,
)

_api_logger = logging.getLogger("travelsphere.api")

load_dotenv()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


def _status_for(exc: Exception) -> int:
    if isinstance(exc, NoActiveSession):
        return 404
    if isinstance(exc, SessionExpired):
        return 410
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, UpstreamApiError):
        return 502
    if isinstance(exc, TransportError):
        return 503
    return 500


def _safe_log_exception(context: str, exc: Exception) -> None:
    safe_msg = get_key_manager().scrub_text(str(exc))
    _api_logger.error("%s: %s", context, safe_msg)


def _error_response(classifier: ErrorClassifier, exc: Exception) -> JSONResponse:
    classification = classifier.classify(exc)
    body = ErrorResponse(
        error_code=classification.error_code,
        message=classification.user_message,
        recovery_action=classification.recovery_action.model_dump(),
    )
    return JSONResponse(status_code=_status_for(exc), content=body.model_dump())


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    settings = context.settings if context is not None else load_settings()
    app = FastAPI(
        title="travelsphere",
        version=__version__,
        docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
        redoc_url=None,
    )
    app.state.context = context

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    def ctx() -> AppContext:
        if app.state.context is None:
            app.state.context = make_app_context(settings)
            app.state.context.restore_sessions()
        return app.state.context

    @app.exception_handler(BookingError)
    async def _booking_error(request: Request, exc: BookingError) -> JSONResponse:
        if not isinstance(exc, (NoActiveSession, SessionExpired, ValidationError)):
            _safe_log_exception(f"{request.method} {request.url.path}", exc)
        return _error_response(ctx().classifier, exc)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        _safe_log_exception(f"unhandled error on {request.url.path}", exc)
        return _error_response(ctx().classifier, exc)

    # ── meta ────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="ok", version=__version__)

    @app.get("/providers", response_model=ProvidersResponse)
    def providers():
        context = ctx()
        snapshot = resolve_provider_snapshot()
        active = describe_active_providers(context.upstream)
        return ProvidersResponse(
            flight_provider=active["flight"],
            hotel_provider=active["hotel"],
            session_backend=getattr(context.store, "backend", snapshot.session_backend),
            itinerary_backend=context.itinerary.backend,
            strict_external_data=snapshot.strict_external_data,
            env_source=snapshot.env_source,
            fallback=context.upstream.fallback.status(),
        )

    # ── flight ──────────────────────────────────────

    @app.post("/flight/session", response_model=BookingSession)
    def start_flight(req: StartFlightBookingRequest):
        return ctx().flights.start(req.offer, req.correlation_id)

    @app.get("/flight/session", response_model=Optional[BookingSession])
    def current_flight():
        return ctx().flights.get_current()

    @app.delete("/flight/session", response_model=CancelResponse)
    def cancel_flight():
        ctx().flights.cancel()
        return CancelResponse()

    @app.post("/flight/session/reprice", response_model=RepricingResult)
    def reprice_flight():
        return ctx().flights.reprice()

    @app.get("/flight/session/seat-map", response_model=SeatMap)
    def seat_map():
        return ctx().flights.get_seat_map()

    @app.post("/flight/session/seats", response_model=SeatReservationResult)
    def reserve_seats(req: SeatReservationRequest):
        return ctx().flights.reserve_seats(req.selections, seat_map=req.seat_map)

    @app.get("/flight/session/ancillaries", response_model=AncillaryOptions)
    def list_ancillaries():
        return ctx().flights.list_ancillaries()

    @app.post("/flight/session/ancillaries", response_model=AncillaryResult)
    def add_ancillaries(req: AncillaryRequest):
        return ctx().flights.add_ancillaries(req.selections)

    @app.get("/flight/session/fare-rules", response_model=FareRules)
    def fare_rules():
        return ctx().flights.load_fare_rules()

    @app.post("/flight/session/complete", response_model=BookingConfirmation)
    def complete_flight(req: CompleteFlightBookingRequest):
        return ctx().flights.complete(req.passengers, req.payment)

    # ── hotel ───────────────────────────────────────

    @app.post("/hotel/session", response_model=HotelBookingSession)
    def start_hotel(req: StartHotelBookingRequest):
        return ctx().hotels.start(req.offer, req.search_criteria)

    @app.get("/hotel/session", response_model=Optional[HotelBookingSession])
    def current_hotel():
        return ctx().hotels.get_current()

    @app.delete("/hotel/session", response_model=CancelResponse)
    def cancel_hotel():
        ctx().hotels.cancel()
        return CancelResponse()

    @app.post("/hotel/session/prebook", response_model=PreBookResult)
    def prebook_hotel(req: PreBookRequest):
        return ctx().hotels.prebook(req.payment_mode)

    @app.post("/hotel/session/complete", response_model=HotelBookingConfirmation)
    def complete_hotel(req: CompleteHotelBookingRequest):
        return ctx().hotels.complete(req.guests, req.payment)

    # ── hotel booking management ────────────────────

    @app.get("/hotel/bookings", response_model=BookingList)
    def list_hotel_bookings(from_date: str = Query(...), to_date: str = Query(...)):
        return ctx().bookings.list_bookings(from_date, to_date)

    @app.get("/hotel/bookings/lookup", response_model=BookingDetails)
    def hotel_booking_details(
        confirmation_number: Optional[str] = Query(default=None),
        booking_reference: Optional[str] = Query(default=None),
    ):
        return ctx().bookings.get_booking_details(confirmation_number, booking_reference)

    @app.post("/hotel/bookings/{confirmation_number}/cancel", response_model=CancellationResult)
    def cancel_hotel_booking(confirmation_number: str):
        return ctx().bookings.cancel_booking(confirmation_number)

    # ── combined ────────────────────────────────────

    @app.post("/combined/session", response_model=CombinedBookingSession)
    def start_combined(req: StartCombinedBookingRequest):
        if (req.flight is None) != (req.correlation_id is None):
            raise ValidationError("flight and correlation_id must be given together", field="correlation_id")
        if (req.hotel is None) != (req.search_criteria is None):
            raise ValidationError("hotel and search_criteria must be given together", field="search_criteria")
        if req.flight is None and req.hotel is None:
            raise ValidationError("a combined booking needs a flight or a hotel", field="flight")
        return ctx().combined.start(req.flight, req.correlation_id, req.hotel, req.search_criteria)

    @app.get("/combined/session", response_model=Optional[CombinedBookingSession])
    def current_combined():
        return ctx().combined.get_current()

    @app.patch("/combined/session/status", response_model=CombinedBookingSession)
    def update_combined_status(req: CombinedStatusRequest):
        return ctx().combined.update_status(req.status)

    @app.get("/combined/session/total", response_model=TotalCostResponse)
    def combined_total():
        return TotalCostResponse(total_cost=ctx().combined.calculate_total_cost())

    @app.delete("/combined/session", response_model=CancelResponse)
    def cancel_combined():
        ctx().combined.cancel()
        return CancelResponse()

    @app.post("/combined/session/complete", response_model=CombinedBookingConfirmation)
    def complete_combined(req: CompleteCombinedBookingRequest):
        return ctx().combined.complete(req.passengers, req.guests, req.payment)

    # ── itinerary ───────────────────────────────────

    @app.get("/itineraries", response_model=list[ItinerarySummaryItem])
    def itineraries(limit: int = Query(default=20, ge=1, le=100)):
        return ctx().itinerary.list_bookings(limit=limit)

    return app


app = create_app()
