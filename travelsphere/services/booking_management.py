"""Hotel booking management: look up, list and cancel bookings after they were made.

Lookups fall back to mock data through the hotel client's fallback proxy when
the upstream is unreachable; cancellation always goes to the real upstream.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from travelsphere.adapters.interfaces import HotelApi
from travelsphere.domain.models import (
    BookingDetails,
    BookingList,
    BookingSummary,
    CancellationResult,
    CustomerName,
    GuestDetails,
)
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.services.upstream import as_float, as_int, raise_for_error, response_body
from travelsphere.shared.exceptions import UpstreamApiError, ValidationError

_logger = logging.getLogger("travelsphere.booking.management")

SCOPE = "hotel"

_STATUS_NAMES = {
    "confirmed": "Confirmed",
    "pending": "Pending",
    "cancelled": "Cancelled",
    "failed": "Failed",
    "vouchered": "Confirmed",
}
_CANCELLED_STATUSES = {"success", "cancelled"}

DateLike = Union[dt.date, str]


def normalize_booking_status(status: Any) -> str:
    text = str(status or "")
    return _STATUS_NAMES.get(text.lower(), text)


def _parse_date(value: DateLike, field: str) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid date format. Expected YYYY-MM-DD", field=field) from None


def _guests_from(rooms: Any) -> list[GuestDetails]:
    guests = []
    for index, room in enumerate(rooms or []):
        names = [
            CustomerName(
                title=str(name.get("Title") or ""),
                first_name=str(name.get("FirstName") or ""),
                last_name=str(name.get("LastName") or ""),
                type=str(name.get("Type") or "Adult"),
            )
            for name in room.get("CustomerNames") or []
        ]
        guests.append(GuestDetails(room_index=index, customer_names=names))
    return guests


def _optional_date(value: Any) -> Optional[str]:
    return str(value) if value else None


class BookingManagementService:
    def __init__(self, hotel_api: HotelApi, *, events: Optional[StructuredLogger] = None):
        self._api = hotel_api
        self._events = events

    def get_booking_details(
        self,
        confirmation_number: Optional[str] = None,
        booking_reference: Optional[str] = None,
    ) -> BookingDetails:
        """Fetch one booking by confirmation number or booking reference."""
        if not confirmation_number and not booking_reference:
            raise ValidationError(
                "Either confirmation number or booking reference ID must be provided",
                field="confirmation_number",
            )
        request = {}
        if confirmation_number:
            request["ConfirmationNo"] = confirmation_number
        if booking_reference:
            request["BookingRefNo"] = booking_reference

        body = response_body(self._api.get_booking_details(request))
        raise_for_error(SCOPE, body, "Booking lookup failed")
        detail = body.get("BookingDetails")
        if not isinstance(detail, dict) or not detail.get("ConfirmationNo"):
            raise UpstreamApiError(
                "BOOKING_REFERENCE_NOT_FOUND",
                body.get("Message") or "Booking not found",
                context="Booking lookup failed",
            )
        return self._parse(
            BookingDetails,
            confirmation_number=str(detail["ConfirmationNo"]),
            booking_reference_id=str(detail.get("BookingRefNo") or ""),
            booking_id=as_int(detail.get("BookingId")),
            status=normalize_booking_status(detail.get("BookingStatus")),
            hotel_name=str(detail.get("HotelName") or ""),
            check_in=_optional_date(detail.get("CheckInDate")),
            check_out=_optional_date(detail.get("CheckOutDate")),
            total_fare=as_float(detail.get("TotalFare")),
            currency=detail.get("CurrencyCode") or "USD",
            guests=_guests_from(detail.get("GuestDetails")),
            booked_on=_optional_date(detail.get("BookedOn")),
            voucher_url=detail.get("VoucherUrl"),
        )

    def list_bookings(self, from_date: DateLike, to_date: DateLike) -> BookingList:
        start = _parse_date(from_date, "from_date")
        end = _parse_date(to_date, "to_date")
        if start > end:
            raise ValidationError("From date must be before or equal to to date", field="from_date")

        body = response_body(
            self._api.get_bookings_by_date_range({"FromDate": start.isoformat(), "ToDate": end.isoformat()})
        )
        raise_for_error(SCOPE, body, "Booking list failed")
        bookings = [
            self._parse(
                BookingSummary,
                confirmation_number=str(item.get("ConfirmationNo") or ""),
                booking_reference_id=str(item.get("BookingRefNo") or ""),
                hotel_name=str(item.get("HotelName") or ""),
                check_in=_optional_date(item.get("CheckInDate")),
                check_out=_optional_date(item.get("CheckOutDate")),
                status=normalize_booking_status(item.get("BookingStatus")),
                total_fare=as_float(item.get("TotalFare")),
                currency=item.get("CurrencyCode") or "USD",
            )
            for item in body.get("Bookings") or []
            if isinstance(item, dict)
        ]
        _logger.info("Listed %d hotel bookings between %s and %s", len(bookings), start, end)
        return BookingList(bookings=bookings, total_count=len(bookings))

    def cancel_booking(self, confirmation_number: str) -> CancellationResult:
        """Cancel a confirmed booking.

        A structured upstream error raises; a response that simply reports the
        cancellation as not done comes back with ``success=False``.
        """
        if not confirmation_number or not confirmation_number.strip():
            raise ValidationError("Confirmation number is required for cancellation", field="confirmation_number")
        confirmation_number = confirmation_number.strip()

        body = response_body(self._api.cancel_booking({"ConfirmationNo": confirmation_number}))
        raise_for_error(SCOPE, body, "Cancellation failed")

        status = str(body.get("CancellationStatus") or "")
        success = as_int(body.get("Status")) == 1 and status.lower() in _CANCELLED_STATUSES
        result = CancellationResult(
            success=success,
            confirmation_number=str(body.get("ConfirmationNo") or confirmation_number),
            cancellation_status=status,
            refund_amount=as_float(body.get("RefundAmount")),
            cancellation_charge=as_float(body.get("CancellationCharge")),
            message=body.get("Message") or ("Booking cancelled successfully" if success else "Cancellation failed"),
        )
        if self._events is not None:
            self._events.booking_cancelled(
                SCOPE,
                result.confirmation_number,
                success=success,
                refund_amount=result.refund_amount,
            )
        return result

    @staticmethod
    def _parse(model, **fields):
        try:
            return model(**fields)
        except PydanticValidationError as exc:
            raise UpstreamApiError(
                "API_ERROR",
                f"Malformed booking record: {exc.error_count()} invalid field(s)",
                context="Booking lookup failed",
            ) from exc


__all__ = ["BookingManagementService", "normalize_booking_status"]
