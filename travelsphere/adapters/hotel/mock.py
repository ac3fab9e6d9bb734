"""Mock hotel adapter producing deterministic responses shaped like the real API."""

from __future__ import annotations

import hashlib
from typing import Any


def _hash_int(*parts: Any) -> int:
    raw = "|".join(str(p) for p in parts)
    return int(hashlib.md5(raw.encode()).hexdigest()[:8], 16)


def mock_room_price(booking_code: str) -> float:
    return float(2500 + _hash_int("room", booking_code) % 12000)


class MockHotelApi:
    """Substitute for HotelApiClient when the upstream API is unreachable."""

    backend = "mock"

    def prebook(self, booking_code: str, payment_mode: str = "Limit") -> dict[str, Any]:
        price = mock_room_price(booking_code)
        return {
            "BookingCode": booking_code,
            "IsPriceChanged": False,
            "IsCancellationPolicyChanged": False,
            "Status": 1,
            "HotelDetails": {
                "HotelName": "Mock Grand Hotel",
                "Price": {"CurrencyCode": "INR", "PublishedPrice": price * 1.15, "OfferedPrice": price},
            },
        }

    def create_booking(self, request: dict[str, Any]) -> dict[str, Any]:
        seed = _hash_int("confirm", request.get("BookingCode", ""), request.get("ClientReferenceId", ""))
        return {
            "ConfirmationNo": f"HTL{seed % 10_000_000:07d}",
            "BookingRefNo": request.get("BookingReferenceId", f"BOOK_{seed:08x}"),
            "BookingId": 500000 + seed % 400000,
            "Status": 1,
            "HotelDetails": {
                "HotelName": "Mock Grand Hotel",
                "CheckInDate": "",
                "CheckOutDate": "",
                "TotalFare": float(request.get("TotalFare", 0.0)),
                "CurrencyCode": "INR",
            },
            "VoucherUrl": None,
        }

    def get_booking_details(self, request: dict[str, Any]) -> dict[str, Any]:
        confirmation_no = request.get("ConfirmationNo") or ""
        reference = request.get("BookingRefNo") or ""
        seed = _hash_int("detail", confirmation_no or reference)
        return {
            "BookingDetails": {
                "ConfirmationNo": confirmation_no or f"HTL{seed % 10_000_000:07d}",
                "BookingRefNo": reference or f"BOOK_{seed:08x}",
                "BookingId": 500000 + seed % 400000,
                "BookingStatus": "Vouchered",
                "HotelName": "Mock Grand Hotel",
                "CheckInDate": "2026-04-10",
                "CheckOutDate": "2026-04-12",
                "TotalFare": float(2500 + seed % 12000),
                "CurrencyCode": "INR",
                "GuestDetails": [
                    {"CustomerNames": [{"Title": "Mr", "FirstName": "John", "LastName": "Doe", "Type": "Adult"}]},
                ],
                "BookedOn": "2026-03-01T10:30:00",
                "VoucherUrl": None,
            },
            "Status": 1,
            "Message": "Mock booking details - API unavailable",
        }

    def get_bookings_by_date_range(self, request: dict[str, Any]) -> dict[str, Any]:
        bookings = [
            {
                "ConfirmationNo": "HTL0001234",
                "BookingRefNo": "BOOK_0001234",
                "HotelName": "Mock Grand Hotel",
                "CheckInDate": "2026-04-10",
                "CheckOutDate": "2026-04-12",
                "BookingStatus": "Confirmed",
                "TotalFare": 8400.0,
                "CurrencyCode": "INR",
            },
            {
                "ConfirmationNo": "HTL0001200",
                "BookingRefNo": "BOOK_0001200",
                "HotelName": "Mock City Inn",
                "CheckInDate": "2026-02-20",
                "CheckOutDate": "2026-02-22",
                "BookingStatus": "cancelled",
                "TotalFare": 3640.0,
                "CurrencyCode": "INR",
            },
        ]
        return {"Bookings": bookings, "Status": 1, "Message": "Mock booking list - API unavailable"}

    def cancel_booking(self, request: dict[str, Any]) -> dict[str, Any]:
        return {
            "ConfirmationNo": request.get("ConfirmationNo", ""),
            "CancellationStatus": "Cancelled",
            "RefundAmount": 680.0,
            "CancellationCharge": 340.0,
            "Status": 1,
            "Message": "Booking cancelled successfully. Refund will be processed within 7-10 business days.",
        }

    def health_check(self) -> bool:
        return True


__all__ = ["MockHotelApi", "mock_room_price"]
