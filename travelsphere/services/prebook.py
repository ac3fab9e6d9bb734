"""Hotel pre-booking: re-validate room price and availability before booking."""

from __future__ import annotations

import logging
from typing import Optional

from travelsphere.adapters.interfaces import HotelApi
from travelsphere.domain.models import PreBookResult
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.services.upstream import as_float, as_int, looks_unavailable, raise_for_error, response_body
from travelsphere.shared.exceptions import UpstreamApiError

_logger = logging.getLogger("travelsphere.prebook")

FALLBACK_CURRENCY = "INR"
DEFAULT_PAYMENT_MODE = "Limit"
_FAILED_STATUSES = {0, 2}


def _unavailable(booking_code: str, original_price: float) -> PreBookResult:
    return PreBookResult(
        booking_code=booking_code,
        original_price=original_price,
        current_price=0.0,
        price_changed=True,
        price_increase=0.0,
        available=False,
        currency=FALLBACK_CURRENCY,
        cancellation_policy_changed=False,
    )


class PreBookCoordinator:
    def __init__(self, hotel_api: HotelApi, *, events: Optional[StructuredLogger] = None):
        self._api = hotel_api
        self._events = events

    def validate(
        self,
        booking_code: str,
        original_price: float,
        payment_mode: str = DEFAULT_PAYMENT_MODE,
    ) -> PreBookResult:
        try:
            body = response_body(self._api.prebook(booking_code, payment_mode))
        except UpstreamApiError:
            raise
        except Exception as exc:
            if looks_unavailable(str(exc)):
                _logger.info("Room %s no longer available: %s", booking_code, exc.__class__.__name__)
                return self._record(_unavailable(booking_code, original_price))
            raise

        raise_for_error("hotel", body, "Pre-booking failed")

        if as_int(body.get("Status"), default=1) in _FAILED_STATUSES:
            message = body.get("Message") or "Pre-booking failed"
            if looks_unavailable(message):
                return self._record(_unavailable(booking_code, original_price))
            raise UpstreamApiError("PREBOOK_FAILED", message, context="Pre-booking failed", recoverable=True)

        price = (body.get("HotelDetails") or {}).get("Price")
        if not price:
            return self._record(_unavailable(booking_code, original_price))

        current_price = as_float(price.get("OfferedPrice"))
        return self._record(
            PreBookResult(
                booking_code=body.get("BookingCode") or booking_code,
                original_price=original_price,
                current_price=current_price,
                price_changed=bool(body.get("IsPriceChanged", False)),
                price_increase=current_price - original_price,
                available=True,
                currency=price.get("CurrencyCode") or FALLBACK_CURRENCY,
                cancellation_policy_changed=bool(body.get("IsCancellationPolicyChanged", False)),
            )
        )

    def _record(self, result: PreBookResult) -> PreBookResult:
        if self._events is not None:
            self._events.price_validated(
                "hotel",
                available=result.available,
                price_changed=result.price_changed,
                price_increase=result.price_increase,
            )
        return result


__all__ = ["PreBookCoordinator"]
