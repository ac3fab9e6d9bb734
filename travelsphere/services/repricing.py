"""Flight repricing: re-validate a quoted fare right before booking."""

from __future__ import annotations

import logging
from typing import Optional

from travelsphere.adapters.interfaces import FlightApi
from travelsphere.domain.models import RepricingResult
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.services.upstream import as_float, looks_unavailable, raise_for_error, response_body
from travelsphere.shared.exceptions import UpstreamApiError

_logger = logging.getLogger("travelsphere.repricing")

FALLBACK_CURRENCY = "INR"


def _unavailable(original_price: float) -> RepricingResult:
    return RepricingResult(
        original_price=original_price,
        current_price=0.0,
        price_changed=True,
        price_increase=0.0,
        available=False,
        currency=FALLBACK_CURRENCY,
        time_changed=False,
    )


class RepricingCoordinator:
    def __init__(self, flight_api: FlightApi, *, events: Optional[StructuredLogger] = None):
        self._api = flight_api
        self._events = events

    def validate(self, correlation_id: str, offer_id: str, original_price: float) -> RepricingResult:
        """Re-price ``offer_id`` and compare against ``original_price``.

        A structured error in the response raises ``UpstreamApiError``. An empty
        result, or a failed call whose message says the offer is gone, returns
        ``available=False`` instead of raising.
        """
        try:
            body = response_body(self._api.reprice_offer(correlation_id, offer_id))
        except UpstreamApiError:
            raise
        except Exception as exc:
            if looks_unavailable(str(exc)):
                _logger.info("Offer %s no longer available: %s", offer_id, exc.__class__.__name__)
                return self._record(_unavailable(original_price))
            raise

        raise_for_error("flight", body, "Re-pricing failed")

        results = body.get("Results")
        if not results:
            return self._record(_unavailable(original_price))

        fare = results.get("Fare") or {}
        current_price = as_float(fare.get("OfferedFare"))
        return self._record(
            RepricingResult(
                original_price=original_price,
                current_price=current_price,
                price_changed=bool(results.get("IsPriceChanged", False)),
                price_increase=current_price - original_price,
                available=True,
                currency=fare.get("Currency") or FALLBACK_CURRENCY,
                time_changed=bool(results.get("IsTimeChanged", False)),
            )
        )

    def _record(self, result: RepricingResult) -> RepricingResult:
        if self._events is not None:
            self._events.price_validated(
                "flight",
                available=result.available,
                price_changed=result.price_changed,
                price_increase=result.price_increase,
            )
        return result


__all__ = ["RepricingCoordinator"]
