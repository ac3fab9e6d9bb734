"""Fare rule retrieval and parsing.

Upstream fare rules are free text. Cancellation policy, change fee, baggage
allowance and restrictions are extracted with keyword and regex heuristics.
Parsed rules are cached per correlation id and offer.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from travelsphere.adapters.fallback import MockFallbackProvider
from travelsphere.adapters.interfaces import FlightApi
from travelsphere.domain.enums import WeightUnit
from travelsphere.domain.models import BaggageAllowance, FareRules
from travelsphere.infrastructure.cache import MemoryCache, make_cache_key
from travelsphere.services.upstream import raise_for_error, response_body
from travelsphere.shared.exceptions import TransportError

_logger = logging.getLogger("travelsphere.fare_rules")

_NON_REFUNDABLE = ("non-refundable", "non refundable", "not refundable", "no refund")
_REFUNDABLE = ("refundable", "refund available", "refund allowed")

_FEE_PATTERNS = (
    re.compile(r"(?:inr|rs\.?|₹)\s*(\d+(?:,\d{3})*(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"\$\s*(\d+(?:,\d{3})*(?:\.\d{2})?)"),
    re.compile(r"(\d+(?:,\d{3})*(?:\.\d{2})?)\s*(?:inr|rs\.?|rupees)", re.IGNORECASE),
)
_WEIGHT_PATTERN = re.compile(r"(\d+)\s*(kg|kgs|kilograms?|lbs?|pounds?)", re.IGNORECASE)
_PIECE_PATTERN = re.compile(r"(\d+)\s*(?:piece|pieces|bag|bags)", re.IGNORECASE)
_TAG_PATTERN = re.compile(r"<[^>]*>")


def extract_cancellation_policy(rule_text: str) -> str:
    for sentence in re.split(r"[.!?]+", rule_text):
        lowered = sentence.lower()
        if "cancellation" in lowered or "refund" in lowered or "cancel" in lowered:
            return sentence.strip()
    return "Cancellation charges apply as per airline policy"


def is_refundable(rule_text: str) -> bool:
    text = rule_text.lower()
    if any(k in text for k in _NON_REFUNDABLE):
        return False
    return any(k in text for k in _REFUNDABLE)


def extract_change_fee(rule_text: str) -> float:
    for pattern in _FEE_PATTERNS:
        match = pattern.search(rule_text)
        if match:
            try:
                return float(match.group(1).replace(",", ""))
            except ValueError:
                continue
    return 0.0


def extract_baggage_allowance(rule_text: str) -> BaggageAllowance:
    allowance = BaggageAllowance()
    lowered = rule_text.lower()

    weights: list[int] = []
    unit = WeightUnit.KG
    for match in _WEIGHT_PATTERN.finditer(rule_text):
        weights.append(int(match.group(1)))
        unit_text = match.group(2).lower()
        if "lb" in unit_text or "pound" in unit_text:
            unit = WeightUnit.LBS
    pieces = [int(m.group(1)) for m in _PIECE_PATTERN.finditer(rule_text)]

    if pieces:
        allowance.checked_bags = pieces[0]
        if len(pieces) > 1:
            allowance.carry_on_bags = pieces[1]

    if len(weights) == 1:
        if "cabin" in lowered or "carry" in lowered or "hand" in lowered:
            allowance.carry_on_weight = weights[0]
        else:
            allowance.checked_bag_weight = weights[0]
    elif weights:
        weights.sort(reverse=True)
        allowance.checked_bag_weight = weights[0]
        allowance.carry_on_weight = weights[1]

    allowance.unit = unit
    return allowance


def clean_restriction(text: str) -> str:
    cleaned = _TAG_PATTERN.sub("", re.sub(r"\s+", " ", text.strip()))
    return cleaned[:1].upper() + cleaned[1:]


def parse_fare_rules(details: list[dict[str, Any]]) -> FareRules:
    rules = FareRules()
    for item in details or []:
        detail = str(item.get("FareRuleDetail") or "")
        restriction = str(item.get("FareRestriction") or "")
        text = detail.lower()

        if "cancellation" in text or "refund" in text:
            rules.cancellation_policy = extract_cancellation_policy(detail)
            rules.refundable = is_refundable(text)

        if "change" in text or "modification" in text:
            fee = extract_change_fee(detail)
            if fee > 0:
                rules.change_fee = fee

        if "baggage" in text or "luggage" in text:
            rules.baggage_allowance = extract_baggage_allowance(detail)

        if restriction.strip() and restriction.strip().lower() != "null":
            cleaned = clean_restriction(restriction)
            if cleaned and cleaned not in rules.restrictions:
                rules.restrictions.append(cleaned)
    return rules


class FareRulesCoordinator:
    def __init__(
        self,
        flight_api: FlightApi,
        *,
        cache: Optional[MemoryCache] = None,
        fallback: Optional[MockFallbackProvider] = None,
        mock_api: Optional[FlightApi] = None,
    ):
        self._api = flight_api
        self._cache = cache or MemoryCache(default_ttl=1800.0, max_size=200)
        self._fallback = fallback
        self._mock_api = mock_api

    def get(self, correlation_id: str, offer_id: str) -> FareRules:
        key = make_cache_key("fare_rules", correlation_id, offer_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            rules = self._fetch(self._api, correlation_id, offer_id)
        except TransportError as exc:
            if not self._should_use_mock():
                raise
            _logger.warning("Fare rules unavailable (%s), using mock rules", exc.code)
            rules = self._fetch(self._mock_api, correlation_id, offer_id)

        self._cache.set(key, rules)
        return rules

    def get_cached(self, correlation_id: str, offer_id: str) -> Optional[FareRules]:
        return self._cache.get(make_cache_key("fare_rules", correlation_id, offer_id))

    def clear_cache(self) -> None:
        self._cache.clear()

    @staticmethod
    def _fetch(api: Any, correlation_id: str, offer_id: str) -> FareRules:
        body = response_body(api.get_fare_rules(correlation_id, offer_id))
        raise_for_error("flight", body, "Fare rules API error")
        return parse_fare_rules(body.get("FareRules") or [])

    def _should_use_mock(self) -> bool:
        if self._fallback is None or self._mock_api is None:
            return False
        if self._fallback.is_mock_mode():
            return True
        if not self._fallback.is_api_available():
            self._fallback.set_mock_mode(True)
            return True
        return False


__all__ = [
    "FareRulesCoordinator",
    "extract_baggage_allowance",
    "extract_change_fee",
    "extract_cancellation_policy",
    "is_refundable",
    "parse_fare_rules",
]
