"""Ancillary (baggage and meal) options and selection pricing."""

from __future__ import annotations

from typing import Any

from travelsphere.adapters.interfaces import FlightApi
from travelsphere.domain.enums import AncillaryKind, WeightUnit
from travelsphere.domain.models import AncillaryOptions, AncillaryResult, AncillarySelection, BaggageOption, MealOption
from travelsphere.services.upstream import as_float, as_int, raise_for_error, response_body
from travelsphere.shared.exceptions import ValidationError

# (tag, keywords); "veg" also matches "non-veg", so both tags apply to such meals.
DIETARY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Vegetarian", ("vegetarian", "veg")),
    ("Vegan", ("vegan",)),
    ("Halal", ("halal",)),
    ("Kosher", ("kosher",)),
    ("Gluten-Free", ("gluten-free", "gluten free")),
    ("Dairy-Free", ("dairy-free", "dairy free")),
    ("Nut-Free", ("nut-free", "nut free")),
    ("Non-Vegetarian", ("non-veg", "non veg", "chicken", "meat")),
)


def weight_unit(description: str) -> WeightUnit:
    text = (description or "").lower()
    if "lbs" in text or "pounds" in text:
        return WeightUnit.LBS
    return WeightUnit.KG


def meal_name(description: str) -> str:
    parts = (description or "").split("-")
    if len(parts) > 1:
        return parts[1].strip()
    return description or ""


def dietary_tags(description: str, airline_description: str) -> list[str]:
    text = f"{description or ''} {airline_description or ''}".lower()
    return [tag for tag, keywords in DIETARY_KEYWORDS if any(k in text for k in keywords)]


def _to_baggage(raw: dict[str, Any]) -> BaggageOption:
    description = raw.get("Description") or ""
    return BaggageOption(
        code=str(raw.get("Code") or ""),
        description=description,
        weight=as_float(raw.get("Weight")),
        unit=weight_unit(description),
        price=as_float(raw.get("Price")),
        currency=raw.get("Currency") or "INR",
        origin=raw.get("Origin") or "",
        destination=raw.get("Destination") or "",
        way_type=as_int(raw.get("WayType")),
    )


def _to_meal(raw: dict[str, Any]) -> MealOption:
    description = raw.get("Description") or ""
    return MealOption(
        code=str(raw.get("Code") or ""),
        name=meal_name(description),
        description=description,
        dietary_info=dietary_tags(description, raw.get("AirlineDescription") or ""),
        price=as_float(raw.get("Price")),
        currency=raw.get("Currency") or "INR",
        origin=raw.get("Origin") or "",
        destination=raw.get("Destination") or "",
        quantity=as_int(raw.get("Quantity")),
        way_type=as_int(raw.get("WayType")),
    )


def validate_ancillary_selections(selections: list[AncillarySelection]) -> None:
    if not selections:
        raise ValidationError("No ancillary selections provided", field="selections")
    for selection in selections:
        if selection.passenger_index < 0:
            raise ValidationError(f"Invalid passenger index: {selection.passenger_index}", field="passenger_index")
        if selection.kind not in (AncillaryKind.BAGGAGE, AncillaryKind.MEAL):
            raise ValidationError(f"Invalid ancillary type: {selection.kind}", field="kind")
        if not selection.code or not selection.code.strip():
            raise ValidationError("Invalid ancillary code: empty or undefined", field="code")


class AncillaryCoordinator:
    def __init__(self, flight_api: FlightApi):
        self._api = flight_api

    def list(self, correlation_id: str, offer_id: str) -> AncillaryOptions:
        body = response_body(self._api.list_ancillary(correlation_id, offer_id))
        raise_for_error("flight", body, "Ancillary services API error")
        return AncillaryOptions(
            baggage=[_to_baggage(item) for item in body.get("Baggage") or []],
            meals=[_to_meal(item) for item in body.get("MealDynamic") or []],
        )

    def add(self, correlation_id: str, offer_id: str, selections: list[AncillarySelection]) -> AncillaryResult:
        """Price the selections against a fresh option list.

        Nothing is committed upstream; selections travel in the session until
        the booking is created. Unknown codes contribute 0.
        """
        validate_ancillary_selections(selections)
        options = self.list(correlation_id, offer_id)
        prices = {
            AncillaryKind.BAGGAGE: {option.code: option.price for option in options.baggage},
            AncillaryKind.MEAL: {option.code: option.price for option in options.meals},
        }
        total_cost = sum(prices[s.kind].get(s.code, 0.0) for s in selections)
        return AncillaryResult(success=True, added_services=list(selections), total_cost=total_cost)


__all__ = [
    "AncillaryCoordinator",
    "dietary_tags",
    "meal_name",
    "validate_ancillary_selections",
    "weight_unit",
]
