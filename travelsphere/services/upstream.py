"""Helpers for reading upstream response envelopes."""

from __future__ import annotations

from typing import Any, Optional

from travelsphere.services.error_classifier import upstream_error

UNAVAILABLE_PATTERNS = ("not available", "sold out", "no longer available", "unavailable")


def response_body(payload: Any) -> dict[str, Any]:
    """Flight responses wrap everything in ``Response``; hotel responses do not."""
    if not isinstance(payload, dict):
        return {}
    inner = payload.get("Response")
    return inner if isinstance(inner, dict) else payload


def structured_error(body: dict[str, Any]) -> Optional[dict[str, Any]]:
    error = body.get("Error")
    if not isinstance(error, dict):
        return None
    if error.get("ErrorCode") in (None, "", 0, "0") and not error.get("ErrorMessage"):
        return None
    return error


def raise_for_error(scope: str, body: dict[str, Any], context: str) -> None:
    error = structured_error(body)
    if error is not None:
        raise upstream_error(scope, error.get("ErrorCode"), error.get("ErrorMessage"), context=context)


def looks_unavailable(message: str) -> bool:
    text = (message or "").lower()
    return any(pattern in text for pattern in UNAVAILABLE_PATTERNS)


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
