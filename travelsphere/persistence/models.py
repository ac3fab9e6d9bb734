"""Persistence-layer record schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ItineraryRecord(BaseModel):
    reference: str
    kind: str
    title: str = ""
    total_price: float = 0.0
    currency: str = ""
    starts_on: str = ""
    booked_at: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ItinerarySummaryItem(BaseModel):
    reference: str
    kind: str
    title: str
    total_price: float
    currency: str
    starts_on: str
    booked_at: str


__all__ = [
    "ItineraryRecord",
    "ItinerarySummaryItem",
]
