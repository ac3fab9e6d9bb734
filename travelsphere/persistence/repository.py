"""Itinerary repository interface and factory."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

from travelsphere.persistence.models import ItineraryRecord, ItinerarySummaryItem
from travelsphere.persistence.sqlite_repository import SQLiteItineraryRepository

_TRUTHY = {"1", "true", "yes", "on"}
_DEFAULT_DB_PATH = Path("data") / "itineraries.db"


class ItineraryRepository(Protocol):
    backend: str

    def save_itinerary(self, record: ItineraryRecord) -> None: ...

    def list_itineraries(self, limit: int = 20) -> list[ItinerarySummaryItem]: ...

    def get_itinerary(self, kind: str, reference: str) -> ItineraryRecord | None: ...


class NoopItineraryRepository:
    backend = "noop"

    def save_itinerary(self, record: ItineraryRecord) -> None:
        _ = record

    def list_itineraries(self, limit: int = 20) -> list[ItinerarySummaryItem]:
        _ = limit
        return []

    def get_itinerary(self, kind: str, reference: str) -> ItineraryRecord | None:
        _ = (kind, reference)
        return None


def _enabled() -> bool:
    raw = os.getenv("ITINERARY_PERSISTENCE_ENABLED", "false").strip().lower()
    return raw in _TRUTHY


def _db_path() -> Path:
    raw = os.getenv("ITINERARY_PERSISTENCE_DB", "").strip()
    return Path(raw) if raw else _DEFAULT_DB_PATH


def get_itinerary_repository() -> ItineraryRepository:
    if not _enabled():
        return NoopItineraryRepository()
    return SQLiteItineraryRepository(_db_path())


__all__ = [
    "ItineraryRepository",
    "NoopItineraryRepository",
    "get_itinerary_repository",
]
