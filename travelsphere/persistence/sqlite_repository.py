"""SQLite implementation for itinerary records."""

from __future__ import annotations

import json
import sqlite3
import threading
from pathlib import Path
from typing import Any

from travelsphere.persistence.models import ItineraryRecord, ItinerarySummaryItem
from travelsphere.shared.exceptions import PersistenceError


def _to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def _from_json(raw: str | None, default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


class SQLiteItineraryRepository:
    backend = "sqlite"

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=5.0)
        conn.execute("PRAGMA journal_mode=WAL;")
        return conn

    def _init_schema(self) -> None:
        with self._lock, self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS itineraries (
                    reference TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    title TEXT NOT NULL,
                    total_price REAL NOT NULL,
                    currency TEXT NOT NULL,
                    starts_on TEXT NOT NULL,
                    booked_at TEXT NOT NULL,
                    payload_json TEXT NOT NULL,
                    PRIMARY KEY (kind, reference)
                );

                CREATE INDEX IF NOT EXISTS idx_itineraries_booked_at ON itineraries(booked_at);
                """
            )

    def save_itinerary(self, record: ItineraryRecord) -> None:
        try:
            with self._lock, self._connect() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO itineraries (
                        reference, kind, title, total_price, currency,
                        starts_on, booked_at, payload_json
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.reference,
                        record.kind,
                        record.title,
                        record.total_price,
                        record.currency,
                        record.starts_on,
                        record.booked_at,
                        _to_json(record.payload),
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"failed to save itinerary {record.kind}/{record.reference}: {exc}") from exc

    def list_itineraries(self, limit: int = 20) -> list[ItinerarySummaryItem]:
        safe_limit = max(1, min(limit, 100))
        with self._lock, self._connect() as conn:
            rows = conn.execute(
                """
                SELECT reference, kind, title, total_price, currency, starts_on, booked_at
                FROM itineraries
                ORDER BY booked_at DESC
                LIMIT ?
                """,
                (safe_limit,),
            ).fetchall()
        return [
            ItinerarySummaryItem(
                reference=row[0],
                kind=row[1],
                title=row[2],
                total_price=float(row[3]),
                currency=row[4],
                starts_on=row[5],
                booked_at=row[6],
            )
            for row in rows
        ]

    def get_itinerary(self, kind: str, reference: str) -> ItineraryRecord | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                """
                SELECT reference, kind, title, total_price, currency, starts_on, booked_at, payload_json
                FROM itineraries
                WHERE kind = ? AND reference = ?
                """,
                (kind, reference),
            ).fetchone()
        if row is None:
            return None
        return ItineraryRecord(
            reference=row[0],
            kind=row[1],
            title=row[2],
            total_price=float(row[3]),
            currency=row[4],
            starts_on=row[5],
            booked_at=row[6],
            payload=_from_json(row[7], {}),
        )


__all__ = ["SQLiteItineraryRepository"]
