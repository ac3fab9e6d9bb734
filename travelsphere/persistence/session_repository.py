"""Typed session persistence over an abstract string key-value store.

Writes are best-effort: a failing store is logged and reported through the
return value, never raised. Reads treat a missing, unreadable or corrupt entry
as "no session" and clear it.
"""

from __future__ import annotations

import logging
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from travelsphere.adapters.interfaces import KeyValueStore
from travelsphere.shared.exceptions import PersistenceError

S = TypeVar("S", bound=BaseModel)

FLIGHT_SESSION_KEY = "booking_session"
HOTEL_SESSION_KEY = "hotel_booking_session"
COMBINED_SESSION_KEY = "combined_booking_session"


class SessionRepository(Generic[S]):
    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        model: type[S],
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._key = key
        self._model = model
        self._logger = logger or logging.getLogger("travelsphere.session")

    @property
    def key(self) -> str:
        return self._key

    def save(self, session: S) -> bool:
        try:
            self._store.set(self._key, session.model_dump_json())
        except Exception as exc:  # store backends raise their own error types
            self._report(PersistenceError(f"failed to persist {self._key}: {exc}"))
            return False
        return True

    def load(self) -> Optional[S]:
        try:
            raw = self._store.get(self._key)
        except Exception as exc:  # store backends raise their own error types
            self._report(PersistenceError(f"failed to read {self._key}: {exc}"))
            self.clear()
            return None
        if raw is None:
            return None
        try:
            return self._model.model_validate_json(raw)
        except (PydanticValidationError, ValueError) as exc:
            self._report(PersistenceError(f"corrupt {self._key} payload discarded: {exc.__class__.__name__}"))
            self.clear()
            return None

    def clear(self) -> None:
        try:
            self._store.remove(self._key)
        except Exception as exc:  # store backends raise their own error types
            self._report(PersistenceError(f"failed to clear {self._key}: {exc}"))

    def _report(self, error: PersistenceError) -> None:
        self._logger.warning("%s", error)


__all__ = [
    "COMBINED_SESSION_KEY",
    "FLIGHT_SESSION_KEY",
    "HOTEL_SESSION_KEY",
    "SessionRepository",
]
