"""Timed single-slot session container.

Holds at most one session per orchestrator. Every read compares the clock to
``expires_at``; a daemon timer additionally clears the slot when the TTL
elapses. Opening a new session cancels the previous timer first.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from travelsphere.domain.models import TimedSession
from travelsphere.infrastructure.logging import StructuredLogger
from travelsphere.persistence.session_repository import SessionRepository
from travelsphere.shared.exceptions import NoActiveSession, SessionExpired, ValidationError

S = TypeVar("S", bound=TimedSession)

DEFAULT_TTL = dt.timedelta(minutes=30)
IMMUTABLE_FIELDS = frozenset({"session_id", "created_at", "expires_at"})

_logger = logging.getLogger("travelsphere.session")


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SessionSlot(Generic[S]):
    def __init__(
        self,
        repository: SessionRepository[S],
        *,
        scope: str,
        ttl: dt.timedelta = DEFAULT_TTL,
        clock: Callable[[], dt.datetime] = utcnow,
        events: Optional[StructuredLogger] = None,
        timer_factory: Callable[[float, Callable[[], None]], threading.Timer] = threading.Timer,
    ):
        self._repository = repository
        self._scope = scope
        self._ttl = ttl
        self._clock = clock
        self._events = events
        self._timer_factory = timer_factory
        self._session: Optional[S] = None
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.RLock()

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def timer(self) -> Optional[threading.Timer]:
        return self._timer

    def now(self) -> dt.datetime:
        return self._clock()

    def lifetime(self) -> tuple[dt.datetime, dt.datetime]:
        """Return ``(created_at, expires_at)`` for a session opened now."""
        created_at = self._clock()
        return created_at, created_at + self._ttl

    def open(self, session: S) -> S:
        with self._lock:
            self._release_timer()
            self._session = session
            self._repository.save(session)
            self._schedule(session)
        if self._events is not None:
            self._events.session_started(self._scope, session.session_id)
        return session

    def current(self) -> Optional[S]:
        with self._lock:
            session = self._session
            if session is None:
                return None
            if session.is_expired(self._clock()):
                self._expire(session)
                return None
            return session

    def require(self) -> S:
        with self._lock:
            session = self._session
            if session is None:
                raise NoActiveSession(self._scope)
            if session.is_expired(self._clock()):
                self._expire(session)
                raise SessionExpired(self._scope)
            return session

    def update(self, **changes) -> S:
        with self._lock:
            session = self.require()
            unknown = set(changes) - set(type(session).model_fields)
            if unknown:
                raise ValidationError(f"Unknown session field: {sorted(unknown)[0]}", field=sorted(unknown)[0])
            updated = _merged(session, changes)
            self._session = updated
            self._repository.save(updated)
            return updated

    def settle(self, session_id: str, **changes) -> Optional[S]:
        """Record the outcome of upstream work that already succeeded.

        Skips the expiry check: the session may have lapsed while the call was
        in flight. Returns ``None`` when the slot no longer holds that session.
        """
        with self._lock:
            session = self._session
            if session is None or session.session_id != session_id:
                return None
            updated = _merged(session, changes)
            self._session = updated
            self._repository.save(updated)
            return updated

    def clear(self) -> None:
        with self._lock:
            self._release_timer()
            self._session = None
            self._repository.clear()

    def restore(self) -> Optional[S]:
        loaded = self._repository.load()
        if loaded is None:
            return None
        if loaded.is_expired(self._clock()):
            self._repository.clear()
            return None
        with self._lock:
            self._release_timer()
            self._session = loaded
            self._schedule(loaded)
        return loaded

    def close(self) -> None:
        with self._lock:
            self._release_timer()

    # ── timer ───────────────────────────────────────

    def _schedule(self, session: S) -> None:
        remaining = max(0.0, (session.expires_at - self._clock()).total_seconds())
        timer = self._timer_factory(remaining, lambda: self._on_timer(session.session_id))
        timer.daemon = True
        timer.start()
        self._timer = timer

    def _release_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, session_id: str) -> None:
        with self._lock:
            session = self._session
            if session is None or session.session_id != session_id:
                return
            self._timer = None
            self._expire(session)

    def _expire(self, session: S) -> None:
        _logger.info("%s session %s expired", self._scope, session.session_id)
        self._release_timer()
        self._session = None
        self._repository.clear()
        if self._events is not None:
            self._events.session_expired(self._scope, session.session_id)


def _merged(session: S, changes: dict[str, Any]) -> S:
    merged = {k: v for k, v in changes.items() if k not in IMMUTABLE_FIELDS}
    try:
        return type(session).model_validate({**session.model_dump(), **merged})
    except PydanticValidationError as exc:
        field = ".".join(str(part) for part in exc.errors()[0]["loc"]) or "session"
        raise ValidationError(f"Invalid value for session field: {field}", field=field) from exc


__all__ = ["DEFAULT_TTL", "IMMUTABLE_FIELDS", "SessionSlot", "utcnow"]
