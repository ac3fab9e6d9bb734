"""结构化日志：预订生命周期事件以 JSON line 输出，写出前统一脱敏"""

from __future__ import annotations

import json
import sys
import time
import uuid
from typing import Any, Optional, TextIO

from travelsphere.security.key_manager import get_key_manager


class StructuredLogger:
    """Booking event logger. One JSON object per line, scrubbed of credentials and PII."""

    def __init__(self, trace_id: Optional[str] = None, output: Optional[TextIO] = None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output or sys.stderr
        self._timers: dict[str, float] = {}

    def _scrub(self, text: str) -> str:
        return get_key_manager().scrub_text(text)

    def _emit(self, data: dict[str, Any]) -> None:
        data["trace_id"] = self.trace_id
        data["timestamp"] = time.time()
        try:
            line = self._scrub(json.dumps(data, ensure_ascii=False, default=str))
            self._output.write(line + "\n")
            self._output.flush()
        except (OSError, ValueError) as exc:
            # 输出流不可用时退回 stderr
            fallback = {
                "event": "logger_internal_error",
                "trace_id": self.trace_id,
                "timestamp": time.time(),
                "error": str(exc),
            }
            sys.stderr.write(json.dumps(fallback, ensure_ascii=False, default=str) + "\n")

    # ── session lifecycle ───────────────────────────

    def session_started(self, scope: str, session_id: str, **extra: Any) -> None:
        self._emit({"event": "session_started", "scope": scope, "session_id": session_id, **extra})

    def session_expired(self, scope: str, session_id: str) -> None:
        self._emit({"event": "session_expired", "scope": scope, "session_id": session_id})

    def session_cancelled(self, scope: str, session_id: str) -> None:
        self._emit({"event": "session_cancelled", "scope": scope, "session_id": session_id})

    # ── booking ─────────────────────────────────────

    def booking_started(self, scope: str, session_id: str, **extra: Any) -> None:
        self._timers[f"{scope}:{session_id}"] = time.time()
        self._emit({"event": "booking_started", "scope": scope, "session_id": session_id, **extra})

    def booking_confirmed(self, scope: str, session_id: str, *, reference: str, **extra: Any) -> None:
        start = self._timers.pop(f"{scope}:{session_id}", time.time())
        self._emit({
            "event": "booking_confirmed",
            "scope": scope,
            "session_id": session_id,
            "reference": reference,
            "duration_ms": round((time.time() - start) * 1000, 1),
            **extra,
        })

    def booking_failed(self, scope: str, session_id: str, error: str, **extra: Any) -> None:
        self._timers.pop(f"{scope}:{session_id}", None)
        self._emit({
            "event": "booking_failed",
            "scope": scope,
            "session_id": session_id,
            "error": self._scrub(error),
            **extra,
        })

    def booking_cancelled(self, scope: str, reference: str, *, success: bool, **extra: Any) -> None:
        self._emit({
            "event": "booking_cancelled" if success else "cancellation_failed",
            "scope": scope,
            "reference": reference,
            **extra,
        })

    def price_validated(self, scope: str, *, available: bool, price_changed: bool, **extra: Any) -> None:
        self._emit({
            "event": "price_validated",
            "scope": scope,
            "available": available,
            "price_changed": price_changed,
            **extra,
        })

    # ── generic ─────────────────────────────────────

    def error(self, component: str, error: str, **extra: Any) -> None:
        self._emit({"event": "error", "component": component, "error": self._scrub(error), **extra})

    def warning(self, component: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "component": component, "message": self._scrub(message), **extra})


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    global _logger
    if _logger is None or (trace_id and _logger.trace_id != trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger


__all__ = ["StructuredLogger", "get_logger"]
