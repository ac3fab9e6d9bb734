"""Optional upstream fault injection for resilience drills.

Disabled by default. Enable by setting:
  ENABLE_TOOL_FAULT_INJECTION=true
  TOOL_FAULT_INJECTION=flight:timeout,hotel:unavailable
  TOOL_FAULT_RATE=1.0

Supported faults: timeout, rate_limit, unavailable, sold_out. Each maps to the
TransportError the real HTTP client would raise for the same condition, so the
orchestrators and the error classifier see realistic failures.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field
from typing import Any, Callable

from travelsphere.shared.exceptions import TransportError

_TRUTHY = {"1", "true", "yes", "on"}

# fault -> (message, code, recoverable)
_FAULTS: dict[str, tuple[str, str, bool]] = {
    "timeout": ("injected timeout", "TIMEOUT", True),
    "rate_limit": ("injected upstream rate limit 429", "429", True),
    "unavailable": ("injected upstream unavailable 503", "503", True),
    "sold_out": ("injected offer no longer available", "API_ERROR", False),
}


def _parse_rate(raw: str) -> float:
    try:
        value = float(raw.strip() or "1.0")
    except ValueError:
        return 1.0
    return max(0.0, min(1.0, value))


def _parse_faults(raw: str) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for part in raw.split(","):
        tool, sep, fault = part.strip().partition(":")
        tool_key = tool.strip().lower()
        fault_key = fault.strip().lower()
        if not sep or not tool_key or fault_key not in _FAULTS:
            continue
        mapping[tool_key] = fault_key
    return mapping


@dataclass
class FaultPlan:
    enabled: bool = False
    rate: float = 1.0
    faults: dict[str, str] = field(default_factory=dict)
    roll: Callable[[], float] = random.random

    @classmethod
    def from_env(cls) -> "FaultPlan":
        return cls(
            enabled=os.getenv("ENABLE_TOOL_FAULT_INJECTION", "false").strip().lower() in _TRUTHY,
            rate=_parse_rate(os.getenv("TOOL_FAULT_RATE", "1.0")),
            faults=_parse_faults(os.getenv("TOOL_FAULT_INJECTION", "")),
        )

    def fault_for(self, tool_name: str) -> str:
        if not self.enabled:
            return ""
        fault = self.faults.get(tool_name.lower(), "")
        if not fault or self.roll() > self.rate:
            return ""
        return fault


def _raise_fault(tool_name: str, fault: str, operation: str) -> None:
    message, code, recoverable = _FAULTS[fault]
    op = f" op={operation}" if operation else ""
    raise TransportError(tool_name, f"{message}{op}", code=code, recoverable=recoverable)


class FaultInjectedToolProxy:
    """Wraps an upstream client; every public call may raise the planned fault first."""

    def __init__(self, tool_name: str, target: Any, plan: FaultPlan) -> None:
        self._tool_name = tool_name
        self._target = target
        self._plan = plan

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._target, name)
        if not callable(attr) or name.startswith("_"):
            return attr

        def _wrapped(*args: Any, **kwargs: Any):
            fault = self._plan.fault_for(self._tool_name)
            if fault:
                _raise_fault(self._tool_name, fault, name)
            return attr(*args, **kwargs)

        return _wrapped


def wrap_tool_with_fault_injection(tool_name: str, tool_impl: Any, plan: FaultPlan | None = None) -> Any:
    plan = plan or FaultPlan.from_env()
    if not plan.enabled:
        return tool_impl
    return FaultInjectedToolProxy(tool_name, tool_impl, plan)


__all__ = ["FaultInjectedToolProxy", "FaultPlan", "wrap_tool_with_fault_injection"]
