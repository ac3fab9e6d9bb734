"""Helpers for redacting sensitive values in logs and error strings."""

from __future__ import annotations

import re

_REDACTED = "***REDACTED***"

_QUERY_VALUE_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:key|api[_-]?key|token|token[_-]?id|secret|password|passwd)\s*=\s*)(?P<value>[^&\s\"']+)"
)
_JSON_KV_RE = re.compile(
    r"(?i)(?P<prefix>(?:[\"']?(?:api[_-]?key|x-api-key|tokenid|token|secret|password|passwd|passportno|passport_number)[\"']?\s*[:=]\s*[\"']?))(?P<value>[^\"',\s}]+)"
)
_AUTH_HEADER_RE = re.compile(
    r"(?i)(?P<prefix>\bauthorization\s*:\s*(?:bearer|basic|token)\s+)(?P<value>[^\s,;]+)"
)
_BEARER_RE = re.compile(
    r"(?i)(?P<prefix>\bbearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)"
)
_BASIC_RE = re.compile(
    r"(?i)(?P<prefix>\bbasic\s+)(?P<value>[A-Za-z0-9+/=]{8,})"
)
_CARD_NUMBER_RE = re.compile(r"\b(?:\d[ -]?){13,19}\b")
_DSN_CREDENTIAL_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:https?|redis|rediss|postgres(?:ql)?)://)(?P<creds>[^@/\s]+)@"
)


def _replace_value(pattern: re.Pattern[str], text: str) -> str:
    def repl(match: re.Match[str]) -> str:
        return f"{match.group('prefix')}{_REDACTED}"

    return pattern.sub(repl, text)


def redact_sensitive(text: str) -> str:
    """Redact credentials, tokens and card numbers while preserving surrounding context."""
    if not text:
        return text

    redacted = str(text)

    value_patterns: tuple[re.Pattern[str], ...] = (
        _QUERY_VALUE_RE,
        _JSON_KV_RE,
        _AUTH_HEADER_RE,
        _BEARER_RE,
        _BASIC_RE,
    )
    for pattern in value_patterns:
        redacted = _replace_value(pattern, redacted)

    redacted = _CARD_NUMBER_RE.sub(_REDACTED, redacted)
    redacted = _DSN_CREDENTIAL_RE.sub(rf"\g<prefix>{_REDACTED}@", redacted)
    return redacted


__all__ = ["redact_sensitive"]
