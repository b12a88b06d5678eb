"""
trafficlog_sdk.tier0_core.redact
─────────────────────────────────
Well-known sensitive property names and the structlog processor that keeps
them out of the engine's own log output.

The property filters in tier2_filters reuse the OAuth token names defined
here, so the engine's logs and the bodies it filters agree on what counts as
a credential.
"""
from __future__ import annotations

from typing import Any

REDACTED = "[REDACTED]"

# ── OAuth token properties masked by access_token() ───────────────────────

ACCESS_TOKEN_PROPERTIES: frozenset[str] = frozenset({
    "access_token", "refresh_token", "open_id", "id_token",
})

# ── Keys blanked in log event dicts (case-insensitive) ────────────────────

SENSITIVE_KEYS: frozenset[str] = ACCESS_TOKEN_PROPERTIES | frozenset({
    "password", "passwd", "secret", "token", "api_key", "apikey",
    "authorization", "client_secret", "private_key", "cookie",
    "body", "content",
})


def redact_dict(
    data: dict[str, Any],
    sensitive_keys: frozenset[str] | None = None,
    *,
    deep: bool = True,
) -> dict[str, Any]:
    """
    Return a copy of *data* with sensitive key values replaced by REDACTED.
    If *deep* is True, recurse into nested dicts and lists.
    """
    keys = sensitive_keys if sensitive_keys is not None else SENSITIVE_KEYS
    result: dict[str, Any] = {}
    for k, v in data.items():
        if isinstance(k, str) and k.lower() in keys:
            result[k] = REDACTED
        elif deep and isinstance(v, dict):
            result[k] = redact_dict(v, keys, deep=True)
        elif deep and isinstance(v, list):
            result[k] = [
                redact_dict(item, keys, deep=True) if isinstance(item, dict) else item
                for item in v
            ]
        else:
            result[k] = v
    return result


def structlog_redact_processor(
    logger: Any,
    method: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    structlog processor that redacts sensitive keys from the event dict.
    Add to the structlog processor chain before any serialisation step.
    """
    return redact_dict(event_dict)


__all__ = [
    "REDACTED",
    "ACCESS_TOKEN_PROPERTIES",
    "SENSITIVE_KEYS",
    "redact_dict",
    "structlog_redact_processor",
]
