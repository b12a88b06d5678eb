"""
trafficlog_sdk.tier0_core.errors
─────────────────────────────────
Standard error taxonomy for the body-filter engine. Every error carries a
stable machine-readable code, a message that is safe to put in a log line
(it never contains body content), and internal detail.

Builder misuse (bad paths, bad literals) raises at construction time.
Document-level failures raise from ``apply`` and are left to the calling
logging pipeline to handle.
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class FilterError(Exception):
    """
    Base class for all filter errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - user_message: safe to log, never contains body content
    - detail: internal context
    """

    code: str = "filter_error"

    def __init__(
        self,
        code: str | None = None,
        user_message: str = "Body filtering failed.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.user_message = user_message
        self.detail = detail or user_message
        self.metadata = metadata
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
            }
        }


# ── Construction-time errors ──────────────────────────────────────────────────

class PathSyntaxError(FilterError):
    """A path expression could not be compiled."""
    code = "path_syntax_error"

    def __init__(
        self,
        path: str,
        reason: str,
        position: int | None = None,
        **metadata: Any,
    ) -> None:
        self.path = path
        self.reason = reason
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(
            user_message=f"Invalid path expression {path!r}: {reason}{where}.",
            path=path,
            **metadata,
        )

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["error"]["path"] = self.path
        if self.position is not None:
            d["error"]["position"] = self.position
        return d


class InvalidReplacementError(FilterError):
    """A static replacement literal is not a JSON string, number or boolean."""
    code = "invalid_replacement"


class InvalidModificationError(FilterError):
    """The requested mutation cannot be performed on the addressed node."""
    code = "invalid_modification"


class ConfigurationError(FilterError):
    """Misconfiguration detected at startup."""
    code = "configuration_error"


# ── Invocation-time errors ────────────────────────────────────────────────────

class MalformedDocumentError(FilterError):
    """A body declared as JSON could not be parsed or serialized."""
    code = "malformed_document"

    def __init__(
        self,
        user_message: str = "Body declared as JSON could not be parsed.",
        detail: str | None = None,
        **metadata: Any,
    ) -> None:
        super().__init__(user_message=user_message, detail=detail, **metadata)


class UnsupportedDynamicTargetError(FilterError):
    """A function-based replacement was addressed at a non-string node."""
    code = "unsupported_dynamic_target"

    def __init__(self, path: str, node_type: str, **metadata: Any) -> None:
        self.path = path
        self.node_type = node_type
        super().__init__(
            user_message=(
                f"Function replacement at {path!r} requires a string, "
                f"got {node_type}."
            ),
            path=path,
            node_type=node_type,
            **metadata,
        )


__all__ = [
    "FilterError",
    "PathSyntaxError",
    "InvalidReplacementError",
    "InvalidModificationError",
    "ConfigurationError",
    "MalformedDocumentError",
    "UnsupportedDynamicTargetError",
]
