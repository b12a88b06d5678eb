"""
trafficlog_sdk.tier2_filters.json_properties
─────────────────────────────────────────────
Property filters that work on the raw JSON text instead of a parsed tree.
They match ``"name": value`` tokens by property name anywhere in the body,
at any depth, so they also cope with truncated or otherwise invalid JSON.

This is a separate filter family: a JsonPathBodyFilter will not merge with
these, and these only merge with each other.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterable

from trafficlog_sdk.tier0_core.redact import ACCESS_TOKEN_PROPERTIES
from trafficlog_sdk.tier1_runtime.media_type import is_json
from trafficlog_sdk.tier2_filters.body_filter import BodyFilter

_STRING_VALUE = r'"(?:[^"\\]|\\.)*"'
_PRIMITIVE_VALUE = r"(?:-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null)(?![\w.])"

_VALUE_PATTERNS = {
    "string": _STRING_VALUE,
    "primitive": _PRIMITIVE_VALUE,
}


@dataclass(frozen=True)
class JsonPropertyBodyFilter(BodyFilter):
    kind: str
    names: frozenset[str]
    replacement: str
    _pattern: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.kind not in _VALUE_PATTERNS:
            raise ValueError(f"Unknown property kind {self.kind!r}")
        object.__setattr__(self, "_pattern", _compile(self.names, _VALUE_PATTERNS[self.kind]))

    def apply(self, media_type: str | None, body: str) -> str:
        if not is_json(media_type):
            return body
        encoded = json.dumps(self.replacement, ensure_ascii=False)
        return self._pattern.sub(lambda m: m.group(1) + encoded, body)

    def try_merge(self, other: BodyFilter) -> "JsonPropertyBodyFilter | None":
        if not isinstance(other, JsonPropertyBodyFilter):
            return None
        if (other.kind, other.replacement) != (self.kind, self.replacement):
            return None
        return JsonPropertyBodyFilter(self.kind, self.names | other.names, self.replacement)


def _compile(names: frozenset[str], value_pattern: str) -> "re.Pattern[str]":
    if not names:
        return re.compile(r"(?!)")
    alternatives = "|".join(re.escape(name) for name in sorted(names))
    return re.compile(rf'("(?:{alternatives})"\s*:\s*){value_pattern}')


# ── Factories ─────────────────────────────────────────────────────────────────

def replace_json_string_property(
    names: Iterable[str], replacement: str
) -> JsonPropertyBodyFilter:
    """Replace the value of every string property named in *names*."""
    return JsonPropertyBodyFilter("string", frozenset(names), replacement)


def replace_primitive_json_property(
    names: Iterable[str], replacement: str
) -> JsonPropertyBodyFilter:
    """Replace number, boolean and null values of properties named in *names*."""
    return JsonPropertyBodyFilter("primitive", frozenset(names), replacement)


def access_token() -> JsonPropertyBodyFilter:
    """Mask OAuth token properties (access_token, refresh_token, ...)."""
    return replace_json_string_property(ACCESS_TOKEN_PROPERTIES, "XXX")


def default_json_filter() -> BodyFilter:
    return access_token()


__all__ = [
    "JsonPropertyBodyFilter",
    "replace_json_string_property",
    "replace_primitive_json_property",
    "access_token",
    "default_json_filter",
]
