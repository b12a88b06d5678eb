"""
trafficlog_sdk.tier1_runtime.document
──────────────────────────────────────
The parsed JSON document a filter mutates. Parsing and serialization go
through the stdlib json module with the settings of a FilterConfig; every
node in the resulting tree is classified by a NodeType tag.

A Document is created per filter invocation and never shared.
"""
from __future__ import annotations

import json
import math
from enum import Enum
from typing import Any

from trafficlog_sdk.tier0_core.config import FilterConfig
from trafficlog_sdk.tier0_core.errors import MalformedDocumentError


# ── Node types ────────────────────────────────────────────────────────────────

class NodeType(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"

    @property
    def is_container(self) -> bool:
        return self in (NodeType.OBJECT, NodeType.ARRAY)


def node_type(value: Any) -> NodeType:
    """Classify a decoded JSON value."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return NodeType.BOOLEAN
    if isinstance(value, (int, float)):
        return NodeType.NUMBER
    if isinstance(value, str):
        return NodeType.STRING
    if isinstance(value, dict):
        return NodeType.OBJECT
    if isinstance(value, list):
        return NodeType.ARRAY
    if value is None:
        return NodeType.NULL
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def canonical_number(value: int | float) -> int | float:
    """Collapse integral floats so 0.0 serializes as 0 and 1.0 as 1."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# ── Document ──────────────────────────────────────────────────────────────────

class Document:
    """
    A mutable JSON tree rooted at ``root``. The root is held here rather than
    in a parent container so paths can address and replace it like any
    other node.
    """

    __slots__ = ("root", "config")

    def __init__(self, root: Any, config: FilterConfig) -> None:
        self.root = root
        self.config = config

    @classmethod
    def parse(cls, body: str, config: FilterConfig) -> "Document":
        """Parse *body*; raise MalformedDocumentError if it is not JSON."""
        try:
            root = json.loads(body, parse_constant=_constant_parser(config))
        except (ValueError, RecursionError) as exc:
            raise MalformedDocumentError(detail=f"JSON parse failed: {exc}") from exc
        return cls(root, config)

    def serialize(self) -> str:
        return dumps(self.root, self.config)


def dumps(value: Any, config: FilterConfig) -> str:
    """Serialize any JSON value with the settings of *config*."""
    try:
        return json.dumps(
            value,
            ensure_ascii=config.ensure_ascii,
            separators=config.separators,
            allow_nan=config.allow_nan,
        )
    except (ValueError, TypeError, RecursionError) as exc:
        raise MalformedDocumentError(
            user_message="Filtered document could not be serialized.",
            detail=f"JSON serialization failed: {exc}",
        ) from exc


def _constant_parser(config: FilterConfig):
    def parse_constant(name: str) -> float:
        if not config.allow_nan:
            raise ValueError(f"non-finite number {name} is not allowed")
        return {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}[name]

    return parse_constant


__all__ = ["NodeType", "Document", "node_type", "canonical_number", "dumps"]
