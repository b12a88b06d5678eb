"""
trafficlog_sdk.tier1_runtime.path
──────────────────────────────────
Compiled path expressions and the matcher that resolves them against a
parsed Document.

Supported syntax (a restricted JSONPath):

    $                   the root
    $.name              object field
    $['odd name']       object field, bracket-quoted (single or double quotes)
    $.items[0]          array index, negative indices count from the end
    $.items[*]          every element of an array
    $.grades.*          every value of an object (or element of an array)

Missing fields, type mismatches and out-of-range indices are not errors;
the branch simply yields no match.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Union

from trafficlog_sdk.tier0_core.errors import PathSyntaxError
from trafficlog_sdk.tier1_runtime.document import Document, NodeType, node_type

ROOT = "$"

_PLAIN_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")
_INDEX_RE = re.compile(r"^-?\d+$")


# ── Segments ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Field:
    name: str

    def __str__(self) -> str:
        if _PLAIN_NAME_RE.match(self.name):
            return f".{self.name}"
        escaped = self.name.replace("\\", "\\\\").replace("'", "\\'")
        return f"['{escaped}']"


@dataclass(frozen=True)
class Index:
    index: int

    def __str__(self) -> str:
        return f"[{self.index}]"


@dataclass(frozen=True)
class Wildcard:
    def __str__(self) -> str:
        return "[*]"


Segment = Union[Field, Index, Wildcard]


# ── Locations ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class NodeLocation:
    """
    One matched node. ``parent`` is the containing dict or list and ``key``
    the field name or index within it; both are None for the root.
    """
    parent: dict | list | None
    key: str | int | None
    value: Any
    type: NodeType
    path: str

    @property
    def is_root(self) -> bool:
        return self.parent is None


# ── Expression ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PathExpression:
    """An immutable, precompiled path. Carries no per-call state."""
    segments: tuple[Segment, ...]

    @classmethod
    def compile(cls, text: str, max_length: int = 1024) -> "PathExpression":
        if not isinstance(text, str):
            raise PathSyntaxError(repr(text), "path must be a string")
        if len(text) > max_length:
            raise PathSyntaxError(text, f"longer than {max_length} characters")
        return cls(tuple(_Parser(text).parse()))

    @property
    def is_root(self) -> bool:
        return not self.segments

    def __str__(self) -> str:
        return ROOT + "".join(str(segment) for segment in self.segments)


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def fail(self, reason: str, position: int | None = None) -> PathSyntaxError:
        return PathSyntaxError(
            self.text, reason, self.pos if position is None else position
        )

    def parse(self) -> list[Segment]:
        text = self.text
        if not text.startswith(ROOT):
            raise self.fail("path must start with '$'", 0)
        self.pos = 1
        segments: list[Segment] = []
        while self.pos < len(text):
            char = text[self.pos]
            if char == ".":
                segments.append(self._dotted())
            elif char == "[":
                segments.append(self._bracketed())
            else:
                raise self.fail(f"unexpected character {char!r}")
        return segments

    def _dotted(self) -> Segment:
        text = self.text
        self.pos += 1
        if self.pos < len(text) and text[self.pos] == ".":
            raise self.fail("recursive descent '..' is not supported")
        end = self.pos
        while end < len(text) and text[end] not in ".[":
            end += 1
        name = text[self.pos:end]
        if not name:
            raise self.fail("empty field name")
        self.pos = end
        if name == "*":
            return Wildcard()
        return Field(name)

    def _bracketed(self) -> Segment:
        text = self.text
        start = self.pos
        self.pos += 1
        if self.pos < len(text) and text[self.pos] in "'\"":
            name = self._quoted(text[self.pos])
            if self.pos >= len(text) or text[self.pos] != "]":
                raise self.fail("expected ']' after quoted name")
            self.pos += 1
            return Field(name)

        close = text.find("]", self.pos)
        if close == -1:
            raise self.fail("unclosed '['", start)
        token = text[self.pos:close].strip()
        self.pos = close + 1
        if token == "*":
            return Wildcard()
        if _INDEX_RE.match(token):
            return Index(int(token))
        raise self.fail(f"invalid bracket token {token!r}", start)

    def _quoted(self, quote: str) -> str:
        text = self.text
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(text):
            char = text[self.pos]
            if char == "\\" and self.pos + 1 < len(text):
                chars.append(text[self.pos + 1])
                self.pos += 2
                continue
            if char == quote:
                self.pos += 1
                return "".join(chars)
            chars.append(char)
            self.pos += 1
        raise self.fail("unterminated quoted name", start)


# ── Matcher ───────────────────────────────────────────────────────────────────

class PathMatcher:
    """
    Resolves one PathExpression against documents. Every call to
    ``resolve`` walks the tree again and yields matches lazily, in
    document order.
    """

    __slots__ = ("expression",)

    def __init__(self, expression: PathExpression) -> None:
        self.expression = expression

    def resolve(self, document: Document) -> Iterator[NodeLocation]:
        yield from _walk(None, None, document.root, ROOT, self.expression.segments)

    def __repr__(self) -> str:
        return f"PathMatcher({str(self.expression)!r})"


def _walk(
    parent: dict | list | None,
    key: str | int | None,
    value: Any,
    path: str,
    segments: tuple[Segment, ...],
) -> Iterator[NodeLocation]:
    if not segments:
        yield NodeLocation(parent, key, value, node_type(value), path)
        return

    head, rest = segments[0], segments[1:]
    for child_key, child in _children(head, value):
        yield from _walk(value, child_key, child, _join(path, child_key), rest)


def _children(segment: Segment, value: Any) -> Iterator[tuple[str | int, Any]]:
    if isinstance(segment, Field):
        if isinstance(value, dict) and segment.name in value:
            yield segment.name, value[segment.name]
    elif isinstance(segment, Index):
        if isinstance(value, list):
            index = segment.index + len(value) if segment.index < 0 else segment.index
            if 0 <= index < len(value):
                yield index, value[index]
    elif isinstance(value, dict):
        yield from list(value.items())
    elif isinstance(value, list):
        yield from list(enumerate(value))


def _join(path: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return path + str(Field(key))


__all__ = [
    "PathExpression",
    "PathMatcher",
    "NodeLocation",
    "Field",
    "Index",
    "Wildcard",
    "ROOT",
]
