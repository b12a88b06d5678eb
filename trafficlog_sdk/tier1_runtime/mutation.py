"""
trafficlog_sdk.tier1_runtime.mutation
──────────────────────────────────────
Mutation operations applied to every node a path matches.

    Delete           remove the node from its parent
    ReplaceStatic    put a typed literal in its place
    ReplacePattern   regex substitution with a template; non-string nodes
                     are substituted as their serialized JSON text and come
                     out as a string
    Transform        str -> str function over string nodes only

Operations are immutable values. ``apply`` mutates the Document it is given
and returns how many nodes it changed.
"""
from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, ClassVar, Sequence, Union

from trafficlog_sdk.tier0_core.errors import (
    InvalidModificationError,
    InvalidReplacementError,
    UnsupportedDynamicTargetError,
)
from trafficlog_sdk.tier1_runtime.document import (
    Document,
    NodeType,
    canonical_number,
    dumps,
)
from trafficlog_sdk.tier1_runtime.path import NodeLocation

JsonLiteral = Union[str, int, float, bool]
PatternLike = Union[str, re.Pattern]


# ── Base ──────────────────────────────────────────────────────────────────────

class Operation(ABC):
    name: ClassVar[str]

    @abstractmethod
    def apply(self, document: Document, locations: Sequence[NodeLocation]) -> int:
        """Mutate *document* at every location; return the number changed."""


def _put(document: Document, location: NodeLocation, value: object) -> None:
    if location.is_root:
        document.root = value
    else:
        location.parent[location.key] = value  # type: ignore[index]


_DOLLAR_REFERENCE = re.compile(r"\\\$|\\.|\$(\d+)|\$\{(\w+)\}", re.DOTALL)


def _dollar_reference(match: "re.Match[str]") -> str:
    if match.group(0) == "\\$":
        return "$"
    if match.group(1) is not None:
        return f"\\g<{match.group(1)}>"
    if match.group(2) is not None:
        return f"\\g<{match.group(2)}>"
    return match.group(0)


def normalize_template(template: str) -> str:
    """
    Rewrite ``$1`` and ``${name}`` group references into ``re`` syntax.
    ``\\$`` is a literal dollar sign; ``\\1`` and other escapes pass through.
    """
    return _DOLLAR_REFERENCE.sub(_dollar_reference, template)


def compile_pattern(pattern: PatternLike) -> "re.Pattern[str]":
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except (re.error, TypeError) as exc:
        raise InvalidReplacementError(
            user_message=f"Invalid replacement pattern {pattern!r}.",
            detail=str(exc),
        ) from exc


# ── Delete ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Delete(Operation):
    name: ClassVar[str] = "delete"

    def apply(self, document: Document, locations: Sequence[NodeLocation]) -> int:
        # Matches arrive in document order, so walking them backwards removes
        # higher array indices first and earlier indices stay valid.
        for location in reversed(locations):
            if location.is_root:
                raise InvalidModificationError(
                    user_message="The document root cannot be deleted.",
                    path=location.path,
                )
            del location.parent[location.key]  # type: ignore[arg-type]
        return len(locations)


# ── ReplaceStatic ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReplaceStatic(Operation):
    name: ClassVar[str] = "replace"

    value: JsonLiteral

    def __post_init__(self) -> None:
        value = self.value
        if not isinstance(value, (str, int, float)):
            raise InvalidReplacementError(
                user_message=(
                    "Static replacements must be a string, number or boolean, "
                    f"got {type(value).__name__}."
                ),
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise InvalidReplacementError(
                user_message=f"Static replacement {value!r} is not a finite number.",
            )
        if not isinstance(value, bool) and isinstance(value, (int, float)):
            object.__setattr__(self, "value", canonical_number(value))

    def apply(self, document: Document, locations: Sequence[NodeLocation]) -> int:
        for location in locations:
            _put(document, location, self.value)
        return len(locations)


# ── ReplacePattern ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ReplacePattern(Operation):
    """
    Substitute every occurrence of ``pattern`` using a template with
    ``$1`` / ``${name}`` or ``re`` style (``\\1``, ``\\g<name>``) group
    references. A node the pattern does not match is left
    exactly as it was, whatever its type.
    """

    name: ClassVar[str] = "replace_matches"

    pattern: "re.Pattern[str]"
    template: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", compile_pattern(self.pattern))
        if not isinstance(self.template, str):
            raise InvalidReplacementError(
                user_message="Replacement template must be a string.",
            )
        object.__setattr__(self, "template", normalize_template(self.template))
        try:
            # compiles the template, catching bad group references early
            self.pattern.sub(self.template, "")
        except (re.error, IndexError) as exc:
            raise InvalidReplacementError(
                user_message=f"Invalid replacement template {self.template!r}.",
                detail=str(exc),
            ) from exc

    def apply(self, document: Document, locations: Sequence[NodeLocation]) -> int:
        changed = 0
        for location in locations:
            subject = self._subject(document, location)
            if not self.pattern.search(subject):
                continue
            _put(document, location, self.pattern.sub(self.template, subject))
            changed += 1
        return changed

    @staticmethod
    def _subject(document: Document, location: NodeLocation) -> str:
        node = location.type
        if node is NodeType.STRING:
            return location.value
        if node.is_container:
            return dumps(location.value, document.config)
        if node in (NodeType.NUMBER, NodeType.BOOLEAN, NodeType.NULL):
            return dumps(location.value, document.config)
        raise AssertionError(f"unhandled node type {node}")


# ── Transform ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Transform(Operation):
    """
    Replace string nodes with ``function(value)``. With a ``pattern``, only
    strings containing a match are transformed. Non-string nodes have no
    textual form to hand to the function and fail the invocation.
    """

    name: ClassVar[str] = "transform"

    function: Callable[[str], str]
    pattern: "re.Pattern[str] | None" = None

    def __post_init__(self) -> None:
        if not callable(self.function):
            raise InvalidReplacementError(
                user_message="Transform requires a callable taking and returning a string.",
            )
        if self.pattern is not None:
            object.__setattr__(self, "pattern", compile_pattern(self.pattern))

    def apply(self, document: Document, locations: Sequence[NodeLocation]) -> int:
        changed = 0
        for location in locations:
            if location.type is not NodeType.STRING:
                raise UnsupportedDynamicTargetError(location.path, location.type.value)
            if self.pattern is not None and not self.pattern.search(location.value):
                continue
            result = self.function(location.value)
            if not isinstance(result, str):
                raise InvalidReplacementError(
                    user_message=(
                        f"Transform at {location.path!r} returned "
                        f"{type(result).__name__}, expected str."
                    ),
                )
            _put(document, location, result)
            changed += 1
        return changed


__all__ = [
    "Operation",
    "Delete",
    "ReplaceStatic",
    "ReplacePattern",
    "Transform",
    "compile_pattern",
]
