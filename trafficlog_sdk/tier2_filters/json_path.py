"""
trafficlog_sdk.tier2_filters.json_path
───────────────────────────────────────
Path-addressed JSON body filters.

Usage:
    from trafficlog_sdk import json_path, merge

    body_filter = merge(
        json_path("$.password").delete(),
        json_path("$.cards[*].number").replace_matches(r"\\d(?=\\d{4})", "*"),
    )
    logged = body_filter.apply("application/json", raw_body)

Each filter parses the body once, runs every (path, operation) step it
holds against that one document, and serializes once. Filters built from
the same configuration merge into a single filter; anything else is
reported as not mergeable.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from trafficlog_sdk.tier0_core.config import FilterConfig, get_config
from trafficlog_sdk.tier0_core.errors import InvalidModificationError, MalformedDocumentError
from trafficlog_sdk.tier0_core.logging import get_logger
from trafficlog_sdk.tier1_runtime.document import Document
from trafficlog_sdk.tier1_runtime.media_type import is_json
from trafficlog_sdk.tier1_runtime.mutation import (
    Delete,
    JsonLiteral,
    Operation,
    PatternLike,
    ReplacePattern,
    ReplaceStatic,
    Transform,
)
from trafficlog_sdk.tier1_runtime.path import PathExpression, PathMatcher
from trafficlog_sdk.tier2_filters.body_filter import BodyFilter


# ── Filter ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Step:
    matcher: PathMatcher
    operation: Operation

    @property
    def path(self) -> str:
        return str(self.matcher.expression)


@dataclass(frozen=True)
class JsonPathBodyFilter(BodyFilter):
    """
    An ordered sequence of (path, operation) steps sharing one parse and one
    serialization per body. A filter built by ``JsonPath`` holds one step;
    merging concatenates steps.
    """

    steps: tuple[Step, ...]
    config: FilterConfig

    def apply(self, media_type: str | None, body: str) -> str:
        if not is_json(media_type):
            return body

        log = get_logger(__name__, self.config)
        try:
            document = Document.parse(body, self.config)
        except MalformedDocumentError as exc:
            log.warning(
                "json_filter.malformed_document",
                paths=self.paths,
                media_type=media_type,
                reason=exc.detail,
            )
            raise

        changed_total = 0
        for step in self.steps:
            # resolve fully before mutating; deletions would shift a live walk
            locations = list(step.matcher.resolve(document))
            changed = step.operation.apply(document, locations)
            log.debug(
                "json_filter.applied",
                path=step.path,
                operation=step.operation.name,
                matches=len(locations),
                changed=changed,
            )
            changed_total += changed

        if not changed_total:
            return body
        return document.serialize()

    def try_merge(self, other: BodyFilter) -> "JsonPathBodyFilter | None":
        if not isinstance(other, JsonPathBodyFilter):
            return None
        if other.config != self.config:
            return None
        return JsonPathBodyFilter(self.steps + other.steps, self.config)

    @property
    def paths(self) -> list[str]:
        return [step.path for step in self.steps]

    def __repr__(self) -> str:
        steps = ", ".join(f"{step.path}:{step.operation.name}" for step in self.steps)
        return f"JsonPathBodyFilter({steps})"


# ── Builder ───────────────────────────────────────────────────────────────────

class JsonPath:
    """
    A compiled path waiting for an operation. Path syntax errors surface
    here, when the filter is configured, not when a body is logged.
    """

    __slots__ = ("expression", "config")

    def __init__(self, path: str, config: FilterConfig | None = None) -> None:
        self.config = config if config is not None else get_config()
        self.expression = PathExpression.compile(path, self.config.max_path_length)

    def delete(self) -> JsonPathBodyFilter:
        """Remove every matched node from its parent."""
        if self.expression.is_root:
            raise InvalidModificationError(
                user_message="The document root cannot be deleted.",
                path=str(self.expression),
            )
        return self._filter(Delete())

    def replace(self, value: JsonLiteral) -> JsonPathBodyFilter:
        """Replace every matched node with *value*, keeping its JSON type."""
        return self._filter(ReplaceStatic(value))

    def replace_matches(self, pattern: PatternLike, template: str) -> JsonPathBodyFilter:
        """
        Regex-substitute matched nodes. The template takes ``$1`` or ``\\1``
        style group references. Strings are substituted in place; any other
        node is substituted as its JSON text and becomes a string. Unmatched nodes are left alone.
        """
        return self._filter(ReplacePattern(pattern, template))

    def transform(
        self,
        function: Callable[[str], str],
        pattern: PatternLike | None = None,
    ) -> JsonPathBodyFilter:
        """Replace matched strings with ``function(value)``."""
        return self._filter(Transform(function, pattern))

    def _filter(self, operation: Operation) -> JsonPathBodyFilter:
        step = Step(PathMatcher(self.expression), operation)
        return JsonPathBodyFilter((step,), self.config)

    def __repr__(self) -> str:
        return f"json_path({str(self.expression)!r})"


def json_path(path: str, config: FilterConfig | None = None) -> JsonPath:
    """Start a path-addressed filter; finish it with an operation."""
    return JsonPath(path, config)


__all__ = ["JsonPath", "JsonPathBodyFilter", "Step", "json_path"]
