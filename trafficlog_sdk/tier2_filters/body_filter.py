"""
trafficlog_sdk.tier2_filters.body_filter
─────────────────────────────────────────
The body-filter contract consumed by the logging pipeline, plus sequential
composition for filters that cannot share a single document pass.

    apply(media_type, body) -> body'
    try_merge(other)        -> merged filter, or None when not mergeable

``merge(first, second)`` is what configuration code should call: it merges
when the two filters allow it and chains them otherwise.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class BodyFilter(ABC):
    """Stateless transform of a (media type, body) pair into a loggable body."""

    @abstractmethod
    def apply(self, media_type: str | None, body: str) -> str:
        ...

    def try_merge(self, other: "BodyFilter") -> "BodyFilter | None":
        """Return one filter doing the work of both, or None."""
        return None

    def __call__(self, media_type: str | None, body: str) -> str:
        return self.apply(media_type, body)


# ── Identity ──────────────────────────────────────────────────────────────────

class _NoOpBodyFilter(BodyFilter):
    def apply(self, media_type: str | None, body: str) -> str:
        return body

    def try_merge(self, other: BodyFilter) -> BodyFilter:
        return other

    def __repr__(self) -> str:
        return "no_op()"


_NO_OP = _NoOpBodyFilter()


def no_op() -> BodyFilter:
    """A filter that returns every body unchanged."""
    return _NO_OP


# ── Chaining ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChainedBodyFilter(BodyFilter):
    """Applies its filters one after another, each on the previous output."""

    filters: tuple[BodyFilter, ...]

    def __post_init__(self) -> None:
        if not self.filters:
            raise ValueError("ChainedBodyFilter needs at least one filter")

    def apply(self, media_type: str | None, body: str) -> str:
        for body_filter in self.filters:
            body = body_filter.apply(media_type, body)
        return body

    def try_merge(self, other: BodyFilter) -> BodyFilter:
        if isinstance(other, ChainedBodyFilter):
            result: BodyFilter = self
            for body_filter in other.filters:
                result = merge(result, body_filter)
            return result

        *head, last = self.filters
        merged = last.try_merge(other)
        if merged is None:
            return ChainedBodyFilter((*self.filters, other))
        return ChainedBodyFilter((*head, merged))


def merge(first: BodyFilter, second: BodyFilter) -> BodyFilter:
    """
    Combine two filters. Uses ``first.try_merge(second)`` when it succeeds,
    otherwise a ChainedBodyFilter running ``first`` then ``second``.
    """
    if second is _NO_OP:
        return first
    merged = first.try_merge(second)
    if merged is not None:
        return merged
    return ChainedBodyFilter((first, second))


__all__ = ["BodyFilter", "ChainedBodyFilter", "merge", "no_op"]
