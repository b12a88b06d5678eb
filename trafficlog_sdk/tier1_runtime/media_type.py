"""
trafficlog_sdk.tier1_runtime.media_type
────────────────────────────────────────
Media-type gate. A body is JSON-shaped when its declared content type is
``application/json`` or carries a ``+json`` structured-syntax suffix
(``application/problem+json``, ``application/vnd.api+json``). Parameters
such as ``charset`` and letter case are ignored. Everything else passes
through the filters verbatim.
"""
from __future__ import annotations

from functools import lru_cache

_JSON_TYPE = "application"
_JSON_SUBTYPE = "json"
_JSON_SUFFIX = "+json"


@lru_cache(maxsize=256)
def is_json(media_type: str | None) -> bool:
    """Return True if *media_type* declares a JSON body."""
    if not media_type:
        return False

    essence = media_type.split(";", 1)[0].strip().lower()
    type_, sep, subtype = essence.partition("/")
    if not sep or not type_ or not subtype:
        return False

    if type_ == _JSON_TYPE and subtype == _JSON_SUBTYPE:
        return True
    return subtype.endswith(_JSON_SUFFIX) and len(subtype) > len(_JSON_SUFFIX)


__all__ = ["is_json"]
