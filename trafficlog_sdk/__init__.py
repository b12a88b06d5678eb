"""
trafficlog_sdk
──────────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from trafficlog_sdk.tier0_core.logging import get_logger
from trafficlog_sdk.tier0_core.errors import (
    FilterError,
    PathSyntaxError,
    InvalidReplacementError,
    InvalidModificationError,
    ConfigurationError,
    MalformedDocumentError,
    UnsupportedDynamicTargetError,
)
from trafficlog_sdk.tier0_core.config import get_config, FilterConfig

from trafficlog_sdk.tier1_runtime.media_type import is_json
from trafficlog_sdk.tier1_runtime.document import Document, NodeType
from trafficlog_sdk.tier1_runtime.path import PathExpression, PathMatcher, NodeLocation

from trafficlog_sdk.tier2_filters.body_filter import (
    BodyFilter,
    ChainedBodyFilter,
    merge,
    no_op,
)
from trafficlog_sdk.tier2_filters.json_path import JsonPath, JsonPathBodyFilter, json_path
from trafficlog_sdk.tier2_filters.json_properties import (
    JsonPropertyBodyFilter,
    access_token,
    default_json_filter,
    replace_json_string_property,
    replace_primitive_json_property,
)

__version__ = "0.1.0"
__all__ = [
    # logging
    "get_logger",
    # errors
    "FilterError", "PathSyntaxError", "InvalidReplacementError",
    "InvalidModificationError", "ConfigurationError",
    "MalformedDocumentError", "UnsupportedDynamicTargetError",
    # config
    "get_config", "FilterConfig",
    # media type
    "is_json",
    # document
    "Document", "NodeType",
    # path
    "PathExpression", "PathMatcher", "NodeLocation",
    # composition
    "BodyFilter", "ChainedBodyFilter", "merge", "no_op",
    # json path filters
    "JsonPath", "JsonPathBodyFilter", "json_path",
    # property filters
    "JsonPropertyBodyFilter", "access_token", "default_json_filter",
    "replace_json_string_property", "replace_primitive_json_property",
]
