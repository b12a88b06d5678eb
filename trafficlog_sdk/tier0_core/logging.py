"""
trafficlog_sdk.tier0_core.logging
──────────────────────────────────
Structured logs for the filter engine itself (not for the HTTP traffic being
filtered). Bodies are never passed to the logger; events carry paths,
operation names and match counts only.

The engine is embedded in other applications, so it never calls
``structlog.configure``: loggers are wrapped locally around the stdlib
``trafficlog_sdk`` logger, and the host's structlog setup is left alone.

Minimal stack: structlog (JSON or console renderer)
Configure via: TRAFFICLOG_LOG_LEVEL, TRAFFICLOG_LOG_FORMAT=json|console
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

from trafficlog_sdk.tier0_core.redact import structlog_redact_processor

if TYPE_CHECKING:
    from trafficlog_sdk.tier0_core.config import FilterConfig

LIBRARY_LOGGER = "trafficlog_sdk"

_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog_redact_processor,
]

_WRAP_PROCESSORS: list[Any] = [
    structlog.stdlib.filter_by_level,
    *_SHARED_PROCESSORS,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


# ── Configuration ─────────────────────────────────────────────────────────────

_handler: logging.Handler | None = None
_configured = False


def _default_config() -> "FilterConfig":
    from trafficlog_sdk.tier0_core.config import FilterConfig, get_config
    from trafficlog_sdk.tier0_core.errors import ConfigurationError

    try:
        return get_config()
    except ConfigurationError:
        # a bad TRAFFICLOG_* variable must not stop bodies from being filtered
        return FilterConfig.model_construct()


def _configure_library_logger(config: "FilterConfig") -> None:
    global _handler

    if config.log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    if _handler is not None:
        library_logger.removeHandler(_handler)
    library_logger.addHandler(handler)
    library_logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    library_logger.propagate = False
    _handler = handler


# ── Public API ────────────────────────────────────────────────────────────────

def get_logger(
    name: str | None = None,
    config: "FilterConfig | None" = None,
) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name. The first call sets
    up the library logger from *config*, or from the default config when
    none is given.

    Usage:
        log = get_logger(__name__, config)
        log.debug("json_filter.applied", path="$.name", matches=1)
    """
    global _configured
    if not _configured:
        _configure_library_logger(config if config is not None else _default_config())
        _configured = True
    return structlog.wrap_logger(
        logging.getLogger(name or LIBRARY_LOGGER),
        processors=_WRAP_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
    )


def bind_context(**kwargs: Any) -> None:
    """
    Bind key-value pairs to the current thread/async context, e.g. the
    correlation id of the exchange being logged.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context-bound log fields."""
    structlog.contextvars.clear_contextvars()


__all__ = ["get_logger", "bind_context", "clear_context", "LIBRARY_LOGGER"]
