"""
trafficlog_sdk test configuration.

Env defaults are pinned before any trafficlog_sdk module reads them, so a
developer's shell or .env cannot change filter output under test.
"""
from __future__ import annotations

import os

import pytest

# ── Force deterministic settings for all tests ────────────────────────────
# These must be set before any trafficlog_sdk modules are imported.

os.environ.setdefault("TRAFFICLOG_LOG_LEVEL", "DEBUG")
os.environ.setdefault("TRAFFICLOG_LOG_FORMAT", "console")
os.environ["TRAFFICLOG_COMPACT"] = "true"
os.environ["TRAFFICLOG_ENSURE_ASCII"] = "false"
os.environ["TRAFFICLOG_ALLOW_NAN"] = "false"

STUDENT = """{
  "id": 1,
  "name": "Alice",
  "friends": [
    {"id": 2, "name": "Bob"},
    {"id": 3, "name": "Charlie"}
  ],
  "grades": {
    "Math": 1.0,
    "English": 2.2,
    "Science": 1.9,
    "PE": 4.0
  }
}
"""


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config_cache():
    """Each test sees a config built from the current environment."""
    from trafficlog_sdk.tier0_core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def student() -> str:
    """A small JSON document with strings, numbers, an array and an object."""
    return STUDENT


@pytest.fixture
def config():
    """A fresh config independent of the cached default."""
    from trafficlog_sdk.tier0_core.config import FilterConfig
    return FilterConfig()
