"""Root conftest.py for the Consecutivo test suite."""

import os
from collections.abc import Generator

import pytest

# Settings are read on first use; keep test runs free of exporters
os.environ.setdefault("OBSERVABILITY_CONFIG__ENABLE_TRACING", "false")
os.environ.setdefault("LOG_CONFIG__LOG_LEVEL", "WARNING")

from src.core.config import get_settings  # noqa: E402
from src.core.context import RequestContext  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Rebuild settings from the environment for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    RequestContext.clear()
    yield
    RequestContext.clear()
