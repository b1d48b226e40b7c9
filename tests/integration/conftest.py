"""Shared fixtures for integration tests."""

import os
from collections.abc import Generator

import pytest

from mercury.core.config import get_settings
from mercury.core.context import RequestContext


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run each test with default settings and no correlation ID."""
    for key in list(os.environ.keys()):
        if key.startswith("MERCURY_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    RequestContext.clear()
    yield
    RequestContext.clear()
    get_settings.cache_clear()
