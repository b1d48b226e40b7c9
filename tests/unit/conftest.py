"""Shared fixtures for unit tests."""

import asyncio
import os
from collections.abc import Generator
from typing import Any

import pytest
from pytest_mock import MockerFixture, MockType

from mercury.client.request import Request
from mercury.core.config import LogConfig, Settings, get_settings
from mercury.core.context import RequestContext
from mercury.core.error_context import _get_sensitive_fields
from mercury.infrastructure.transport import TransportResult


class FakeTransport:
    """In-memory transport returning a fixed result.

    When ``gate`` is given, ``send`` blocks until the event is set, which
    keeps the request in flight for cancellation tests.
    """

    def __init__(
        self,
        result: TransportResult | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.result = result or TransportResult(None, None)
        self.gate = gate
        self.sent: list[Request] = []

    async def send(self, request: Request) -> TransportResult:
        self.sent.append(request)
        if self.gate is not None:
            await self.gate.wait()
        return self.result


class CompletionRecorder:
    """Completion callback recording every invocation."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, Any]] = []
        self.called = asyncio.Event()

    def __call__(self, value: Any, error: Any) -> None:  # noqa: ANN401
        self.calls.append((value, error))
        self.called.set()


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Provide a transport that succeeds with no body.

    Returns:
        FakeTransport: Transport whose result tests can replace.
    """
    return FakeTransport()


@pytest.fixture
def recorder() -> CompletionRecorder:
    """Provide a completion callback that records its calls.

    Returns:
        CompletionRecorder: The recording callback.
    """
    return CompletionRecorder()


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Provide a real Settings object built from test environment variables.

    Returns:
        Settings: Settings with test defaults.
    """
    monkeypatch.setenv("MERCURY_APP_NAME", "TestApp")
    monkeypatch.setenv("MERCURY_APP_VERSION", "1.0.0")
    monkeypatch.setenv("MERCURY_ENVIRONMENT", "development")
    monkeypatch.setenv("MERCURY_DEBUG", "false")
    return Settings()


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear cached settings before and after each test to ensure isolation."""
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[pytest.MonkeyPatch]:
    """Remove Mercury environment variables so tests start from defaults.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    for key in list(os.environ.keys()):
        if key.startswith("MERCURY_"):
            monkeypatch.delenv(key, raising=False)
    for key in ("K_SERVICE", "AWS_EXECUTION_ENV"):
        monkeypatch.delenv(key, raising=False)

    yield monkeypatch


@pytest.fixture(autouse=True)
def clean_context() -> Generator[None]:
    """Clear the correlation context before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture
def mock_get_settings(mocker: MockerFixture) -> MockType:
    """Mock get_settings in error_context with custom sensitive fields.

    Args:
        mocker: Pytest mocker fixture.

    Returns:
        MockType: Mock get_settings function.
    """
    mock_settings = mocker.Mock(spec=Settings)
    mock_log_config = mocker.Mock(spec=LogConfig)
    mock_log_config.sensitive_fields = ["custom_secret", "my_password", "tenant"]
    mock_settings.log_config = mock_log_config

    mock_get_settings_fn = mocker.patch("mercury.core.error_context.get_settings")
    mock_get_settings_fn.return_value = mock_settings

    _get_sensitive_fields.cache_clear()

    return mock_get_settings_fn
