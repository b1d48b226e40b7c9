"""HTTP transport boundary.

The dispatcher consumes any object satisfying :class:`Transport`: an async
``send`` that resolves one request into a :class:`TransportResult`. A
transport reports failures by returning them in the ``error`` slot, not by
raising, so that a response body and a failure can be delivered together.

:class:`HttpxTransport` is the default implementation. Connection pooling,
TLS, proxies and redirects are all left to ``httpx``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple, Protocol, Self, runtime_checkable

import httpx
from loguru import logger

from mercury.core.config import TransportConfig, get_settings
from mercury.core.constants import HTTP_ERROR_STATUS_THRESHOLD, USER_AGENT_HEADER

if TYPE_CHECKING:
    from types import TracebackType

    from mercury.client.request import Request


class TransportResult(NamedTuple):
    """Raw outcome of one transport call.

    Attributes:
        data: Response body bytes; None when there is no body.
        error: Transport-level failure; None when the call succeeded.
    """

    data: bytes | None
    error: BaseException | None


@runtime_checkable
class Transport(Protocol):
    """Capability that sends one request and yields its raw outcome."""

    async def send(self, request: Request) -> TransportResult:
        """Send ``request`` once and return its body and failure, if any."""
        ...


def build_async_client(config: TransportConfig | None = None) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` configured from ``TransportConfig``.

    Args:
        config: Transport configuration. Defaults to the configured settings.

    Returns:
        httpx.AsyncClient: A client with timeout, redirect policy and
            User-Agent applied.
    """
    config = config or get_settings().transport_config
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.timeout_seconds),
        follow_redirects=config.follow_redirects,
        headers={USER_AGENT_HEADER: config.user_agent},
    )


class HttpxTransport:
    """Default transport on top of ``httpx.AsyncClient``.

    Outcomes map onto :class:`TransportResult` as follows:

    - network or protocol failure: ``(None, httpx.HTTPError)``
    - status >= 400 (when ``treat_error_status_as_failure`` is enabled):
      ``(body, httpx.HTTPStatusError)``
    - anything else: ``(body, None)``

    Empty bodies are reported as ``None``.

    Args:
        config: Transport configuration. Defaults to the configured settings.
        client: An existing client to send through. A client passed in is
            not closed by :meth:`aclose`.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_settings().transport_config
        self._owns_client = client is None
        self._client = client or build_async_client(self.config)

    async def send(self, request: Request) -> TransportResult:
        """Send ``request`` through the httpx client.

        Args:
            request: The fully built request.

        Returns:
            TransportResult: The response body and the failure, if any.
        """
        try:
            response = await self._client.send(request.to_httpx(self._client))
        except httpx.HTTPError as e:
            logger.debug(
                "Transport failed: {}", type(e).__name__, error_type=type(e).__name__
            )
            return TransportResult(None, e)

        data = response.content or None
        logger.debug(
            "Transport received response",
            status_code=response.status_code,
            content_length=len(response.content),
        )

        if (
            self.config.treat_error_status_as_failure
            and response.status_code >= HTTP_ERROR_STATUS_THRESHOLD
        ):
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                return TransportResult(data, e)

        return TransportResult(data, None)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        """Enter the transport context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Close the transport on exit."""
        await self.aclose()
