"""API contract: request assembly bound to one API surface.

An :class:`API` couples an immutable :class:`APIConfig` (base URL and
customization hook) with the three capability contracts and a transport::

    weather = API[Forecast, dict[str, Any], APIError](
        APIConfig(
            base_url="https://api.weather.example/v2",
            customize=static_headers({"X-Api-Key": key}),
        ),
        transform=JSONObjectTransform(),
        error_converter=APIErrorConverter(),
    )

    request = weather.create_request(Forecast.DAILY, {"city": "Oslo"})
    task = weather.fetch(request, on_forecast)

The configuration is shared read-only by every request the API builds, so a
single ``API`` value can serve any number of concurrent dispatches.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from types import TracebackType
from typing import Final, Self
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from mercury.client.contracts import Endpoint, ErrorConvertible, Transformable
from mercury.client.dispatch import Completion, DataTask, Dispatcher, Outcome
from mercury.client.request import Request
from mercury.core.error_context import sanitize_url
from mercury.core.exceptions import MalformedRequestURLError
from mercury.core.types import QueryParameters
from mercury.infrastructure.transport import HttpxTransport, Transport

# Characters that can never appear in a base URL
_INVALID_BASE_URL_CHARS: Final[re.Pattern[str]] = re.compile(r"[\s\x00-\x1f\x7f]")

# Characters that can never appear in an endpoint path, even percent-encoded
_INVALID_PATH_CHARS: Final[re.Pattern[str]] = re.compile(r"[\x00-\x1f\x7f]")

# Path characters left as-is when encoding an endpoint path (RFC 3986 pchar + "/")
_PATH_SAFE_CHARS: Final[str] = "/:@!$&'()*+,;=-._~"


class APIConfig(BaseModel):
    """Immutable per-API configuration.

    Attributes:
        base_url: Absolute URL endpoint paths are appended to.
        customize: Hook called with every newly created request, before the
            caller's own mutators run. It mutates the request in place (API
            keys, content type, app identifiers) and returns nothing.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(
        min_length=1,
        description="Absolute URL which endpoint paths are appended to",
    )
    customize: Callable[[Request], None] | None = Field(
        default=None,
        description="Hook applied to every request when it is created",
    )


def resolve_url(
    base_url: str,
    path: str,
    query_parameters: QueryParameters | None = None,
) -> str:
    """Resolve an endpoint path and query parameters against a base URL.

    The path is appended as a path component with exactly one ``/`` at the
    join and is percent-encoded; the base URL is used as given. Non-empty
    query parameters are percent-encoded into ``key=value`` pairs joined with
    ``&`` and follow any query the base URL already has.

    Args:
        base_url: Absolute base URL with scheme and host.
        path: Endpoint path fragment.
        query_parameters: Parameters to encode into the query string.

    Returns:
        str: The absolute request URL.

    Raises:
        MalformedRequestURLError: If the base URL or the path cannot form a URL.

    Examples:
        >>> resolve_url("https://api.example.com/v1/", "/users", {"q": "a b"})
        'https://api.example.com/v1/users?q=a%20b'
        >>> resolve_url("https://api.example.com", "status", {})
        'https://api.example.com/status'
    """
    context = {"base_url": base_url, "path": path}

    if _INVALID_BASE_URL_CHARS.search(base_url):
        raise MalformedRequestURLError(
            "Base URL contains whitespace or control characters", context=context
        )
    if _INVALID_PATH_CHARS.search(path):
        raise MalformedRequestURLError(
            "Endpoint path contains control characters", context=context
        )

    try:
        parts = urlsplit(base_url)
        _ = parts.port  # validates the port
    except ValueError as e:
        raise MalformedRequestURLError(
            f"Base URL cannot be parsed: {e}", context=context, cause=e
        ) from e

    if not parts.scheme or not parts.hostname:
        raise MalformedRequestURLError(
            "Base URL must be absolute, with a scheme and a host", context=context
        )

    fragment = quote(path.lstrip("/"), safe=_PATH_SAFE_CHARS)
    url_path = f"{parts.path.rstrip('/')}/{fragment}" if fragment else parts.path

    query = parts.query
    if query_parameters:
        encoded = urlencode(dict(query_parameters), quote_via=quote)
        query = f"{query}&{encoded}" if query else encoded

    return urlunsplit((parts.scheme, parts.netloc, url_path, query, parts.fragment))


class API[EndpointT: Endpoint, ResultT, ErrorT]:
    """Request construction and dispatch for one API surface.

    Args:
        config: Base URL and customization hook.
        transform: Decoder applied to every response body.
        error_converter: Converter applied to every transport failure.
        transport: Transport requests are sent over. Defaults to an
            :class:`~mercury.infrastructure.transport.HttpxTransport` owned
            (and closed) by this API.
    """

    def __init__(
        self,
        config: APIConfig,
        *,
        transform: Transformable[ResultT],
        error_converter: ErrorConvertible[ErrorT],
        transport: Transport | None = None,
    ) -> None:
        self.config = config
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport()
        self._dispatcher = Dispatcher(self.transport, transform, error_converter)

    def create_request(
        self,
        endpoint: EndpointT,
        query_parameters: QueryParameters | None = None,
    ) -> Request:
        """Build a GET request for ``endpoint`` under the base URL.

        The customization hook runs before the request is returned, so any
        header the caller sets afterwards overrides one set by the hook.

        Args:
            endpoint: The logical operation to call.
            query_parameters: Parameters to encode into the query string.

        Returns:
            Request: A new request, ready for chained mutators.

        Raises:
            MalformedRequestURLError: If the URL cannot be resolved.
        """
        url = resolve_url(self.config.base_url, endpoint.path, query_parameters)
        request = Request(url)
        if self.config.customize is not None:
            self.config.customize(request)

        logger.trace("Created request", url=sanitize_url(url))
        return request

    def fetch(
        self,
        request: Request,
        completion: Completion[ResultT, ErrorT] | None = None,
    ) -> DataTask[ResultT, ErrorT]:
        """Send ``request`` without blocking.

        Args:
            request: The request to send. It must not be reused or mutated
                afterwards.
            completion: Called exactly once with ``(value, error)``. Either
                slot may be None, and both may be set at once.

        Returns:
            DataTask[ResultT, ErrorT]: Cancellable, awaitable handle.
        """
        return self._dispatcher.fetch(request, completion)

    async def send(self, request: Request) -> Outcome[ResultT, ErrorT]:
        """Send ``request`` and wait for the ``(value, error)`` pair.

        Args:
            request: The request to send.

        Returns:
            Outcome[ResultT, ErrorT]: The decoded value and the domain error.
        """
        return await self.fetch(request)

    async def aclose(self) -> None:
        """Close the default transport if this API created it."""
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()

    async def __aenter__(self) -> Self:
        """Enter the API context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Close the API on exit."""
        await self.aclose()
