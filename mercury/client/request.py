"""Mutable, chainable HTTP request descriptor.

A :class:`Request` is created by :meth:`mercury.client.api.API.create_request`
and then refined by the caller through chained mutators before being handed
to :meth:`~mercury.client.api.API.fetch`::

    request = (
        weather.create_request(Forecast.DAILY, {"city": "Oslo"})
        .set_method(HTTPMethod.POST)
        .set_authorization(f"Bearer {token}")
        .set_body({"days": 3})
    )

Every mutator changes the instance in place and returns it; nothing is ever
copied. A request belongs to the code that created it until it is passed to
``fetch``, after which it must not be touched.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any, Self

import httpx
import orjson

from mercury.core.constants import AUTHORIZATION_HEADER
from mercury.core.exceptions import BodyEncodingError
from mercury.core.types import StructuredBody


class HTTPMethod(StrEnum):
    """HTTP methods a request can be sent with."""

    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"
    PUT = "PUT"
    UPDATE = "UPDATE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    TRACE = "TRACE"
    CONNECT = "CONNECT"
    PATCH = "PATCH"


class Request:
    """HTTP request under construction.

    Holds the absolute URL, the method (GET until changed), case-insensitive
    headers where the last write for a field wins, and at most one body.

    Args:
        url: Absolute request URL, already resolved and query-encoded.
        method: Initial HTTP method.
    """

    __slots__ = ("_body", "_headers", "method", "url")

    def __init__(self, url: str, method: HTTPMethod = HTTPMethod.GET) -> None:
        self.url = url
        self.method = method
        self._headers = httpx.Headers()
        self._body: bytes | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Copy of the current headers, keyed by lowercased field name."""
        return dict(self._headers.items())

    @property
    def body(self) -> bytes | None:
        """The active body, if any."""
        return self._body

    def header(self, field: str) -> str | None:
        """Current value of a header field (case-insensitive lookup)."""
        return self._headers.get(field)

    def set_method(self, method: HTTPMethod | str) -> Self:
        """Set the HTTP method.

        Args:
            method: An HTTPMethod or its string value (case-insensitive).

        Returns:
            Self: This request, for chaining.

        Raises:
            ValueError: If ``method`` is not one of the supported methods.
        """
        self.method = HTTPMethod(method.upper())
        return self

    def set_header(self, value: str, field: str) -> Self:
        """Set a header, replacing any value already present for ``field``.

        Args:
            value: Header value.
            field: Header field name (case-insensitive).

        Returns:
            Self: This request, for chaining.
        """
        self._headers[field] = value
        return self

    def set_authorization(self, token: str) -> Self:
        """Set the ``Authorization`` header.

        Args:
            token: Full header value, e.g. ``"Bearer abc"``.

        Returns:
            Self: This request, for chaining.
        """
        return self.set_header(token, AUTHORIZATION_HEADER)

    def remove_header(self, field: str) -> Self:
        """Remove a header if present.

        Args:
            field: Header field name (case-insensitive).

        Returns:
            Self: This request, for chaining.
        """
        if field in self._headers:
            del self._headers[field]
        return self

    def set_body(self, body: bytes | StructuredBody | None) -> Self:
        """Replace the request body.

        Raw bytes are used as-is. A mapping, or a sequence of mappings, is
        serialized to JSON. ``None`` clears the body.

        Args:
            body: The new body.

        Returns:
            Self: This request, for chaining.

        Raises:
            BodyEncodingError: If a structured body cannot be serialized.
                The previous body is kept in that case.
        """
        if body is None:
            self._body = None
        elif isinstance(body, bytes | bytearray | memoryview):
            self._body = bytes(body)
        else:
            self._body = _encode_structured(body)
        return self

    def to_httpx(self, client: httpx.AsyncClient | None = None) -> httpx.Request:
        """Build the ``httpx.Request`` sent by the default transport.

        Args:
            client: When given, the request is built through the client so its
                default headers and timeout apply. Headers set on this
                request take precedence over the client defaults.

        Returns:
            httpx.Request: The equivalent httpx request.
        """
        if client is not None:
            return client.build_request(
                self.method.value,
                self.url,
                headers=self._headers,
                content=self._body,
            )
        return httpx.Request(
            self.method.value,
            self.url,
            headers=self._headers,
            content=self._body,
        )

    def __repr__(self) -> str:
        """Return a representation without header values or body contents."""
        body_str = f", body={len(self._body)} bytes" if self._body is not None else ""
        return (
            f"Request(method={self.method.value}, url='{self.url}', "
            f"headers={sorted(self._headers.keys())}{body_str})"
        )


def _encode_structured(body: Any) -> bytes:  # noqa: ANN401 - validated below
    """Serialize a mapping or a sequence of mappings to JSON bytes."""
    payload: dict[str, Any] | list[dict[str, Any]]
    if isinstance(body, Mapping):
        payload = dict(body)
    elif isinstance(body, Sequence) and not isinstance(body, str):
        if not all(isinstance(item, Mapping) for item in body):
            raise BodyEncodingError(
                "Body sequences must contain only mappings",
                context={"body_type": type(body).__name__},
            )
        payload = [dict(item) for item in body]
    else:
        raise BodyEncodingError(
            f"Unsupported body type: {type(body).__name__}",
            context={"body_type": type(body).__name__},
        )

    try:
        return orjson.dumps(payload)
    except orjson.JSONEncodeError as e:
        raise BodyEncodingError(
            f"Body is not JSON-serializable: {e}",
            context={"body_type": type(body).__name__},
            cause=e,
        ) from e
