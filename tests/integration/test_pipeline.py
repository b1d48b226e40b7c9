"""Integration tests for the request pipeline.

These tests wire a real API, Dispatcher and HttpxTransport together and
answer requests with ``httpx.MockTransport``, covering the path from
create_request to the completion callback.
"""

import asyncio
from enum import StrEnum
from typing import Any

import httpx
import orjson
import pytest
from pydantic import BaseModel

from mercury import (
    API,
    APIConfig,
    APIError,
    APIErrorConverter,
    HTTPMethod,
    JSONObjectTransform,
    ModelTransform,
    Route,
)
from mercury.client.hooks import chain_hooks, propagate_correlation_id, static_headers
from mercury.core.config import TransportConfig
from mercury.core.context import RequestContext
from mercury.infrastructure.transport import HttpxTransport

BASE_URL = "https://api.example.com/v1"


class Weather(StrEnum):
    """Endpoints of a small weather API."""

    FORECAST = "forecast"
    STATIONS = "stations"

    @property
    def path(self) -> str:
        return self.value


class Forecast(BaseModel):
    """Decoded forecast payload."""

    city: str
    temperature: float


class Server:
    """Fake server recording requests and answering from a route table."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match request.url.path:
            case "/v1/forecast":
                city = request.url.params.get("city", "unknown")
                return httpx.Response(200, json={"city": city, "temperature": 21.5})
            case "/v1/stations" if request.method == "POST":
                return httpx.Response(201, content=request.content)
            case _:
                return httpx.Response(404, content=b'{"detail":"no such endpoint"}')


@pytest.fixture
def server() -> Server:
    """Provide the fake server."""
    return Server()


@pytest.fixture
def transport(server: Server) -> HttpxTransport:
    """Provide an HttpxTransport whose client is served by the fake server."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    return HttpxTransport(TransportConfig(), client=client)


@pytest.mark.integration
@pytest.mark.timeout(10)
class TestPipeline:
    """Test the full request pipeline."""

    @pytest.mark.asyncio
    async def test_fetch_decodes_model(
        self, server: Server, transport: HttpxTransport
    ) -> None:
        """Test a GET with query parameters decodes into a model."""
        api = API[Weather, Forecast, APIError](
            APIConfig(base_url=BASE_URL),
            transform=ModelTransform(Forecast),
            error_converter=APIErrorConverter(),
            transport=transport,
        )

        value, error = await api.send(
            api.create_request(Weather.FORECAST, {"city": "São Paulo"})
        )

        assert error is None
        assert value == Forecast(city="São Paulo", temperature=21.5)
        assert server.requests[0].url.query == b"city=S%C3%A3o%20Paulo"

    @pytest.mark.asyncio
    async def test_hook_headers_reach_the_wire_and_caller_overrides(
        self, server: Server, transport: HttpxTransport
    ) -> None:
        """Test hook headers are sent and caller mutations win over them."""
        RequestContext.set_correlation_id("corr-123")
        api = API[Weather, dict[str, Any], APIError](
            APIConfig(
                base_url=BASE_URL,
                customize=chain_hooks(
                    static_headers(
                        {"X-Api-Key": "hook-key", "Accept": "application/json"}
                    ),
                    propagate_correlation_id,
                ),
            ),
            transform=JSONObjectTransform(),
            error_converter=APIErrorConverter(),
            transport=transport,
        )

        request = api.create_request(Weather.FORECAST).set_header(
            "caller-key", "X-Api-Key"
        )
        await api.send(request)

        sent = server.requests[0]
        assert sent.headers["x-api-key"] == "caller-key"
        assert sent.headers["accept"] == "application/json"
        assert sent.headers["x-correlation-id"] == "corr-123"

    @pytest.mark.asyncio
    async def test_post_body_is_sent(
        self, server: Server, transport: HttpxTransport
    ) -> None:
        """Test a structured body is encoded and echoed back."""
        api = API[Weather, dict[str, Any], APIError](
            APIConfig(base_url=BASE_URL),
            transform=JSONObjectTransform(),
            error_converter=APIErrorConverter(),
            transport=transport,
        )
        request = (
            api.create_request(Weather.STATIONS)
            .set_method(HTTPMethod.POST)
            .set_header("application/json", "Content-Type")
            .set_body({"name": "Pier 39", "active": True})
        )

        value, error = await api.send(request)

        assert error is None
        assert value == {"name": "Pier 39", "active": True}
        assert orjson.loads(server.requests[0].content) == value

    @pytest.mark.asyncio
    async def test_error_status_delivers_body_and_error(
        self, transport: HttpxTransport
    ) -> None:
        """Test a 404 delivers its decoded body alongside the wrapped error."""
        api = API[Route, dict[str, Any], APIError](
            APIConfig(base_url=BASE_URL),
            transform=JSONObjectTransform(),
            error_converter=APIErrorConverter(),
            transport=transport,
        )
        completions: list[tuple[Any, Any]] = []

        await api.fetch(
            api.create_request(Route("missing")),
            lambda value, error: completions.append((value, error)),
        )

        [(value, error)] = completions
        assert value == {"detail": "no such endpoint"}
        assert isinstance(error, APIError)
        assert isinstance(error.cause, httpx.HTTPStatusError)
        assert not error.is_cancelled

    @pytest.mark.asyncio
    async def test_network_failure_delivers_error_only(self) -> None:
        """Test a connection failure yields no value and a wrapped error."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        async with API[Weather, dict[str, Any], APIError](
            APIConfig(base_url=BASE_URL),
            transform=JSONObjectTransform(),
            error_converter=APIErrorConverter(),
            transport=HttpxTransport(TransportConfig(), client=client),
        ) as api:
            value, error = await api.send(api.create_request(Weather.FORECAST))

        assert value is None
        assert error is not None
        assert isinstance(error.cause, httpx.ConnectError)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cancel_in_flight_request(self) -> None:
        """Test cancelling a request waiting on the network completes once."""
        release = asyncio.Event()

        async def slow(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={})

        client = httpx.AsyncClient(transport=httpx.MockTransport(slow))
        api = API[Weather, dict[str, Any], APIError](
            APIConfig(base_url=BASE_URL),
            transform=JSONObjectTransform(),
            error_converter=APIErrorConverter(),
            transport=HttpxTransport(TransportConfig(), client=client),
        )
        completions: list[tuple[Any, Any]] = []

        task = api.fetch(
            api.create_request(Weather.FORECAST),
            lambda value, error: completions.append((value, error)),
        )
        await asyncio.sleep(0.01)
        task.cancel()
        value, error = await task
        release.set()
        await asyncio.sleep(0)

        assert value is None
        assert error is not None
        assert error.is_cancelled
        assert len(completions) == 1
        await client.aclose()