"""Request construction and dispatch.

- **contracts**: Endpoint, Transformable and ErrorConvertible capabilities
- **request**: The chainable Request builder and HTTPMethod
- **api**: APIConfig, URL resolution, and the API contract
- **dispatch**: The Dispatcher and the DataTask handle
- **transforms**: Built-in response decoders
- **errors**: Built-in error converter
- **hooks**: Ready-made customization hooks
"""

from mercury.client.api import API, APIConfig, resolve_url
from mercury.client.contracts import Endpoint, ErrorConvertible, Route, Transformable
from mercury.client.dispatch import DataTask, Dispatcher
from mercury.client.errors import APIErrorConverter
from mercury.client.hooks import chain_hooks, propagate_correlation_id, static_headers
from mercury.client.request import HTTPMethod, Request
from mercury.client.transforms import (
    DataTransform,
    JSONArrayTransform,
    JSONObjectTransform,
    ModelTransform,
)

__all__ = [
    "API",
    "APIConfig",
    "APIErrorConverter",
    "DataTask",
    "DataTransform",
    "Dispatcher",
    "Endpoint",
    "ErrorConvertible",
    "HTTPMethod",
    "JSONArrayTransform",
    "JSONObjectTransform",
    "ModelTransform",
    "Request",
    "Route",
    "Transformable",
    "chain_hooks",
    "propagate_correlation_id",
    "resolve_url",
    "static_headers",
]
