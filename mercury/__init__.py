"""Mercury: declarative request construction and dispatch for HTTP APIs.

The public surface is re-exported from :mod:`mercury.client` so that
application code can write ``from mercury import API, APIConfig``.
"""

from mercury.client import (
    API,
    APIConfig,
    APIErrorConverter,
    DataTask,
    DataTransform,
    Endpoint,
    ErrorConvertible,
    HTTPMethod,
    JSONArrayTransform,
    JSONObjectTransform,
    ModelTransform,
    Request,
    Route,
    Transformable,
)
from mercury.core.context import correlation_scope
from mercury.core.exceptions import (
    APIError,
    BodyEncodingError,
    MalformedRequestURLError,
    MercuryError,
    RequestCancelledError,
)

__all__ = [
    "API",
    "APIConfig",
    "APIError",
    "APIErrorConverter",
    "BodyEncodingError",
    "DataTask",
    "DataTransform",
    "Endpoint",
    "ErrorConvertible",
    "HTTPMethod",
    "JSONArrayTransform",
    "JSONObjectTransform",
    "MalformedRequestURLError",
    "MercuryError",
    "ModelTransform",
    "Request",
    "RequestCancelledError",
    "Route",
    "Transformable",
    "correlation_scope",
]
