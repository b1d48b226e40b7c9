"""Type aliases for dynamic data structures throughout the package.

This module centralizes type definitions for data that cannot be statically
typed, providing clear semantic meaning and documentation for these types.

All JSON types defined here are the values orjson produces and accepts for
request bodies and decoded responses.
"""

from collections.abc import Mapping, Sequence
from typing import Any

# A JSON object as decoded from a response body
type JsonObject = dict[str, Any]

# A JSON array as decoded from a response body
type JsonArray = list[Any]

# Structured bodies accepted by Request.set_body besides raw bytes
type StructuredBody = Mapping[str, Any] | Sequence[Mapping[str, Any]]

# Query parameters applied once at request-build time
type QueryParameters = Mapping[str, str]

# Context dictionary for error details and debugging information
type ErrorContext = dict[str, Any]  # flexible error context
