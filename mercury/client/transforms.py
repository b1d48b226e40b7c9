"""Built-in response decoders.

Every transform satisfies :class:`~mercury.client.contracts.Transformable`:
it maps the raw response bytes (``None`` when the transport produced none)
to a value, or to ``None`` when nothing usable can be decoded. A transform
never raises on bad input; whether a failure happened is reported through
the error slot of the completion, not through the value.
"""

from __future__ import annotations

from typing import Any

import orjson
from loguru import logger
from pydantic import BaseModel, ValidationError

from mercury.core.types import JsonArray, JsonObject


class DataTransform:
    """Raw bytes passthrough."""

    def transform(self, data: bytes | None) -> bytes | None:
        """Return ``data`` unchanged."""
        return data


def _decode_json(data: bytes | None) -> Any:  # noqa: ANN401 - any JSON value
    """Decode JSON bytes, returning None for missing or invalid input."""
    if data is None:
        return None
    try:
        return orjson.loads(data)
    except orjson.JSONDecodeError as e:
        logger.trace("Response body is not valid JSON: {}", e)
        return None


class JSONArrayTransform:
    """Decode a JSON array, preserving element order."""

    def transform(self, data: bytes | None) -> JsonArray | None:
        """Return the decoded list, or None if the body is not a JSON array."""
        value = _decode_json(data)
        return value if isinstance(value, list) else None


class JSONObjectTransform:
    """Decode a JSON object."""

    def transform(self, data: bytes | None) -> JsonObject | None:
        """Return the decoded dict, or None if the body is not a JSON object."""
        value = _decode_json(data)
        return value if isinstance(value, dict) else None


class ModelTransform[M: BaseModel]:
    """Decode and validate a JSON body into a pydantic model.

    Bodies that fail validation decode to ``None``, like any other
    undecodable body.

    Args:
        model: The pydantic model class to validate against.

    Example:
        >>> class User(BaseModel):
        ...     id: int
        >>> ModelTransform(User).transform(b'{"id": 7}')
        User(id=7)
    """

    def __init__(self, model: type[M]) -> None:
        self.model = model

    def transform(self, data: bytes | None) -> M | None:
        """Return a validated model instance, or None."""
        if data is None:
            return None
        try:
            return self.model.model_validate_json(data)
        except ValidationError as e:
            logger.trace(
                "Response body failed {} validation with {} errors",
                self.model.__name__,
                e.error_count(),
            )
            return None
