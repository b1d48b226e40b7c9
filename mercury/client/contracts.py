"""Capability contracts that parameterize an API.

An :class:`~mercury.client.api.API` is assembled from three independent
capabilities, each a structural ``Protocol`` so that any object with the
right shape qualifies without inheriting from anything:

- **Endpoint**: resolves a logical operation to a URL path fragment.
- **Transformable**: decodes raw response bytes into a typed value.
- **ErrorConvertible**: wraps a transport failure into a typed domain error.

The contracts are bound per API value through generic parameters, so two
APIs in one process can use entirely different endpoint sets, decoders and
error types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Endpoint(Protocol):
    """A logical API operation.

    Any object exposing a ``path`` string qualifies: a ``StrEnum`` with a
    ``path`` property, a dataclass, or the :class:`Route` helper.
    """

    @property
    def path(self) -> str:
        """Path fragment appended to the API base URL."""
        ...


@runtime_checkable
class Transformable[T](Protocol):
    """Decoding capability from raw response bytes to a typed result."""

    def transform(self, data: bytes | None) -> T | None:
        """Decode ``data``.

        Implementations must not raise on undecodable input: absence of a
        value is reported as ``None`` and is not an error signal.
        """
        ...


@runtime_checkable
class ErrorConvertible[E](Protocol):
    """Wrapping capability from a transport failure to a typed domain error."""

    def convert(self, error: BaseException | None) -> E | None:
        """Wrap ``error``, returning ``None`` when there is nothing to report."""
        ...


@dataclass(frozen=True, slots=True)
class Route:
    """Endpoint given directly by its path.

    Example:
        >>> Route("users/42").path
        'users/42'
    """

    path: str
