"""Built-in error converter."""

from __future__ import annotations

from mercury.core.exceptions import APIError


class APIErrorConverter:
    """Wrap transport failures into :class:`~mercury.core.exceptions.APIError`.

    ``None`` (the transport succeeded) converts to ``None``; any cause
    converts to ``APIError.wrapped(cause)``. An ``APIError`` handed in as the
    cause is passed through unchanged rather than wrapped twice.
    """

    def convert(self, error: BaseException | None) -> APIError | None:
        """Return the domain error for ``error``."""
        if error is None:
            return None
        if isinstance(error, APIError):
            return error
        return APIError.wrapped(error)
