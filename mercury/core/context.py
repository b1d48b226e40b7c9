"""Correlation and request identifiers for dispatched requests.

A correlation ID ties together every request sent on behalf of one unit of
caller work. It is held in a ``ContextVar`` so concurrent tasks keep their
own value, forwarded as a header by the ``propagate_correlation_id`` hook
and bound to dispatch log lines. A request ID identifies a single dispatch.
"""

import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class RequestContext:
    """Access to the correlation ID of the current task."""

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        """Set the correlation ID for the current context.

        Args:
            correlation_id: The correlation ID to store in the context.
        """
        _correlation_id_var.set(correlation_id)

    @staticmethod
    def get_correlation_id() -> str | None:
        """Get the correlation ID from the current context.

        Returns:
            str | None: The correlation ID if set, None otherwise.
        """
        return _correlation_id_var.get()

    @staticmethod
    def clear() -> None:
        """Clear the correlation ID."""
        _correlation_id_var.set(None)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Generator[str]:
    """Correlate every request built and dispatched inside the block.

    The previous correlation ID, if any, is restored on exit, so scopes can
    be nested around sub-operations.

    Args:
        correlation_id: ID to use, typically received from an upstream
            caller. A new UUID4 is generated when omitted.

    Yields:
        str: The correlation ID in effect inside the block.

    Examples:
        >>> with correlation_scope() as cid:
        ...     request = api.create_request(Weather.FORECAST)
        ...     request.header("X-Correlation-ID") == cid
        True
    """
    active = correlation_id or str(uuid.uuid4())
    token = _correlation_id_var.set(active)
    try:
        yield active
    finally:
        _correlation_id_var.reset(token)


def generate_request_id() -> str:
    """Generate a unique ID for one dispatched request.

    Returns:
        str: A prefixed UUID4 string in format 'req-<uuid4>'.
    """
    return f"req-{uuid.uuid4()}"
