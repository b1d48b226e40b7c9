"""Ready-made customization hooks for :class:`~mercury.client.api.APIConfig`.

A customization hook is any callable taking the newly created request and
mutating it in place. These helpers cover the common cases::

    APIConfig(
        base_url="https://api.example.com",
        customize=chain_hooks(
            static_headers({"X-Api-Key": key, "Accept": "application/json"}),
            propagate_correlation_id,
        ),
    )
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from mercury.core.constants import CORRELATION_ID_HEADER
from mercury.core.context import RequestContext

if TYPE_CHECKING:
    from mercury.client.request import Request

type CustomizeHook = Callable[[Request], None]


def static_headers(headers: Mapping[str, str]) -> CustomizeHook:
    """Build a hook that sets fixed headers on every request.

    Args:
        headers: Header fields and values. Copied when the hook is built.

    Returns:
        CustomizeHook: The hook.
    """
    fixed = dict(headers)

    def apply(request: Request) -> None:
        for field, value in fixed.items():
            request.set_header(value, field)

    return apply


def propagate_correlation_id(request: Request) -> None:
    """Forward the current correlation ID, if one is set, as a header."""
    correlation_id = RequestContext.get_correlation_id()
    if correlation_id:
        request.set_header(correlation_id, CORRELATION_ID_HEADER)


def chain_hooks(*hooks: CustomizeHook) -> CustomizeHook:
    """Combine hooks into one that runs them in order.

    Args:
        *hooks: Hooks to run; later hooks override headers set by earlier ones.

    Returns:
        CustomizeHook: The combined hook.
    """

    def apply(request: Request) -> None:
        for hook in hooks:
            hook(request)

    return apply
