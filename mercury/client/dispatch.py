"""Request dispatch and result delivery.

The :class:`Dispatcher` sends one built request over a transport and turns
the raw outcome into the pair handed to the caller::

    (transform(data), error_converter.convert(error))

Both halves are computed independently. A decoded value and an error can
therefore arrive together, which is what happens when a server answers with
an error status and a JSON error body.

Dispatch runs on the asyncio event loop. ``fetch`` schedules the transport
call as a task and returns at once with a :class:`DataTask`; the completion
runs as a done-callback of that task, on the loop, exactly once. This holds
for cancellation too: a cancelled request completes with the converter
applied to a :class:`~mercury.core.exceptions.RequestCancelledError`.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Callable, Generator
from typing import TYPE_CHECKING, Any

from loguru import logger

from mercury.core.config import get_settings
from mercury.core.constants import MILLISECONDS_PER_SECOND
from mercury.core.context import RequestContext, generate_request_id
from mercury.core.error_context import (
    sanitize_error_context,
    sanitize_headers,
    sanitize_url,
)
from mercury.core.exceptions import APIError, MercuryError, RequestCancelledError
from mercury.infrastructure.transport import Transport, TransportResult

if TYPE_CHECKING:
    from mercury.client.contracts import ErrorConvertible, Transformable
    from mercury.client.request import Request

type Completion[T, E] = Callable[[T | None, E | None], None]
type Outcome[T, E] = tuple[T | None, E | None]


class DataTask[T, E]:
    """Handle to one in-flight request.

    The handle can cancel the request and can be awaited for the same
    ``(value, error)`` pair the completion receives.

    Attributes:
        request: The request being dispatched.
        request_id: Identifier bound to every log line of this dispatch.
    """

    def __init__(
        self,
        request: Request,
        request_id: str,
        task: asyncio.Task[TransportResult],
        outcome: asyncio.Future[Outcome[T, E]],
    ) -> None:
        self.request = request
        self.request_id = request_id
        self._task = task
        self._outcome = outcome

    def cancel(self) -> bool:
        """Request cancellation of the transport call.

        The completion still fires, with a cancellation-classified error.

        Returns:
            bool: False if the transport call had already resolved.
        """
        return self._task.cancel()

    def cancelled(self) -> bool:
        """Whether the transport call was cancelled."""
        return self._task.cancelled()

    def done(self) -> bool:
        """Whether the result has been delivered."""
        return self._outcome.done()

    def __await__(self) -> Generator[Any, None, Outcome[T, E]]:
        """Wait for delivery and return the ``(value, error)`` pair."""
        return asyncio.shield(self._outcome).__await__()

    def __repr__(self) -> str:
        """Return a representation showing the request and its state."""
        state = "done" if self.done() else "pending"
        return f"DataTask(request_id='{self.request_id}', {self.request!r}, {state})"


class Dispatcher[T, E]:
    """Send requests and route raw outcomes through the decoding contracts.

    Args:
        transport: Transport the requests are sent over.
        transform: Decoder applied to the response bytes.
        error_converter: Converter applied to the transport failure.
    """

    def __init__(
        self,
        transport: Transport,
        transform: Transformable[T],
        error_converter: ErrorConvertible[E],
    ) -> None:
        self.transport = transport
        self.transform = transform
        self.error_converter = error_converter

    def fetch(
        self, request: Request, completion: Completion[T, E] | None = None
    ) -> DataTask[T, E]:
        """Start sending ``request`` and return without waiting.

        Must be called with an asyncio event loop running.

        Args:
            request: The request to send. It must not be mutated afterwards.
            completion: Called once with ``(value, error)`` when the transport
                resolves. Optional when the returned task is awaited instead.

        Returns:
            DataTask[T, E]: Handle to the in-flight request.

        Raises:
            RuntimeError: If no event loop is running.
        """
        loop = asyncio.get_running_loop()
        request_id = generate_request_id()

        with logger.contextualize(
            request_id=request_id,
            correlation_id=RequestContext.get_correlation_id(),
        ):
            log_config = get_settings().log_config
            headers = (
                sanitize_headers(request.headers)
                if log_config.log_request_headers
                else None
            )
            logger.debug(
                "Dispatching {} request",
                request.method.value,
                method=request.method.value,
                url=sanitize_url(request.url),
                headers=headers,
            )

            # Tasks and callbacks created here inherit the log context
            task = loop.create_task(
                self.transport.send(request), name=f"mercury-{request_id}"
            )
            outcome: asyncio.Future[Outcome[T, E]] = loop.create_future()
            handle = DataTask(request, request_id, task, outcome)
            task.add_done_callback(
                functools.partial(
                    self._resolve, handle, completion, time.perf_counter()
                )
            )

        return handle

    def _resolve(
        self,
        handle: DataTask[T, E],
        completion: Completion[T, E] | None,
        started: float,
        task: asyncio.Task[TransportResult],
    ) -> None:
        """Deliver the outcome of a finished transport task."""
        data, cause = self._raw_outcome(handle, task)
        outcome = handle._outcome  # noqa: SLF001 - owned by this dispatcher

        try:
            value = self.transform.transform(data)
        except Exception as e:  # noqa: BLE001 - a failed decode is "no value"
            logger.warning(
                "Transform raised instead of returning None",
                **sanitize_error_context(e),
            )
            value = None

        try:
            error = self.error_converter.convert(cause)
        except Exception as e:
            logger.opt(exception=e).error(
                "Error converter raised instead of returning None",
                **sanitize_error_context(e),
            )
            if not outcome.done():
                outcome.set_exception(e)
            raise

        duration_ms = round((time.perf_counter() - started) * MILLISECONDS_PER_SECOND)
        logger.debug(
            "Request resolved",
            duration_ms=duration_ms,
            has_value=value is not None,
            has_error=error is not None,
        )
        if isinstance(error, MercuryError) and not error.is_expected:
            logger.warning(
                "Request failed: {}",
                error.error_code,
                error_code=error.error_code,
                severity=error.severity.value,
                duration_ms=duration_ms,
            )

        if not outcome.done():
            outcome.set_result((value, error))
        if completion is not None:
            completion(value, error)

    @staticmethod
    def _raw_outcome(
        handle: DataTask[T, E], task: asyncio.Task[TransportResult]
    ) -> tuple[bytes | None, BaseException | None]:
        """Extract ``(data, cause)`` from a finished transport task."""
        if task.cancelled():
            logger.warning("Request cancelled before the transport resolved")
            return None, RequestCancelledError(
                context={
                    "method": handle.request.method.value,
                    "url": sanitize_url(handle.request.url),
                }
            )

        if (exc := task.exception()) is not None:
            # Transports report failures as results; a raised one still counts
            logger.warning(
                "Transport raised instead of returning a failure",
                **sanitize_error_context(exc),
            )
            return None, exc

        result = task.result()
        if not isinstance(result, tuple) or len(result) != 2:  # noqa: PLR2004
            logger.error(
                "Transport returned {} instead of a TransportResult",
                type(result).__name__,
            )
            return None, APIError.unknown()

        return result[0], result[1]
