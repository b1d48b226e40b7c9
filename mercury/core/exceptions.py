"""Structured exception hierarchy for consistent error handling.

This module defines the complete exception system for Mercury. Errors fall
into two groups that travel along different paths:

- **Construction-time errors** (``MalformedRequestURLError``,
  ``BodyEncodingError``) are raised synchronously while a request is being
  built, before anything is dispatched.
- **Dispatch-time errors** (``APIError``) are never raised by the core. They
  are produced by an error converter from a transport failure and handed to
  the caller's completion next to the decoded value.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification that drives how loudly errors are logged
- **MercuryError**: Base exception with rich context and fingerprinting
- **Specialized exceptions**: Type-specific errors (validation, transport, etc.)

Features:
- **Error fingerprinting**: Automatic grouping of similar errors
- **Stack trace capture**: Full context at error creation time
- **Exception chaining**: Preserves original cause for debugging
- **Severity levels**: Separates expected outcomes from real failures
"""

import hashlib
import traceback
from enum import Enum
from typing import Self

from mercury.core.types import ErrorContext


class ErrorCode(Enum):
    """Standardized error codes for Mercury.

    These error codes provide consistent identification of error types
    across the request pipeline, enabling proper error handling and monitoring.
    """

    # System errors
    UNKNOWN = "UNKNOWN"
    """A failure was reported without any underlying cause."""

    # Construction errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    MALFORMED_REQUEST_URL = "MALFORMED_REQUEST_URL"
    """The base URL and endpoint path could not be resolved into a URL."""

    BODY_ENCODING_ERROR = "BODY_ENCODING_ERROR"
    """A structured request body could not be serialized to JSON."""

    # Dispatch errors
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """The transport reported a failure while sending the request."""

    REQUEST_CANCELLED = "REQUEST_CANCELLED"
    """The in-flight request was cancelled before the transport resolved."""


class Severity(Enum):
    """Severity levels for Mercury errors.

    Severity decides whether a delivered error is logged as a failure.
    """

    LOW = "LOW"
    """Low severity errors that don't significantly impact functionality."""

    MEDIUM = "MEDIUM"
    """Failures of a dispatched request that the caller should know about."""


class MercuryError(Exception):
    """Base exception class for all Mercury exceptions.

    All custom exceptions in the package inherit from this class
    to ensure consistent error handling and formatting.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame

        # Generate fingerprint based on error type and location
        self.fingerprint = self._generate_fingerprint()

        # Set up proper exception chaining
        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Creates a hash based on the error type and the location where it was raised,
        allowing similar errors to be grouped together in monitoring systems.

        Returns:
            str: A hash string for error grouping
        """
        max_frames = 5
        relevant_frames = (
            self.stack_trace[-max_frames:]
            if len(self.stack_trace) > max_frames
            else self.stack_trace
        )

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"

        # Only frames from this package identify the error location
        for frame in relevant_frames:
            if "site-packages" not in frame and "mercury/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Determine if this error is part of normal operation.

        Expected errors, such as a caller cancelling a request or passing a
        bad URL, are logged quietly. Anything else is reported as a failure
        when the dispatcher delivers it.

        Returns:
            bool: True if the error has LOW severity
        """
        return self.severity is Severity.LOW

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(MercuryError):
    """Exception raised when request construction input is invalid.

    Args:
        message: Description of the validation failure
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class MalformedRequestURLError(ValidationError):
    """Exception raised when a request URL cannot be resolved.

    Raised by request assembly when the base URL is unparseable or lacks a
    scheme or host, or when the endpoint path contains characters that
    cannot appear in a URL.

    Args:
        message: Description of what made the URL malformed
        context: Additional context (base URL, endpoint path)
        cause: The parsing error, if one was raised
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.MALFORMED_REQUEST_URL, context, cause)


class BodyEncodingError(ValidationError):
    """Exception raised when a structured request body is not JSON-serializable.

    Args:
        message: Description of the encoding failure
        context: Additional context (the offending body type)
        cause: The serializer error
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.BODY_ENCODING_ERROR, context, cause)


class RequestCancelledError(MercuryError):
    """Cause reported when an in-flight request is cancelled.

    The dispatcher never raises this exception. It is handed to the error
    converter as the transport failure of a cancelled request, so the
    completion still fires with a cancellation-classified error.

    Args:
        message: Description of the cancellation
        context: Additional context (method, URL)
    """

    def __init__(
        self,
        message: str = "Request was cancelled before the transport resolved",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.REQUEST_CANCELLED, message, Severity.LOW, context)


class APIError(MercuryError):
    """Typed domain error delivered to fetch completions.

    There are two variants, built through the class methods rather than the
    constructor:

    - ``APIError.unknown()``: a failure with no underlying cause available.
    - ``APIError.wrapped(cause)``: the transport supplied a cause, available
      as ``error.cause``.

    Cancellations have LOW severity; every other failure is MEDIUM.

    Args:
        message: Human-readable error message
        error_code: Error code (defaults to TRANSPORT_ERROR)
        context: Additional context information about the error
        cause: The transport failure being wrapped
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.TRANSPORT_ERROR,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ) -> None:
        severity = (
            Severity.LOW if isinstance(cause, RequestCancelledError) else Severity.MEDIUM
        )
        super().__init__(error_code, message, severity, context, cause)

    @classmethod
    def unknown(cls) -> Self:
        """Create the variant used when no cause is available.

        Returns:
            Self: An error with the UNKNOWN code and no cause.
        """
        return cls("Unknown", ErrorCode.UNKNOWN)

    @classmethod
    def wrapped(cls, cause: BaseException) -> Self:
        """Create the variant wrapping a transport failure.

        Args:
            cause: The failure reported by the transport.

        Returns:
            Self: An error carrying ``cause``. Cancellations keep the
                REQUEST_CANCELLED code so they can be told apart.
        """
        error_code = (
            ErrorCode.REQUEST_CANCELLED
            if isinstance(cause, RequestCancelledError)
            else ErrorCode.TRANSPORT_ERROR
        )
        return cls(
            f"Transport error: {cause}",
            error_code,
            context={"cause_type": type(cause).__name__},
            cause=cause,
        )

    @property
    def is_unknown(self) -> bool:
        """Whether this is the causeless variant.

        Returns:
            bool: True for errors built with ``APIError.unknown()``
        """
        return self.cause is None

    @property
    def is_cancelled(self) -> bool:
        """Whether this error reports a cancelled request.

        Returns:
            bool: True if the wrapped cause is a RequestCancelledError
        """
        return isinstance(self.cause, RequestCancelledError)
