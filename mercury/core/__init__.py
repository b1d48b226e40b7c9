"""Core infrastructure package for shared functionality.

This package provides the foundational components used by the request
pipeline in :mod:`mercury.client` and the transports in
:mod:`mercury.infrastructure`:

- **config**: Centralized configuration management with environment support
- **context**: Correlation and request ID management for log correlation
- **exceptions**: Structured exception hierarchy with error codes
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Structured logging with pluggable formatters
- **types**: Type aliases for better code clarity
"""
