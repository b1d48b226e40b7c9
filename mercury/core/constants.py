"""Core constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"

# Header fields
AUTHORIZATION_HEADER = "Authorization"
USER_AGENT_HEADER = "User-Agent"
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Responses with a status at or above this value are failures
HTTP_ERROR_STATUS_THRESHOLD = 400
