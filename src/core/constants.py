"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"

# Caller identity, resolved upstream by the authentication gateway
USER_ID_HEADER = "X-User-ID"
