"""API-related constants."""

API_V1_PREFIX = "/api/v1"

# HTTP Status Codes
HTTP_500_INTERNAL_SERVER_ERROR = 500

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Request logging
MAX_USER_AGENT_LENGTH = 200
