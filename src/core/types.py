"""Type aliases shared across layers.

Values behind these aliases must stay JSON-serializable: they end up in
structured logs, error responses and persisted columns.
"""

from typing import Any

# Context dictionary for error details and debugging information
type ErrorContext = dict[str, Any]

# Document type code ("01".."10") mapped to a decimal counter string
type NumberingTable = dict[str, str]
