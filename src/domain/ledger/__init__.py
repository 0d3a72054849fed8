"""Per-register consecutive counters."""
