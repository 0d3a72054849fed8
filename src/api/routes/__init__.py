"""HTTP routes grouped by domain area."""
