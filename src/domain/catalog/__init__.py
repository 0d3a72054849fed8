"""Reference catalog, tenant overrides and their resolution."""
