"""Shared API response schemas."""
