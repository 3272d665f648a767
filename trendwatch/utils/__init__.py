"""Shared helpers: statistics and structured error handling."""
