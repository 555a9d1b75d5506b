"""Shared helpers: time, HTTP responses and locking."""
