"""Shared utilities: time helpers, log retention and structured logging."""
