"""Shared utilities: logging setup, retry policy and status reporting."""
