"""Exceptions raised by the Bilibili API client core."""
from __future__ import annotations


class BpiError(RuntimeError):
    """Base exception for client errors."""


class MissingCsrfError(BpiError):
    """Raised when a CSRF token is required but no session provides one."""

    def __init__(self, message: str = "missing csrf token (bili_jct), login required") -> None:
        super().__init__(message)


class ParseError(BpiError):
    """Raised when a service response is malformed or incomplete."""


class TransportError(BpiError):
    """Raised when the HTTP request itself fails (timeout, connection, status)."""
