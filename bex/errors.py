"""Exceptions raised by the Microsoft Health client."""

from __future__ import annotations

from typing import Optional


class BexError(RuntimeError):
    """Base class for Microsoft Health API failures."""


class InvalidArgument(BexError, ValueError):
    """Raised when a caller passes an unusable value."""


class Unauthenticated(BexError):
    """Raised when a resource call is attempted without credentials."""


class HttpError(BexError):
    """Raised when the remote service answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body


class DeserializationError(BexError):
    """Raised when a response body is not the JSON we expected."""
