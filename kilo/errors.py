"""Exception hierarchy raised by kilo proxies.

Every call either returns a decoded value or raises exactly one subclass of
:class:`WebServiceError`. Exceptions coming from the underlying HTTP client
are chained through ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class WebServiceError(Exception):
    """Base class for all proxy failures."""

    status_code: Optional[int] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Transport failures (no response received)
# ---------------------------------------------------------------------------


class TransportError(WebServiceError):
    """The request never produced an HTTP response."""


class RequestTimeout(TransportError):
    pass


class InvocationCancelled(TransportError):
    def __init__(self, message: str = "invocation cancelled"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Response failures
# ---------------------------------------------------------------------------


class StatusError(WebServiceError):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class DecodeError(WebServiceError):
    """A 2xx response could not be decoded into the requested value."""


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------


class InvalidArgumentError(WebServiceError, ValueError):
    """Request inputs are malformed (empty argument key, bad path...)."""


class AttachmentError(InvalidArgumentError):
    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path
