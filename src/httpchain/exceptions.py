"""Exception types for httpchain."""

from __future__ import annotations


class HttpChainError(Exception):
    """Base class for all httpchain errors."""


class ConfigurationError(HttpChainError, ValueError):
    """
    Raised when a request cannot be built from the given options.

    Covers unknown HTTP methods, unknown response formats and invalid
    configuration records. Raised while building, never from dispatch.
    """


class TransportError(HttpChainError):
    """
    A single attempt that did not produce a usable result.

    Attributes:
        cause: The exception raised by the transport, or None when the
            transport returned no result at all
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class HttpStatusError(TransportError):
    """An attempt rejected because of its HTTP status (fail-on-http-error mode)."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error status {status_code}")
        self.status_code = status_code
