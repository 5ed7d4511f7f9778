"""Request descriptor and response format types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .. import __version__
from ..exceptions import ConfigurationError

DEFAULT_USER_AGENT = f"httpchain/{__version__}"

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE", "CONNECT"})

# Methods that never carry a request body
BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ResponseFormat(str, Enum):
    """How the response body should be decoded."""

    AUTO = "auto"
    JSON = "json"
    XML = "xml"
    TEXT = "text"

    @classmethod
    def parse(cls, value: Union[str, "ResponseFormat"]) -> "ResponseFormat":
        """Accept an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as err:
            choices = ", ".join(f.value for f in cls)
            raise ConfigurationError(f"Unknown response format: {value!r} (expected one of {choices})") from err


def normalize_method(method: str) -> str:
    """Uppercase an HTTP method and reject anything outside the known verbs."""
    normalized = str(method).strip().upper()
    if normalized not in HTTP_METHODS:
        raise ConfigurationError(f"Unsupported HTTP method: {method!r}")
    return normalized


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Immutable description of one not-yet-dispatched request.

    Attributes:
        method: Uppercase HTTP verb
        url: Absolute URL, passed through to the transport untouched
        headers: Ordered (name, value) pairs; duplicates are all sent
        body: Payload, or None for no body
        cookies: Ordered (name, value) pairs joined into one Cookie header
        timeout_ms: Per-attempt timeout in milliseconds (None = transport default)
        follow_redirects: Whether the transport follows redirects
        max_redirects: Redirect cap, only used when following
        verify_ssl: Verify both the peer certificate and the peer name
        proxy: Transport-specific proxy URI
        retry_count: Retries beyond the first attempt
        retry_delay_ms: Blocking delay before each retry
        response_format: Body decoding policy
        user_agent: Sent unless a User-Agent header is already present
        fail_on_http_error: Treat status >= 400 as a failed attempt
    """

    method: str = "GET"
    url: str = ""
    headers: tuple[tuple[str, str], ...] = ()
    body: Optional[Union[str, bytes]] = None
    cookies: tuple[tuple[str, str], ...] = ()
    timeout_ms: Optional[float] = None
    follow_redirects: bool = True
    max_redirects: int = 5
    verify_ssl: bool = True
    proxy: Optional[str] = None
    retry_count: int = 0
    retry_delay_ms: int = 1000
    response_format: ResponseFormat = ResponseFormat.AUTO
    user_agent: str = DEFAULT_USER_AGENT
    fail_on_http_error: bool = False

    @property
    def sends_body(self) -> bool:
        """True if the body will be attached when dispatched."""
        return self.method not in BODYLESS_METHODS and bool(self.body)
