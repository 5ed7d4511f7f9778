"""Normalized response record and parsed body variants."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from xml.etree.ElementTree import Element

from charset_normalizer import from_bytes as detect_encoding

from ..exceptions import TransportError

logger = logging.getLogger(__name__)

HeaderValue = Union[str, list[str]]


@dataclass(frozen=True)
class JsonBody:
    """Body decoded as JSON. ``value`` may legitimately be None (JSON null)."""

    value: Any


@dataclass(frozen=True)
class XmlBody:
    """Body parsed as an XML document (root element)."""

    document: Element


@dataclass(frozen=True)
class TextBody:
    """Body passed through as text."""

    text: str


ParsedBody = Union[JsonBody, XmlBody, TextBody]


def first_header(headers: dict[str, HeaderValue], name: str) -> Optional[str]:
    """Case-insensitive lookup returning the first value of a header."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value[0] if isinstance(value, list) else value
    return None


def charset_from_content_type(content_type: str) -> Optional[str]:
    """Extract the charset parameter from a Content-Type value."""
    for part in content_type.split(";"):
        part = part.strip()
        if part.lower().startswith("charset="):
            return part.split("=", 1)[1].strip().strip("\"'")
    return None


def decode_text(content: bytes, content_type: str = "") -> str:
    """
    Decode response bytes to text.

    Fallback chain:
    1. Content-Type header charset
    2. charset-normalizer detection
    3. UTF-8 with replacement

    Args:
        content: Raw bytes content
        content_type: Content-Type header value

    Returns:
        Decoded string
    """
    if not content:
        return ""

    encoding = charset_from_content_type(content_type) if content_type else None
    if encoding:
        try:
            return content.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.debug(f"Failed to decode with declared encoding: {encoding}")

    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        pass

    best_match = detect_encoding(content).best()
    if best_match is not None:
        logger.debug(f"Detected encoding: {best_match.encoding}")
        return str(best_match)

    return content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class ResponseRecord:
    """
    Immutable result of one dispatched request, retries included.

    A non-2xx status is still a success: ``success`` only reports whether
    the transport produced a result on the final attempt.

    Attributes:
        success: The final attempt returned a result
        status_code: Parsed from the final status line, None if there was none
        raw_body: Undecoded payload, None on failure
        parsed_body: Decoded body variant, None on failure or decode failure
        headers: Header name to value, or to a list of values when repeated
        extracted_cookies: Cookie name to value from Set-Cookie headers
        error: Last attempt's error when success is False
        attempts: Total attempts made
    """

    success: bool
    status_code: Optional[int] = None
    raw_body: Optional[bytes] = None
    parsed_body: Optional[ParsedBody] = None
    headers: dict[str, HeaderValue] = field(default_factory=dict)
    extracted_cookies: dict[str, str] = field(default_factory=dict)
    error: Optional[TransportError] = None
    attempts: int = 1

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup returning the first value."""
        return first_header(self.headers, name)

    @property
    def parsed(self) -> Any:
        """Inner value of the parsed body, or None if absent."""
        if isinstance(self.parsed_body, JsonBody):
            return self.parsed_body.value
        if isinstance(self.parsed_body, XmlBody):
            return self.parsed_body.document
        if isinstance(self.parsed_body, TextBody):
            return self.parsed_body.text
        return None

    @property
    def text(self) -> Optional[str]:
        """Raw body decoded as text, or None on failure."""
        if self.raw_body is None:
            return None
        return decode_text(self.raw_body, self.header("Content-Type") or "")

    @property
    def is_http_error(self) -> bool:
        """Check if the final status code is 4xx or 5xx."""
        return self.status_code is not None and self.status_code >= 400

    def to_dict(self) -> dict:
        """Convert the record to a JSON-friendly dictionary."""
        return {
            "success": self.success,
            "status_code": self.status_code,
            "headers": self.headers,
            "cookies": self.extracted_cookies,
            "body": self.text,
            "error": str(self.error) if self.error else None,
            "attempts": self.attempts,
        }
