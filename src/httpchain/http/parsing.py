"""Status line, header, cookie and body parsing for raw transport results."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from typing import Optional

from defusedxml import DefusedXmlException
from defusedxml import ElementTree

from ..models.request import ResponseFormat
from ..models.response import HeaderValue, JsonBody, ParsedBody, TextBody, XmlBody, decode_text, first_header

__all__ = [
    "decode_body",
    "first_header",
    "parse_headers",
    "parse_set_cookie",
    "parse_status_code",
    "resolve_format",
]

logger = logging.getLogger(__name__)

_STATUS_LINE = re.compile(r"^HTTP/\d(?:\.\d)?\s+(\d+)")


def parse_status_code(lines: Sequence[str]) -> Optional[int]:
    """
    Extract the status code from the first raw header line.

    Args:
        lines: Raw header lines, status line first

    Returns:
        Status code, or None if there are no lines or the first one is not
        a status line
    """
    if not lines:
        return None
    match = _STATUS_LINE.match(lines[0])
    if match is None:
        return None
    return int(match.group(1))


def parse_headers(lines: Sequence[str]) -> tuple[dict[str, HeaderValue], dict[str, str]]:
    """
    Normalize raw ``Name: Value`` lines.

    A name seen once maps to a string; a repeated name maps to the list of
    its values in arrival order. Lines without a colon (the status line)
    are skipped.

    Args:
        lines: Raw header lines

    Returns:
        Tuple of (headers, cookies extracted from Set-Cookie)
    """
    headers: dict[str, HeaderValue] = {}
    cookies: dict[str, str] = {}

    for line in lines:
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        name = name.strip()
        value = value.strip()

        existing = headers.get(name)
        if existing is None:
            headers[name] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            headers[name] = [existing, value]

        if name.lower() == "set-cookie":
            cookie = parse_set_cookie(value)
            if cookie is not None:
                cookies[cookie[0]] = cookie[1]

    return headers, cookies


def parse_set_cookie(value: str) -> Optional[tuple[str, str]]:
    """Return (name, value) from the first ``name=value`` token of a Set-Cookie value."""
    token = value.split(";", 1)[0]
    if "=" not in token:
        return None
    name, cookie_value = token.split("=", 1)
    name = name.strip()
    if not name:
        return None
    return name, cookie_value.strip()


def resolve_format(expected: ResponseFormat, content_type: Optional[str]) -> ResponseFormat:
    """
    Decide how a body is decoded.

    An explicit format is used as is. ``auto`` picks json or xml from the
    Content-Type and falls back to text.
    """
    if expected is not ResponseFormat.AUTO:
        return expected
    lowered = (content_type or "").lower()
    if "application/json" in lowered:
        return ResponseFormat.JSON
    if "application/xml" in lowered or "text/xml" in lowered:
        return ResponseFormat.XML
    return ResponseFormat.TEXT


def decode_body(body: bytes, fmt: ResponseFormat, content_type: Optional[str] = None) -> Optional[ParsedBody]:
    """
    Decode a body in a resolved format.

    Malformed JSON or XML yields None; this never raises for bad content.

    Args:
        body: Raw response payload
        fmt: Resolved format (json, xml or text)
        content_type: Content-Type value, used for the text charset

    Returns:
        Parsed body variant, or None when the content is undecodable
    """
    if fmt is ResponseFormat.JSON:
        try:
            return JsonBody(json.loads(body))
        except (ValueError, RecursionError) as e:
            logger.debug(f"Response body is not valid JSON: {e}")
            return None

    if fmt is ResponseFormat.XML:
        try:
            return XmlBody(ElementTree.fromstring(body))
        except (ElementTree.ParseError, DefusedXmlException) as e:
            logger.debug(f"Response body is not usable XML: {e}")
            return None

    return TextBody(decode_text(body, content_type or ""))
