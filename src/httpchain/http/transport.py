"""Default transport built on requests."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from ..exceptions import TransportError
from .protocols import TransportRequest, TransportResult

logger = logging.getLogger(__name__)

_HTTP_VERSIONS = {9: "0.9", 10: "1.0", 11: "1.1", 20: "2", 30: "3"}


def fold_headers(headers: tuple[tuple[str, str], ...]) -> dict[str, str]:
    """
    Collapse ordered header pairs into the mapping requests expects.

    Repeated names (case-insensitive) are joined with ", " so every value
    is still sent; repeated Cookie headers are joined with "; ".
    """
    folded: dict[str, str] = {}
    names: dict[str, str] = {}
    for name, value in headers:
        key = name.lower()
        if key not in names:
            names[key] = name
            folded[name] = value
            continue
        separator = "; " if key == "cookie" else ", "
        folded[names[key]] = f"{folded[names[key]]}{separator}{value}"
    return folded


def status_line(response: requests.Response) -> str:
    """Rebuild the status line (``HTTP/1.1 200 OK``) of a response."""
    version = getattr(response.raw, "version", None)
    http_version = _HTTP_VERSIONS.get(version, "1.1") if isinstance(version, int) else "1.1"
    reason = response.reason or ""
    return f"HTTP/{http_version} {response.status_code} {reason}".rstrip()


def header_lines(response: requests.Response) -> tuple[str, ...]:
    """
    Rebuild raw header lines, status line first.

    urllib3's raw header container keeps repeated names (``Set-Cookie``)
    apart; the requests-level mapping has already merged them.
    """
    lines = [status_line(response)]
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "getlist"):
        for name in raw_headers.keys():
            for value in raw_headers.getlist(name):
                lines.append(f"{name}: {value}")
    else:
        for name, value in response.headers.items():
            lines.append(f"{name}: {value}")
    return tuple(lines)


class RequestsTransport:
    """
    One-shot blocking transport on top of a requests session.

    A fresh session is opened for every exchange so that redirect limits
    and proxies never leak between requests.

    Example:
        transport = RequestsTransport()
        result = transport.send(TransportRequest(method="GET", url="https://example.com"))
        print(result.header_lines[0])
    """

    def __init__(self, session_factory: Callable[[], requests.Session] = requests.Session) -> None:
        """
        Initialize the transport.

        Args:
            session_factory: Callable returning a new requests.Session
        """
        self._session_factory = session_factory

    def send(self, request: TransportRequest) -> Optional[TransportResult]:
        """
        Perform one exchange.

        Args:
            request: The assembled request

        Returns:
            TransportResult with body bytes and raw header lines

        Raises:
            TransportError: On any requests-level failure (connection, DNS,
                TLS, timeout, too many redirects)
        """
        body = request.body
        if isinstance(body, str):
            body = body.encode("utf-8")

        proxies = {"http": request.proxy, "https": request.proxy} if request.proxy else None

        try:
            with self._session_factory() as session:
                if request.follow_redirects:
                    session.max_redirects = request.max_redirects
                response = session.request(
                    request.method,
                    request.url,
                    headers=fold_headers(request.headers),
                    data=body,
                    timeout=request.timeout,
                    allow_redirects=request.follow_redirects,
                    verify=request.verify_ssl,
                    proxies=proxies,
                )
                return TransportResult(body=response.content or b"", header_lines=header_lines(response))
        except requests.RequestException as e:
            logger.debug(f"Transport failure for {request.method} {request.url}: {e}")
            raise TransportError(f"{type(e).__name__}: {e}", cause=e) from e
