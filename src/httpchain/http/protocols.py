"""Protocol definitions for the transport abstraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Union

# (message, level) -> None
LogSink = Callable[[str, str], None]


@dataclass(frozen=True)
class TransportRequest:
    """
    One fully assembled HTTP exchange, ready for a transport.

    Attributes:
        method: Uppercase HTTP verb
        url: Target URL
        headers: Ordered (name, value) pairs, duplicates included
        body: Payload, None when nothing should be sent
        timeout: Timeout in seconds (None = transport default)
        follow_redirects: Whether redirects are followed
        max_redirects: Redirect cap when following
        verify_ssl: Verify peer certificate and peer name
        proxy: Proxy URI, or None
    """

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: Optional[Union[str, bytes]] = None
    timeout: Optional[float] = None
    follow_redirects: bool = True
    max_redirects: int = 5
    verify_ssl: bool = True
    proxy: Optional[str] = None


@dataclass(frozen=True)
class TransportResult:
    """
    Raw outcome of one exchange.

    Attributes:
        body: Response payload
        header_lines: Status line first, then ``Name: Value`` lines in
            arrival order with repeated names kept
    """

    body: bytes
    header_lines: tuple[str, ...] = ()


class Transport(Protocol):
    """
    Protocol for one-shot HTTP transports.

    This abstraction allows for:
    - Fake implementations in tests
    - Different backends (requests, urllib3, ...)
    - Retries orchestrated entirely by the executor
    """

    def send(self, request: TransportRequest) -> Optional[TransportResult]:
        """
        Perform exactly one blocking HTTP exchange.

        Args:
            request: The exchange to perform

        Returns:
            TransportResult, or None if no result was obtainable

        Raises:
            Exception on connection, DNS, TLS or timeout failures
        """
        ...
