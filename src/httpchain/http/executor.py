"""Request executor: retry loop and response normalization."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..exceptions import HttpStatusError, TransportError
from ..models.request import RequestDescriptor
from ..models.response import ResponseRecord
from .parsing import decode_body, first_header, parse_headers, parse_status_code, resolve_format
from .protocols import LogSink, Transport, TransportRequest, TransportResult
from .transport import RequestsTransport

logger = logging.getLogger(__name__)


def finalize_headers(descriptor: RequestDescriptor) -> tuple[tuple[str, str], ...]:
    """
    Build the header list that is actually sent.

    Appends one Cookie header for all cookies, then the default User-Agent
    unless a User-Agent header (any case) is already present.
    """
    headers = list(descriptor.headers)

    if descriptor.cookies:
        headers.append(("Cookie", "; ".join(f"{name}={value}" for name, value in descriptor.cookies)))

    has_user_agent = any(name.strip().lower() == "user-agent" for name, _ in headers)
    if not has_user_agent and descriptor.user_agent:
        headers.append(("User-Agent", descriptor.user_agent))

    return tuple(headers)


def build_transport_request(descriptor: RequestDescriptor) -> TransportRequest:
    """Translate a descriptor into transport options."""
    timeout = descriptor.timeout_ms / 1000 if descriptor.timeout_ms is not None else None
    return TransportRequest(
        method=descriptor.method,
        url=descriptor.url,
        headers=finalize_headers(descriptor),
        body=descriptor.body if descriptor.sends_body else None,
        timeout=timeout,
        follow_redirects=descriptor.follow_redirects,
        max_redirects=descriptor.max_redirects,
        verify_ssl=descriptor.verify_ssl,
        proxy=descriptor.proxy,
    )


class RequestExecutor:
    """
    Drives one request through the transport, retries included.

    ``execute`` is total: transport failures, undecodable bodies and bad
    status codes all end up in the returned ResponseRecord.

    Example:
        executor = RequestExecutor(log_sink=lambda message, level: print(level, message))
        record = executor.execute(RequestDescriptor(url="https://example.com"))
        if record.success:
            print(record.status_code, record.parsed)
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        log_sink: Optional[LogSink] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the executor.

        Args:
            transport: One-shot transport (defaults to RequestsTransport)
            log_sink: Optional (message, level) sink for request start/completion
            sleep: Blocking sleep used between attempts, in seconds
        """
        self._transport = transport or RequestsTransport()
        self._log_sink = log_sink
        self._sleep = sleep

    def execute(self, descriptor: RequestDescriptor, log_sink: Optional[LogSink] = None) -> ResponseRecord:
        """
        Dispatch a request and normalize the outcome.

        Args:
            descriptor: The request to perform
            log_sink: Sink overriding the executor's own for this call

        Returns:
            ResponseRecord for the final attempt
        """
        sink = log_sink or self._log_sink
        request = build_transport_request(descriptor)

        self._log(sink, f"Preparing request to {descriptor.url} ({descriptor.method})", "info")

        attempt = 0
        result: Optional[TransportResult] = None
        error: Optional[TransportError] = None

        while True:
            if attempt > 0:
                logger.warning(
                    f"{descriptor.method} {descriptor.url} failed: {error}, retrying in "
                    f"{descriptor.retry_delay_ms}ms (attempt {attempt} of {descriptor.retry_count})"
                )
                self._sleep(descriptor.retry_delay_ms / 1000)

            result, error = self._attempt(request, descriptor.fail_on_http_error)
            attempt += 1

            # Stop on success or once retry_count + 1 attempts were made
            if error is None or attempt > descriptor.retry_count:
                break

        if error is not None and attempt > 1:
            logger.error(f"Request {descriptor.method} {descriptor.url} failed after {attempt} attempts: {error}")

        record = self._build_record(descriptor, result, error, attempt)

        status = record.status_code if record.status_code is not None else "unknown"
        self._log(sink, f"Request completed with status code: {status}", "info")

        return record

    def _attempt(
        self, request: TransportRequest, fail_on_http_error: bool
    ) -> tuple[Optional[TransportResult], Optional[TransportError]]:
        """Run one transport exchange, folding every failure into a TransportError."""
        try:
            result = self._transport.send(request)
        except TransportError as e:
            return None, e
        except Exception as e:
            return None, TransportError(f"{type(e).__name__}: {e}", cause=e)

        if result is None:
            return None, TransportError("Transport returned no result")

        if fail_on_http_error:
            status = parse_status_code(result.header_lines)
            if status is not None and status >= 400:
                return result, HttpStatusError(status)

        return result, None

    def _build_record(
        self,
        descriptor: RequestDescriptor,
        result: Optional[TransportResult],
        error: Optional[TransportError],
        attempts: int,
    ) -> ResponseRecord:
        """Normalize the final attempt into a ResponseRecord."""
        lines = result.header_lines if result is not None else ()
        headers, cookies = parse_headers(lines)
        status_code = parse_status_code(lines)

        if error is not None or result is None:
            return ResponseRecord(
                success=False,
                status_code=status_code,
                headers=headers,
                extracted_cookies=cookies,
                error=error or TransportError("Transport returned no result"),
                attempts=attempts,
            )

        content_type = first_header(headers, "Content-Type")
        fmt = resolve_format(descriptor.response_format, content_type)

        return ResponseRecord(
            success=True,
            status_code=status_code,
            raw_body=result.body,
            parsed_body=decode_body(result.body, fmt, content_type),
            headers=headers,
            extracted_cookies=cookies,
            attempts=attempts,
        )

    @staticmethod
    def _log(sink: Optional[LogSink], message: str, level: str) -> None:
        if sink is not None:
            sink(message, level)
