"""High-level client: request entry points, convenience verbs and downloads."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .http.builder import RequestBuilder
from .http.executor import RequestExecutor
from .http.protocols import LogSink, Transport
from .models.config import RequestConfig
from .models.request import RequestDescriptor
from .models.response import ResponseRecord

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Primary API for httpchain.

    Holds one executor (transport, optional log sink, sleep function) and
    hands out fresh builders. Instances keep no per-request state, but
    callers wanting parallel requests should still use one client per
    thread together with their own transport.

    Example:
        client = HttpClient()

        record = client.get("https://api.example.com/items", headers={"Accept": "application/json"})
        if record.success:
            print(record.status_code, record.parsed)

        record = client.request_from_config({
            "Method": "POST",
            "URL": "https://api.example.com/items",
            "JsonBody": {"name": "widget"},
            "Retry": 2,
        })
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        log_sink: Optional[LogSink] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the client.

        Args:
            transport: One-shot transport (defaults to RequestsTransport)
            log_sink: Optional (message, level) sink for every request
            sleep: Blocking sleep used between retry attempts
        """
        self._executor = RequestExecutor(transport=transport, log_sink=log_sink, sleep=sleep)

    @property
    def executor(self) -> RequestExecutor:
        """Executor shared by all builders from this client."""
        return self._executor

    def build_request(self, method: str, url: str) -> RequestBuilder:
        """Start a new request bound to this client's executor."""
        return RequestBuilder(method, url, executor=self._executor)

    def dispatch(self, request: Union[RequestBuilder, RequestDescriptor]) -> ResponseRecord:
        """Execute a builder or a bare descriptor."""
        if isinstance(request, RequestBuilder):
            return self._executor.execute(request.descriptor, log_sink=request.log_sink)
        return self._executor.execute(request)

    def request_from_config(self, config: Union[RequestConfig, Mapping[str, Any]]) -> ResponseRecord:
        """
        One-shot request from a configuration record.

        A fresh descriptor is built every time; nothing carries over from
        earlier calls.

        Args:
            config: RequestConfig, or a mapping validated into one

        Returns:
            ResponseRecord

        Raises:
            ConfigurationError: If a mapping has unknown or invalid keys
        """
        if not isinstance(config, RequestConfig):
            config = RequestConfig.from_mapping(config)
        return RequestBuilder.from_config(config, executor=self._executor).dispatch()

    def _verb(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, Any]],
    ) -> RequestBuilder:
        builder = self.build_request(method, url)
        if headers:
            builder = builder.set_header(headers)
        return builder

    def get(self, url: str, headers: Optional[Mapping[str, Any]] = None) -> ResponseRecord:
        """GET a URL."""
        return self._verb("GET", url, headers).dispatch()

    def post(self, url: str, body: Any, headers: Optional[Mapping[str, Any]] = None) -> ResponseRecord:
        """POST a raw body (mappings are form-encoded)."""
        return self._verb("POST", url, headers).set_body(body).dispatch()

    def post_json(self, url: str, data: Any, headers: Optional[Mapping[str, Any]] = None) -> ResponseRecord:
        """POST a value as JSON."""
        return self._verb("POST", url, headers).set_json_body(data).dispatch()

    def put(self, url: str, body: Any, headers: Optional[Mapping[str, Any]] = None) -> ResponseRecord:
        """PUT a raw body."""
        return self._verb("PUT", url, headers).set_body(body).dispatch()

    def delete(self, url: str, headers: Optional[Mapping[str, Any]] = None) -> ResponseRecord:
        """DELETE a URL."""
        return self._verb("DELETE", url, headers).dispatch()

    def patch(self, url: str, body: Any, headers: Optional[Mapping[str, Any]] = None) -> ResponseRecord:
        """PATCH a raw body."""
        return self._verb("PATCH", url, headers).set_body(body).dispatch()

    def download(self, url: str, local_path: Union[str, Path]) -> bool:
        """
        GET a URL and save the body to a local file.

        Args:
            url: URL to download
            local_path: Destination file

        Returns:
            True if a non-empty body was written; False on transport
            failure, empty body, or a filesystem error
        """
        record = self.get(url)
        if not record.success or not record.raw_body:
            logger.debug(f"Nothing to save from {url} (success={record.success})")
            return False

        try:
            Path(local_path).write_bytes(record.raw_body)
        except OSError as e:
            logger.warning(f"Failed to write download from {url} to {local_path}: {e}")
            return False

        logger.debug(f"Saved {len(record.raw_body)} bytes from {url} to {local_path}")
        return True


def build_request(method: str, url: str) -> RequestBuilder:
    """
    Start a request that dispatches through a default executor.

    Convenience for scripts; use HttpClient to share a transport or sink.
    """
    return RequestBuilder(method, url)
