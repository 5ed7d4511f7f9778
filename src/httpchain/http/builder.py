"""Immutable request builder."""

from __future__ import annotations

import base64
import dataclasses
import json
from collections.abc import Iterator, Mapping
from typing import Any, Optional, Union
from urllib.parse import urlencode

from ..models.config import RequestConfig
from ..models.request import RequestDescriptor, ResponseFormat, normalize_method
from ..models.response import ResponseRecord
from .executor import RequestExecutor
from .protocols import LogSink

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _flatten_form(prefix: str, value: Any) -> Iterator[tuple[str, str]]:
    if isinstance(value, Mapping):
        for key, item in value.items():
            yield from _flatten_form(f"{prefix}[{key}]" if prefix else str(key), item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            yield from _flatten_form(f"{prefix}[{index}]" if prefix else str(index), item)
    elif value is None:
        return
    elif isinstance(value, bool):
        yield prefix, "1" if value else "0"
    else:
        yield prefix, str(value)


def form_encode(data: Union[Mapping[str, Any], list, tuple]) -> str:
    """
    URL-encode a mapping (or list) as an HTML form body.

    Nested mappings and lists use bracket keys (``a[b]=1``, ``tags[0]=x``);
    None values are dropped and booleans become 1/0.
    """
    return urlencode(list(_flatten_form("", data)))


class RequestBuilder:
    """
    Chainable, immutable request builder.

    Every setter returns a new builder; the receiver is never modified,
    so a partly configured builder can be shared and extended safely.

    Example:
        record = (
            client.build_request("POST", "https://api.example.com/items")
            .set_json_body({"name": "widget"})
            .set_authorization("Bearer", token)
            .retry(2, 500)
            .dispatch()
        )
    """

    def __init__(
        self,
        method: str = "GET",
        url: str = "",
        *,
        executor: Optional[RequestExecutor] = None,
        descriptor: Optional[RequestDescriptor] = None,
        log_sink: Optional[LogSink] = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            method: HTTP method (case-insensitive)
            url: Request URL
            executor: Executor used by dispatch() (a default one if None)
            descriptor: Start from an existing descriptor instead of method/url
            log_sink: Optional (message, level) sink passed to the executor
        """
        if descriptor is None:
            descriptor = RequestDescriptor(method=normalize_method(method), url=url)
        self._descriptor = descriptor
        self._executor = executor
        self._log_sink = log_sink

    @property
    def descriptor(self) -> RequestDescriptor:
        """The request described so far."""
        return self._descriptor

    @property
    def log_sink(self) -> Optional[LogSink]:
        """Sink attached with set_logger(), if any."""
        return self._log_sink

    def _with(self, **changes: Any) -> "RequestBuilder":
        return RequestBuilder(
            executor=self._executor,
            descriptor=dataclasses.replace(self._descriptor, **changes),
            log_sink=self._log_sink,
        )

    def _with_headers(self, *pairs: tuple[str, Any]) -> "RequestBuilder":
        added = tuple((str(name), str(value)) for name, value in pairs)
        return self._with(headers=self._descriptor.headers + added)

    def _with_body(self, body: str, content_type: str) -> "RequestBuilder":
        # Exactly one Content-Type: the latest body helper replaces earlier ones
        headers = tuple(
            (name, value) for name, value in self._descriptor.headers if name.strip().lower() != "content-type"
        )
        return self._with(body=body, headers=headers + (("Content-Type", content_type),))

    # Headers and body

    def set_header(self, headers: Mapping[str, Any]) -> "RequestBuilder":
        """Append every header in a mapping."""
        return self._with_headers(*headers.items())

    def add_header(self, name: str, value: Any) -> "RequestBuilder":
        """Append one header. Existing headers with the same name are kept."""
        return self._with_headers((name, value))

    def set_body(self, body: Any) -> "RequestBuilder":
        """
        Set the raw body.

        Strings and bytes are sent verbatim; mappings and lists are
        form-url-encoded; None clears the body. No Content-Type is added.
        """
        if isinstance(body, (Mapping, list, tuple)):
            body = form_encode(body)
        elif body is not None and not isinstance(body, (str, bytes)):
            body = str(body)
        return self._with(body=body)

    def set_json_body(self, data: Any) -> "RequestBuilder":
        """Serialize a value to JSON and send it as application/json."""
        return self._with_body(json.dumps(data, separators=(",", ":")), JSON_CONTENT_TYPE)

    def set_form_data(self, form_data: Mapping[str, Any]) -> "RequestBuilder":
        """Send a mapping as application/x-www-form-urlencoded. No file uploads."""
        return self._with_body(form_encode(form_data), FORM_CONTENT_TYPE)

    # Cookies and auth

    def set_cookie(self, cookies: Mapping[str, Any]) -> "RequestBuilder":
        """Append every cookie in a mapping."""
        added = tuple((str(name), str(value)) for name, value in cookies.items())
        return self._with(cookies=self._descriptor.cookies + added)

    def add_cookie(self, name: str, value: Any) -> "RequestBuilder":
        """Append one cookie."""
        return self._with(cookies=self._descriptor.cookies + ((str(name), str(value)),))

    def set_authorization(self, auth_type: str, credentials: str) -> "RequestBuilder":
        """Add ``Authorization: {auth_type} {credentials}``."""
        return self._with_headers(("Authorization", f"{auth_type} {credentials}"))

    def set_basic_auth(self, username: str, password: str) -> "RequestBuilder":
        """Add HTTP Basic credentials."""
        token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
        return self.set_authorization("Basic", token)

    # Transport policy

    def timeout(self, milliseconds: Optional[float]) -> "RequestBuilder":
        """
        Per-attempt timeout in milliseconds; None restores the transport default.

        Raises:
            ValueError: If the value is not a number
        """
        if milliseconds is not None:
            milliseconds = max(0.0, float(milliseconds))
        return self._with(timeout_ms=milliseconds)

    def follow_redirects(self, follow: bool = True, max_redirects: int = 5) -> "RequestBuilder":
        """Set the redirect policy. max_redirects only matters when following."""
        return self._with(follow_redirects=bool(follow), max_redirects=max(0, int(max_redirects)))

    def verify_ssl(self, verify: bool = True) -> "RequestBuilder":
        """Enable or disable certificate and host name verification together."""
        return self._with(verify_ssl=bool(verify))

    def set_user_agent(self, user_agent: str) -> "RequestBuilder":
        """Override the default User-Agent (an explicit User-Agent header still wins)."""
        return self._with(user_agent=user_agent)

    def set_proxy(self, proxy: Optional[str]) -> "RequestBuilder":
        """Route the request through a proxy URI."""
        return self._with(proxy=proxy)

    def retry(self, count: int, delay_ms: int = 1000) -> "RequestBuilder":
        """Retry failed attempts ``count`` times, sleeping ``delay_ms`` before each retry."""
        return self._with(retry_count=max(0, int(count)), retry_delay_ms=max(0, int(delay_ms)))

    def expect_format(self, fmt: Union[str, ResponseFormat]) -> "RequestBuilder":
        """Force a response format (auto, json, xml, text)."""
        return self._with(response_format=ResponseFormat.parse(fmt))

    def fail_on_http_error(self, enabled: bool = True) -> "RequestBuilder":
        """Treat status >= 400 as a failed attempt that is retried and reported."""
        return self._with(fail_on_http_error=bool(enabled))

    def set_logger(self, log_sink: Optional[LogSink]) -> "RequestBuilder":
        """Attach a (message, level) sink used when this request is dispatched."""
        if log_sink is not None and not callable(log_sink):
            raise TypeError("log_sink must be callable")
        return RequestBuilder(executor=self._executor, descriptor=self._descriptor, log_sink=log_sink)

    # Dispatch

    def dispatch(self) -> ResponseRecord:
        """Execute the request. Never raises for transport or parse failures."""
        executor = self._executor or RequestExecutor()
        return executor.execute(self._descriptor, log_sink=self._log_sink)

    @classmethod
    def from_config(
        cls,
        config: RequestConfig,
        executor: Optional[RequestExecutor] = None,
        log_sink: Optional[LogSink] = None,
    ) -> "RequestBuilder":
        """
        Build a fresh request from a configuration record.

        Keys are applied in a fixed order: headers, body helpers, cookies,
        auth, then transport policy. Absent keys keep their defaults.
        """
        builder = cls(config.method, config.url, executor=executor, log_sink=log_sink)

        if config.header is not None:
            builder = builder.set_header(config.header)
        if config.body is not None:
            builder = builder.set_body(config.body)
        if config.json_body is not None:
            builder = builder.set_json_body(config.json_body)
        if config.form_data is not None:
            builder = builder.set_form_data(config.form_data)
        if config.cookie is not None:
            builder = builder.set_cookie(config.cookie)
        if config.auth is not None:
            builder = builder.set_authorization(config.auth.type, config.auth.credentials)
        if config.basic_auth is not None:
            builder = builder.set_basic_auth(config.basic_auth.username, config.basic_auth.password)
        if config.timeout is not None:
            builder = builder.timeout(config.timeout)
        if config.follow_redirects is not None:
            max_redirects = config.max_redirects if config.max_redirects is not None else 5
            builder = builder.follow_redirects(config.follow_redirects, max_redirects)
        if config.verify_ssl is not None:
            builder = builder.verify_ssl(config.verify_ssl)
        if config.user_agent is not None:
            builder = builder.set_user_agent(config.user_agent)
        if config.proxy is not None:
            builder = builder.set_proxy(config.proxy)
        if config.retry is not None:
            delay = config.retry_delay if config.retry_delay is not None else 1000
            builder = builder.retry(config.retry, delay)
        if config.response_format is not None:
            builder = builder.expect_format(config.response_format)
        if config.fail_on_http_error is not None:
            builder = builder.fail_on_http_error(config.fail_on_http_error)

        return builder
