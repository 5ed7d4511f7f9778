"""
httpchain - Configurable blocking HTTP client with retries and response parsing.

Usage:
    from httpchain import HttpClient

    client = HttpClient()

    record = (
        client.build_request("GET", "https://api.example.com/items")
        .add_header("Accept", "application/json")
        .retry(3, 500)
        .dispatch()
    )
    if record.success:
        print(record.status_code, record.parsed)
    else:
        print(record.error)
"""

__version__ = "1.0.0"

from .client import HttpClient, build_request
from .exceptions import ConfigurationError, HttpChainError, HttpStatusError, TransportError
from .http import (
    LogSink,
    RequestBuilder,
    RequestExecutor,
    RequestsTransport,
    Transport,
    TransportRequest,
    TransportResult,
)
from .logging_config import logger_sink, setup_logging
from .models import (
    AuthConfig,
    BasicAuthConfig,
    JsonBody,
    ParsedBody,
    RequestConfig,
    RequestDescriptor,
    ResponseFormat,
    ResponseRecord,
    TextBody,
    XmlBody,
)

__all__ = [
    "__version__",
    # Core
    "HttpClient",
    "build_request",
    "RequestBuilder",
    "RequestExecutor",
    # Transport
    "LogSink",
    "RequestsTransport",
    "Transport",
    "TransportRequest",
    "TransportResult",
    # Models
    "AuthConfig",
    "BasicAuthConfig",
    "RequestConfig",
    "RequestDescriptor",
    "ResponseFormat",
    "ResponseRecord",
    "ParsedBody",
    "JsonBody",
    "XmlBody",
    "TextBody",
    # Errors
    "HttpChainError",
    "ConfigurationError",
    "TransportError",
    "HttpStatusError",
    # Logging
    "setup_logging",
    "logger_sink",
]
