"""Request building, execution and transport for httpchain."""

from .builder import RequestBuilder, form_encode
from .executor import RequestExecutor
from .protocols import LogSink, Transport, TransportRequest, TransportResult
from .transport import RequestsTransport

__all__ = [
    "LogSink",
    "RequestBuilder",
    "RequestExecutor",
    "RequestsTransport",
    "Transport",
    "TransportRequest",
    "TransportResult",
    "form_encode",
]
