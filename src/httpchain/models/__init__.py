"""Httpchain request, response and configuration models."""

from .config import AuthConfig, BasicAuthConfig, RequestConfig
from .request import (
    BODYLESS_METHODS,
    DEFAULT_USER_AGENT,
    HTTP_METHODS,
    RequestDescriptor,
    ResponseFormat,
    normalize_method,
)
from .response import HeaderValue, JsonBody, ParsedBody, ResponseRecord, TextBody, XmlBody, decode_text

__all__ = [
    # Config
    "AuthConfig",
    "BasicAuthConfig",
    "RequestConfig",
    # Request
    "BODYLESS_METHODS",
    "DEFAULT_USER_AGENT",
    "HTTP_METHODS",
    "RequestDescriptor",
    "ResponseFormat",
    "normalize_method",
    # Response
    "HeaderValue",
    "JsonBody",
    "ParsedBody",
    "ResponseRecord",
    "TextBody",
    "XmlBody",
    "decode_text",
]
