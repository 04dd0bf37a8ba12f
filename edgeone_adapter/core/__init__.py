"""Core module initialization."""

from .backend import (
    DEFAULT_UPSTREAM_URL,
    Upstream,
    build_outbound_headers,
    format_httpx_error,
    safe_headers_for_log,
)
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidRequestError,
    MissingFieldError,
    ProxyError,
    UnknownModelError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamFormatError,
    UpstreamTimeoutError,
)
from .registry import ModelRegistry, build_model_descriptor, build_registry
from .sse import SSE_DONE_FRAME, SSELineDecoder, encode_sse_data, extract_data_payload, loads_json
from .upstream import UpstreamClient, UpstreamStream

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DEFAULT_UPSTREAM_URL",
    "InvalidRequestError",
    "MissingFieldError",
    "ModelRegistry",
    "ProxyError",
    "SSE_DONE_FRAME",
    "SSELineDecoder",
    "UnknownModelError",
    "Upstream",
    "UpstreamClient",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamFormatError",
    "UpstreamStream",
    "UpstreamTimeoutError",
    "build_model_descriptor",
    "build_outbound_headers",
    "build_registry",
    "encode_sse_data",
    "extract_data_payload",
    "format_httpx_error",
    "loads_json",
    "safe_headers_for_log",
]
