"""Upstream endpoint configuration and request helpers."""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("edgeone-adapter")

DEFAULT_UPSTREAM_URL = "https://ai-chatbot-starter.edgeone.app/api/ai"
DEFAULT_TIMEOUT = 60
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
)
SENSITIVE_HEADERS = {"authorization", "proxy-authorization", "cookie"}


@dataclass(frozen=True)
class Upstream:
    """The single upstream chat endpoint the adapter forwards to."""

    url: str = DEFAULT_UPSTREAM_URL
    timeout: Optional[float] = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def build_timeout(self, is_stream: bool) -> httpx.Timeout:
        """Timeouts for one call; streamed reads wait as long as tokens keep coming."""
        if is_stream:
            return httpx.Timeout(
                connect=self.timeout, read=None, write=self.timeout, pool=self.timeout
            )
        return httpx.Timeout(self.timeout)


def build_outbound_headers(upstream: Upstream) -> dict[str, str]:
    """Build the fixed header set the upstream expects from a browser client."""
    origin = upstream.origin
    return {
        "Content-Type": "application/json",
        "Accept": "*/*",
        "User-Agent": upstream.user_agent,
        "Origin": origin,
        "Referer": f"{origin}/",
    }


def safe_headers_for_log(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy headers with credentials masked down to their first characters."""
    masked: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            if value.startswith("Bearer "):
                masked[key] = f"Bearer {value[7:10]}****"
            else:
                masked[key] = value[:3] + "****" if len(value) > 3 else "****"
        else:
            masked[key] = value
    return masked


def format_httpx_error(exc: Any, upstream: Upstream) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except (AttributeError, RuntimeError):
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    else:
        parts.append(f"url={upstream.url}")

    if isinstance(exc, httpx.TimeoutException):
        parts.append(f"timeout={upstream.timeout or DEFAULT_TIMEOUT}s")

    return "; ".join(parts)
