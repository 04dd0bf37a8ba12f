"""HTTP client for the upstream chat endpoint."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from .backend import Upstream, build_outbound_headers, format_httpx_error, safe_headers_for_log
from .exceptions import (
    ProxyError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = logging.getLogger("edgeone-adapter")


def translate_httpx_error(exc: httpx.HTTPError, upstream: Upstream) -> ProxyError:
    """Map a transport-level httpx failure onto the adapter's error taxonomy."""
    detail = format_httpx_error(exc, upstream)
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamTimeoutError(f"Upstream request timed out: {detail}")
    return UpstreamConnectionError(f"Error processing request: {detail}")


class UpstreamStream:
    """An open streamed upstream response.

    Iterating yields the raw body bytes as they arrive. ``aclose`` is safe to
    call more than once and is also called when iteration finishes.
    """

    def __init__(self, response: httpx.Response, upstream: Upstream) -> None:
        self.response = response
        self.upstream = upstream
        self._closed = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.HTTPError as exc:
            logger.error(
                "Upstream stream from %s failed mid-read: %s",
                self.upstream.url,
                format_httpx_error(exc, self.upstream),
            )
            raise
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing upstream stream for %s", self.upstream.url)
        await self.response.aclose()


class UpstreamClient:
    """Posts translated bodies to the upstream and checks the status.

    Args:
        upstream: The endpoint to call.
        transport: Optional httpx transport, used by tests to fake the upstream.
    """

    def __init__(
        self,
        upstream: Upstream,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.upstream = upstream
        self._client = httpx.AsyncClient(transport=transport, follow_redirects=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def complete(self, body: Mapping[str, Any]) -> str:
        """Send a non-streaming request and return the upstream body as text.

        Raises:
            UpstreamError: For non-2xx upstream statuses.
            UpstreamTimeoutError: When the upstream does not answer in time.
            UpstreamConnectionError: For any other transport failure.
        """
        logger.debug("Posting non-streaming request to %s", self.upstream.url)
        try:
            resp = await self._client.post(
                self.upstream.url,
                json=dict(body),
                headers=build_outbound_headers(self.upstream),
                timeout=self.upstream.build_timeout(is_stream=False),
            )
        except httpx.HTTPError as exc:
            logger.error("Upstream request to %s failed: %s", self.upstream.url, exc)
            raise translate_httpx_error(exc, self.upstream) from exc

        logger.debug("Received response from %s: status %s", self.upstream.url, resp.status_code)
        logger.debug("Response headers: %s", safe_headers_for_log(resp.headers))
        if not resp.is_success:
            logger.warning(
                "Upstream %s returned error status %s", self.upstream.url, resp.status_code
            )
            raise UpstreamError(f"Upstream API error: {resp.text}", status_code=resp.status_code)
        return resp.text

    async def open_stream(self, body: Mapping[str, Any]) -> UpstreamStream:
        """Send a streaming request and return the open response once headers arrive.

        Errors that happen before the first body byte are raised here, so
        they still reach the client as a JSON error instead of a broken stream.
        """
        logger.debug("Sending streaming request to %s", self.upstream.url)
        request = self._client.build_request(
            "POST",
            self.upstream.url,
            json=dict(body),
            headers=build_outbound_headers(self.upstream),
            timeout=self.upstream.build_timeout(is_stream=True),
        )
        logger.debug("Request headers: %s", safe_headers_for_log(request.headers))
        try:
            resp = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.error("Failed to open upstream stream to %s: %s", self.upstream.url, exc)
            raise translate_httpx_error(exc, self.upstream) from exc

        if not resp.is_success:
            try:
                data = await resp.aread()
            finally:
                await resp.aclose()
            text = data.decode("utf-8", errors="replace")
            logger.warning(
                "Streaming request to %s returned error status %s",
                self.upstream.url,
                resp.status_code,
            )
            raise UpstreamError(f"Upstream API error: {text}", status_code=resp.status_code)

        logger.info("Streaming request to %s successful, status %s", self.upstream.url, resp.status_code)
        return UpstreamStream(resp, self.upstream)
