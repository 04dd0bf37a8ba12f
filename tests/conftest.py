"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Generator, Iterable

import httpx
import pytest
from fastapi.testclient import TestClient

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from edgeone_adapter.config_loader import AdapterSettings
from edgeone_adapter.main import create_app


# =============================================================================
# Fake Upstream
# =============================================================================


async def aiter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    """Helper to create async iterator from list of bytes."""
    for chunk in chunks:
        yield chunk


def sse_body(*events: Any, done: bool = True) -> bytes:
    """Frame upstream events the way the upstream sends them."""
    parts = [f"data: {json.dumps(event)}\n\n" for event in events]
    if done:
        parts.append("data: [DONE]\n\n")
    return "".join(parts).encode("utf-8")


def split_frames(text: str) -> list[str]:
    """Split a client-side event stream into its ``data:`` frames."""
    return [frame for frame in text.split("\n\n") if frame]


@dataclass
class FakeUpstream:
    """Records requests and answers them with a configurable handler.

    ``respond`` receives the decoded JSON body and returns an ``httpx.Response``
    (or raises an httpx error to simulate transport failures).
    """

    respond: Callable[[dict[str, Any]], httpx.Response] = field(
        default=lambda body: httpx.Response(
            200,
            json={
                "id": "upstream-1",
                "choices": [{"message": {"content": "hi"}, "finish_reason": "stop"}],
                "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
            },
        )
    )
    requests: list[httpx.Request] = field(default_factory=list)
    bodies: list[dict[str, Any]] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content or b"{}")
        self.bodies.append(body)
        return self.respond(body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_client(upstream: FakeUpstream) -> Generator[Callable[..., TestClient], None, None]:
    """Build a TestClient around a fresh app wired to the fake upstream.

    Usage:
        def test_something(make_client, upstream):
            client = make_client(api_keys=("k1",))
            ...
    """
    clients: list[TestClient] = []

    def _make(**settings_kwargs: Any) -> TestClient:
        settings = AdapterSettings(**settings_kwargs)
        app = create_app(settings=settings, transport=upstream.transport)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    try:
        yield _make
    finally:
        for client in clients:
            client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    """A client for an app with authentication disabled."""
    return make_client()
