"""End-to-end tests for the HTTP front against a fake upstream."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import sse_body, split_frames
from edgeone_adapter.config_loader import AdapterSettings
from edgeone_adapter.main import create_app

MESSAGES = [{"role": "user", "content": "Hello"}]
CHAT_PATH = "/v1/chat/completions"


def _chat(client, headers=None, **payload):
    body = {"model": "deepseek-chat", "messages": MESSAGES}
    body.update(payload)
    return client.post(CHAT_PATH, json=body, headers=headers or {})


# =============================================================================
# Models and landing page
# =============================================================================


def test_list_models(client, upstream):
    response = client.get("/v1/models")
    assert response.status_code == 200
    data = response.json()
    assert data["object"] == "list"
    assert [model["id"] for model in data["data"]] == ["deepseek-reasoner", "deepseek-chat"]
    for model in data["data"]:
        assert model["object"] == "model"
        assert model["owned_by"] == "deepseek"
        assert model["created"] == 1704067200
    assert upstream.requests == []


def test_home_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "deepseek-chat" in response.text
    assert "/v1/chat/completions" in response.text


def test_home_page_is_public_with_auth(make_client):
    client = make_client(api_keys=("k1",))
    assert client.get("/").status_code == 200


# =============================================================================
# CORS and routing errors
# =============================================================================


@pytest.mark.parametrize("path", ["/", "/v1/models", CHAT_PATH, "/anything/else"])
def test_preflight_short_circuits(make_client, upstream, path):
    client = make_client(api_keys=("k1",))
    response = client.options(path)
    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert "Authorization" in response.headers["access-control-allow-headers"]
    assert response.headers["access-control-max-age"] == "86400"
    assert upstream.requests == []


def test_cors_headers_on_regular_responses(client):
    response = client.get("/v1/models")
    assert response.headers["access-control-allow-origin"] == "*"


def test_unknown_path_is_404_envelope(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {
        "error": {"message": "Not Found", "type": "invalid_request_error", "code": "not_found"}
    }
    assert response.headers["access-control-allow-origin"] == "*"


def test_wrong_method_is_405_envelope(client):
    response = client.get(CHAT_PATH)
    assert response.status_code == 405
    assert response.json()["error"]["type"] == "method_not_allowed"


# =============================================================================
# Authentication
# =============================================================================


class TestAuthentication:
    @pytest.fixture
    def auth_client(self, make_client):
        return make_client(api_keys=("k1", "k2"))

    @pytest.mark.parametrize("key", ["k1", "k2"])
    def test_valid_keys(self, auth_client, key):
        response = auth_client.get("/v1/models", headers={"Authorization": f"Bearer {key}"})
        assert response.status_code == 200

    def test_invalid_key(self, auth_client, upstream):
        response = _chat(auth_client, headers={"Authorization": "Bearer k3"})
        assert response.status_code == 401
        error = response.json()["error"]
        assert error["type"] == "invalid_request_error"
        assert error["code"] == "invalid_api_key"
        assert response.headers["access-control-allow-origin"] == "*"
        assert upstream.requests == []

    def test_missing_header(self, auth_client):
        response = auth_client.get("/v1/models")
        assert response.status_code == 401
        assert "Missing Authorization header" in response.json()["error"]["message"]

    def test_bad_format(self, auth_client):
        response = auth_client.get("/v1/models", headers={"Authorization": "Token k1"})
        assert response.status_code == 401
        assert "Invalid Authorization header format" in response.json()["error"]["message"]

    def test_auth_checked_before_routing(self, auth_client):
        response = auth_client.get("/v1/does-not-exist")
        assert response.status_code == 401


# =============================================================================
# Request validation
# =============================================================================


@pytest.mark.parametrize(
    "body",
    [
        {"model": "deepseek-chat"},
        {"messages": MESSAGES},
        {"model": "deepseek-chat", "messages": ""},
    ],
)
def test_missing_fields(client, upstream, body):
    response = client.post(CHAT_PATH, json=body)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "invalid_request_error"
    assert error["message"] == "Missing required parameters: model and messages"
    assert upstream.requests == []


def test_unknown_model(client, upstream):
    response = _chat(client, model="gpt-4o")
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["type"] == "invalid_request_error"
    assert "deepseek-chat" in error["message"]
    assert "deepseek-reasoner" in error["message"]
    assert upstream.requests == []


def test_invalid_json(client, upstream):
    response = client.post(
        CHAT_PATH, content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_json"
    assert upstream.requests == []


def test_non_object_json(client):
    response = client.post(CHAT_PATH, json=[1, 2])
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_json_shape"


# =============================================================================
# Non-streaming completions
# =============================================================================


def test_non_stream_success(client):
    response = _chat(client)
    assert response.status_code == 200
    data = response.json()
    assert data["object"] == "chat.completion"
    assert data["model"] == "deepseek-chat"
    assert data["id"] == "upstream-1"
    assert data["choices"][0]["message"] == {"role": "assistant", "content": "hi"}
    assert data["choices"][0]["finish_reason"] == "stop"
    assert data["usage"] == {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4}
    assert response.headers["access-control-allow-origin"] == "*"


def test_upstream_request_shape(client, upstream):
    _chat(client)
    assert upstream.bodies == [{"model": "deepseek-chat", "messages": MESSAGES}]
    request = upstream.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://ai-chatbot-starter.edgeone.app/api/ai"
    assert request.headers["content-type"] == "application/json"
    assert request.headers["accept"] == "*/*"
    assert request.headers["origin"] == "https://ai-chatbot-starter.edgeone.app"
    assert request.headers["referer"] == "https://ai-chatbot-starter.edgeone.app/"
    assert "authorization" not in request.headers


def test_optional_fields_preserved_when_present(client, upstream):
    _chat(client, temperature=0, max_tokens=0, stream=False, tools=[{"type": "function"}])
    body = upstream.bodies[0]
    assert body["temperature"] == 0
    assert body["max_tokens"] == 0
    assert body["stream"] is False
    assert "tools" not in body
    assert "top_p" not in body


def test_forward_mapped_model(make_client, upstream):
    client = make_client(forward_mapped_model=True)
    response = _chat(client)
    assert upstream.bodies[0]["model"] == "DeepSeek-V3"
    assert response.json()["model"] == "deepseek-chat"


def test_non_stream_with_event_stream_body(client, upstream):
    upstream.respond = lambda body: httpx.Response(
        200,
        content=sse_body(
            {"choices": [{"message": {"content": "partial"}}]},
            {"choices": [{"message": {"content": "final"}}]},
        ),
        headers={"Content-Type": "text/event-stream"},
    )
    response = _chat(client)
    assert response.status_code == 200
    assert response.json()["choices"][0]["message"]["content"] == "final"


def test_non_stream_garbage_body(client, upstream):
    upstream.respond = lambda body: httpx.Response(200, content=b"<html>oops</html>")
    response = _chat(client)
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "api_error"
    assert "<html>oops</html>" in error["message"]


def test_upstream_error_status(client, upstream):
    upstream.respond = lambda body: httpx.Response(429, text="slow down")
    response = _chat(client)
    assert response.status_code == 429
    error = response.json()["error"]
    assert error["type"] == "api_error"
    assert error["code"] == 429
    assert "slow down" in error["message"]


def test_upstream_timeout(client, upstream):
    def respond(body):
        raise httpx.ReadTimeout("read timed out")

    upstream.respond = respond
    response = _chat(client)
    assert response.status_code == 504
    error = response.json()["error"]
    assert error["type"] == "api_error"
    assert error["code"] == "timeout"


def test_upstream_unreachable(client, upstream):
    def respond(body):
        raise httpx.ConnectError("connection refused")

    upstream.respond = respond
    response = _chat(client)
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "internal_server_error"
    assert "ConnectError" in error["message"]


# =============================================================================
# Streaming completions
# =============================================================================


def _stream_response(*events, done=True):
    return lambda body: httpx.Response(
        200,
        content=sse_body(*events, done=done),
        headers={"Content-Type": "text/event-stream"},
    )


def _frame_payloads(text):
    frames = split_frames(text)
    assert frames[-1] == "data: [DONE]"
    return [json.loads(frame[len("data: "):]) for frame in frames[:-1]]


def test_stream_reframes_chunks(client, upstream):
    upstream.respond = _stream_response(
        {"choices": [{"delta": {"role": "assistant"}}]},
        {"choices": [{"delta": {"content": "A"}}]},
        {"choices": [{"delta": {"content": "B"}, "finish_reason": "stop"}]},
    )
    response = _chat(client, stream=True)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    assert response.headers["access-control-allow-origin"] == "*"

    payloads = _frame_payloads(response.text)
    assert len(payloads) == 3
    assert [p["choices"][0]["delta"]["content"] for p in payloads] == ["", "A", "B"]
    assert {p["object"] for p in payloads} == {"chat.completion.chunk"}
    assert {p["model"] for p in payloads} == {"deepseek-chat"}
    assert len({p["id"] for p in payloads}) == 1
    assert payloads[-1]["choices"][0]["finish_reason"] == "stop"
    assert response.text.count("[DONE]") == 1
    assert upstream.bodies[0]["stream"] is True


def test_stream_without_upstream_done(client, upstream):
    upstream.respond = _stream_response({"choices": [{"delta": {"content": "A"}}]}, done=False)
    response = _chat(client, stream=True)
    payloads = _frame_payloads(response.text)
    assert [p["choices"][0]["delta"]["content"] for p in payloads] == ["A"]


def test_stream_upstream_error_is_json(client, upstream):
    upstream.respond = lambda body: httpx.Response(503, text="unavailable")
    response = _chat(client, stream=True)
    assert response.status_code == 503
    assert response.headers["content-type"].startswith("application/json")
    assert response.json()["error"]["type"] == "api_error"


def test_stream_string_true_is_not_streaming(client, upstream):
    response = _chat(client, stream="true")
    assert response.headers["content-type"].startswith("application/json")
    assert response.json()["object"] == "chat.completion"


# =============================================================================
# Strict JSON and unexpected failures
# =============================================================================


def test_empty_messages_list_is_forwarded(client, upstream):
    response = _chat(client, messages=[])
    assert response.status_code == 200
    assert upstream.bodies[0]["messages"] == []


def test_request_with_non_finite_number_is_invalid_json(client, upstream):
    response = client.post(
        CHAT_PATH,
        content=b'{"model":"deepseek-chat","messages":[],"temperature":NaN}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_json"
    assert upstream.requests == []


def test_non_stream_non_finite_body_is_format_error(client, upstream):
    upstream.respond = lambda body: httpx.Response(
        200,
        content=b'{"choices":[{"message":{"content":"x"}}],"usage":{"total_tokens":NaN}}',
    )
    response = _chat(client)
    assert response.status_code == 500
    error = response.json()["error"]
    assert error["type"] == "api_error"
    assert "total_tokens" in error["message"]
    assert response.headers["access-control-allow-origin"] == "*"


def test_stream_skips_non_finite_line(client, upstream):
    upstream.respond = lambda body: httpx.Response(
        200,
        content=(
            b'data: {"choices":[{"delta":{"content":NaN}}]}\n\n'
            b'data: {"choices":[{"delta":{"content":"A"}}]}\n\n'
            b"data: [DONE]\n\n"
        ),
        headers={"Content-Type": "text/event-stream"},
    )
    response = _chat(client, stream=True)
    assert "NaN" not in response.text
    payloads = _frame_payloads(response.text)
    assert [p["choices"][0]["delta"]["content"] for p in payloads] == ["A"]


def test_unexpected_error_is_internal_server_error(upstream, monkeypatch):
    def explode(payload, model):
        raise RuntimeError("kaboom")

    monkeypatch.setattr("edgeone_adapter.api.routes.chat.to_completion", explode)
    app = create_app(settings=AdapterSettings(), transport=upstream.transport)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = _chat(client)
    assert response.status_code == 500
    assert response.json() == {
        "error": {
            "message": "Error processing request: kaboom",
            "type": "internal_server_error",
            "code": None,
        }
    }
    assert response.headers["access-control-allow-origin"] == "*"
