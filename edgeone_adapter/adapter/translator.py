"""OpenAI Chat Completions <-> upstream translation.

Request side: validates the client payload against the model registry and
builds the upstream body, carrying only the optional fields the client
actually sent.

Response side: reshapes an upstream completion (a JSON object, or an event
stream returned where JSON was expected) into an OpenAI ``chat.completion``
object, and single upstream delta events into ``chat.completion.chunk``
objects.

Key mappings:
- ``choices[0].message.content`` -> ``message.content`` -> ``""``
- ``choices[0].finish_reason`` -> ``"stop"`` (complete) / ``None`` (chunk)
- ``usage`` -> all-zero usage
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Mapping, Optional

from ..core.exceptions import MissingFieldError, UpstreamFormatError
from ..core.registry import ModelRegistry
from ..core.sse import iter_event_stream_json, loads_json, looks_like_event_stream
from ..types import ChatCompletionChunk, ChatCompletionResponse, UpstreamRequestBody, Usage

logger = logging.getLogger("edgeone-adapter")

OPTIONAL_REQUEST_FIELDS = ("temperature", "max_tokens", "top_p", "stream")
FORMAT_ERROR_PREVIEW_CHARS = 200


def generate_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


def _empty_usage() -> Usage:
    return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


def _first_choice(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], Mapping):
        return choices[0]
    return {}


def _mapping_get(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    return None


def _is_blank(value: Any) -> bool:
    if isinstance(value, (list, dict)):
        return False
    return not value


# =============================================================================
# Request translation
# =============================================================================


def build_upstream_body(
    payload: Mapping[str, Any],
    registry: ModelRegistry,
    forward_mapped_model: bool = False,
) -> UpstreamRequestBody:
    """Validate a chat request and build the body sent upstream.

    Args:
        payload: The decoded client request.
        registry: Model registry used to validate ``model``.
        forward_mapped_model: Send the registry's upstream id instead of the
            client-facing model id.

    Returns:
        The upstream body. Optional fields appear only if their key was
        present in ``payload``; explicit ``False``/``0`` values are kept.

    Raises:
        MissingFieldError: ``model`` or ``messages`` is absent, null, false,
            zero or an empty string. Empty lists and objects count as present.
        UnknownModelError: ``model`` is not in the registry.
    """
    model = payload.get("model")
    messages = payload.get("messages")
    if _is_blank(model) or _is_blank(messages):
        raise MissingFieldError()

    upstream_model = registry.resolve(model)

    body: UpstreamRequestBody = {
        "model": upstream_model if forward_mapped_model else model,
        "messages": messages,
    }
    for field_name in OPTIONAL_REQUEST_FIELDS:
        if field_name in payload:
            body[field_name] = payload[field_name]
    return body


# =============================================================================
# Response translation
# =============================================================================


def parse_upstream_body(text: str) -> dict[str, Any]:
    """Decode a non-streaming upstream body into a completion payload.

    Some upstream deployments answer with an event stream even when no stream
    was requested; in that case the last ``data:`` line that parses is used.

    Raises:
        UpstreamFormatError: Neither an event-stream line nor the whole body
            decodes to a JSON object.
    """
    if looks_like_event_stream(text):
        last_payload: Optional[dict[str, Any]] = None
        for candidate in iter_event_stream_json(text):
            if isinstance(candidate, dict):
                last_payload = candidate
        if last_payload is not None:
            logger.debug("Upstream returned an event stream for a non-streaming request")
            return last_payload

    try:
        payload = loads_json(text)
    except ValueError as exc:
        logger.error("Upstream response is not valid JSON: %s", exc)
        raise UpstreamFormatError(
            f"Upstream response format error: {text[:FORMAT_ERROR_PREVIEW_CHARS]}..."
        ) from exc

    if not isinstance(payload, dict):
        logger.error("Upstream response is JSON but not an object: %s", type(payload).__name__)
        raise UpstreamFormatError(
            f"Upstream response format error: {text[:FORMAT_ERROR_PREVIEW_CHARS]}..."
        )
    return payload


def extract_message_content(payload: Mapping[str, Any]) -> str:
    """Pick the assistant text; the first present value wins, even if empty."""
    content = _mapping_get(_first_choice(payload).get("message"), "content")
    if content is None:
        content = _mapping_get(payload.get("message"), "content")
    if content is None:
        return ""
    return content


def to_completion(payload: Mapping[str, Any], model: str) -> ChatCompletionResponse:
    """Convert an upstream completion payload to an OpenAI chat completion."""
    choice = _first_choice(payload)
    finish_reason = choice.get("finish_reason")
    usage = payload.get("usage")
    return {
        "id": payload.get("id") or generate_completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": extract_message_content(payload),
                },
                "finish_reason": finish_reason if finish_reason is not None else "stop",
            }
        ],
        "usage": usage if usage is not None else _empty_usage(),
    }


def to_completion_chunk(
    chunk: Mapping[str, Any],
    model: str,
    fallback_id: Optional[str] = None,
    created: Optional[int] = None,
) -> ChatCompletionChunk:
    """Convert one upstream stream event to an OpenAI chat completion chunk.

    Upstream delta fields are passed through; ``content`` is always present
    and ``finish_reason`` stays None until the upstream reports one.
    """
    choice = _first_choice(chunk)
    upstream_delta = choice.get("delta")
    delta = dict(upstream_delta) if isinstance(upstream_delta, Mapping) else {}
    if delta.get("content") is None:
        delta["content"] = ""

    converted: ChatCompletionChunk = {
        "id": chunk.get("id") or fallback_id or generate_completion_id(),
        "object": "chat.completion.chunk",
        "created": created if created is not None else int(time.time()),
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": delta,
                "finish_reason": choice.get("finish_reason") or None,
            }
        ],
    }
    usage = chunk.get("usage")
    if usage:
        converted["usage"] = usage
    return converted
