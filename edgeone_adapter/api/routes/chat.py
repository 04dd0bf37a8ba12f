"""OpenAI-compatible chat completions endpoint."""

import logging
from typing import Mapping, cast

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ...adapter import ChatStreamReframer, build_upstream_body, parse_upstream_body, to_completion
from ...core.exceptions import InvalidRequestError
from ...core.sse import loads_json
from ...types import ChatRequest

logger = logging.getLogger("edgeone-adapter")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def _read_payload(request: Request) -> ChatRequest:
    body = await request.body()
    try:
        payload = loads_json(body or b"{}")
    except ValueError as exc:
        logger.error("Invalid JSON payload: %s", exc)
        raise InvalidRequestError("Invalid JSON payload", code="invalid_json") from exc

    if not isinstance(payload, Mapping):
        logger.error("Payload must be a JSON object")
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_json_shape"
        )
    return cast(ChatRequest, payload)


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Validates the request, forwards the translated body upstream and returns
    either a ``chat.completion`` JSON object or, for ``stream: true``, an
    event stream of ``chat.completion.chunk`` frames ending with
    ``data: [DONE]``.
    """
    logger.info("Received chat completions request")
    state = request.app.state
    payload = await _read_payload(request)

    upstream_body = build_upstream_body(
        payload,
        state.registry,
        forward_mapped_model=state.settings.forward_mapped_model,
    )
    model = payload["model"]
    is_stream = payload.get("stream") is True
    logger.info("Processing request for model %s, stream=%s", model, is_stream)

    client = state.upstream_client
    if is_stream:
        upstream_stream = await client.open_stream(upstream_body)
        reframer = ChatStreamReframer(model)
        return StreamingResponse(
            reframer.reframe(upstream_stream),
            media_type="text/event-stream",
            headers=STREAM_HEADERS,
            background=BackgroundTask(upstream_stream.aclose),
        )

    text = await client.complete(upstream_body)
    completion = to_completion(parse_upstream_body(text), model)
    logger.info("Request for model %s completed successfully", model)
    return JSONResponse(completion)
