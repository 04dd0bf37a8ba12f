"""Stream re-framer for upstream chat completion event streams.

Reads the upstream body as it arrives, reassembles complete SSE lines and
re-emits every ``data:`` event as an OpenAI ``chat.completion.chunk``:

Upstream:
    data: {"choices":[{"delta":{"content":"Hel"}}]}
    data: {"choices":[{"delta":{"content":"lo"},"finish_reason":"stop"}]}
    data: [DONE]

Client:
    data: {"id":"chatcmpl-...","object":"chat.completion.chunk",...,"delta":{"content":"Hel"},...}
    data: {"id":"chatcmpl-...","object":"chat.completion.chunk",...,"finish_reason":"stop"}
    data: [DONE]

The stream always ends with exactly one ``data: [DONE]`` frame, whether or
not the upstream sent one.
"""

import logging
import time
from typing import AsyncIterable, AsyncIterator, Optional

from ..core.sse import (
    SSE_DONE_FRAME,
    SSE_DONE_PAYLOAD,
    SSELineDecoder,
    encode_sse_data,
    extract_data_payload,
    loads_json,
)
from .translator import generate_completion_id, to_completion_chunk

logger = logging.getLogger("edgeone-adapter")


class ChatStreamReframer:
    """Converts an upstream SSE byte stream into OpenAI chunk frames.

    One instance serves one stream. It keeps the partial-line buffer, the
    fallback id and creation time shared by chunks that carry no upstream
    id, and whether the ``[DONE]`` sentinel was already sent.
    """

    def __init__(self, model: str) -> None:
        """Initialize the re-framer.

        Args:
            model: Model name echoed in every chunk (the client's model id).
        """
        self.model = model
        self.decoder = SSELineDecoder()
        self.fallback_id = generate_completion_id()
        self.created = int(time.time())
        self.done_sent = False
        self.chunks_emitted = 0
        self.lines_skipped = 0

    async def reframe(self, upstream: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
        """Transform the upstream byte stream into client SSE frames.

        Errors raised while reading ``upstream`` propagate to the caller so the
        client connection is aborted rather than closed cleanly.

        Args:
            upstream: Raw upstream body chunks, split at arbitrary points.

        Yields:
            Complete ``data: ...\\n\\n`` frames as bytes.
        """
        async for chunk in upstream:
            for line in self.decoder.feed(chunk):
                frame = self._process_line(line)
                if frame is not None:
                    yield frame

        for line in self.decoder.flush():
            frame = self._process_line(line)
            if frame is not None:
                yield frame

        if not self.done_sent:
            self.done_sent = True
            yield SSE_DONE_FRAME

        logger.debug(
            "Stream for %s finished: %d chunks, %d lines skipped",
            self.model,
            self.chunks_emitted,
            self.lines_skipped,
        )

    def _process_line(self, line: str) -> Optional[bytes]:
        payload = extract_data_payload(line)
        if payload is None:
            return None

        if payload == SSE_DONE_PAYLOAD:
            if self.done_sent:
                return None
            self.done_sent = True
            return SSE_DONE_FRAME

        try:
            data = loads_json(payload)
        except ValueError as exc:
            self.lines_skipped += 1
            logger.warning("Failed to parse upstream stream line %r: %s", payload[:100], exc)
            return None

        if not isinstance(data, dict):
            self.lines_skipped += 1
            logger.warning("Skipping non-object upstream stream event: %r", payload[:100])
            return None

        self.chunks_emitted += 1
        return encode_sse_data(
            to_completion_chunk(
                data,
                self.model,
                fallback_id=self.fallback_id,
                created=self.created,
            )
        )


async def reframe_chat_stream(
    upstream: AsyncIterable[bytes], model: str
) -> AsyncIterator[bytes]:
    """Convenience wrapper around :class:`ChatStreamReframer`."""
    reframer = ChatStreamReframer(model)
    async for frame in reframer.reframe(upstream):
        yield frame
