"""SSE (Server-Sent Events) line decoding and framing utilities."""

import codecs
import json
import logging
from typing import Any, Iterator, Optional

logger = logging.getLogger("edgeone-adapter")

SSE_DATA_PREFIX = "data: "
SSE_DONE_PAYLOAD = "[DONE]"
SSE_DONE_FRAME = f"{SSE_DATA_PREFIX}{SSE_DONE_PAYLOAD}\n\n".encode("utf-8")


def encode_sse_data(payload: Any) -> bytes:
    """Frame a JSON-serializable payload as a single ``data:`` event."""
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return f"{SSE_DATA_PREFIX}{text}\n\n".encode("utf-8")


def extract_data_payload(line: str) -> Optional[str]:
    """Return the payload of a ``data: `` line, or None for any other line.

    The line is stripped first; blank lines, comments and other SSE fields
    yield None.
    """
    stripped = line.strip()
    if not stripped or not stripped.startswith(SSE_DATA_PREFIX):
        return None
    return stripped[len(SSE_DATA_PREFIX):]


class SSELineDecoder:
    """Incrementally turns a byte stream into complete text lines.

    Bytes go through a stateful UTF-8 decoder, so a multi-byte character
    split across two reads is joined before the text is split on newlines.
    The trailing, not yet terminated segment stays in ``buffer`` until the
    next feed.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        if not chunk:
            return []
        self.buffer += self._decoder.decode(chunk)
        lines = self.buffer.split("\n")
        self.buffer = lines.pop()
        return lines

    def flush(self) -> list[str]:
        """Finish decoding and return whatever is left as a final line."""
        self.buffer += self._decoder.decode(b"", final=True)
        leftover = self.buffer
        self.buffer = ""
        return [leftover] if leftover.strip() else []


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def loads_json(text: str | bytes) -> Any:
    """Parse strict JSON; ``NaN`` and ``Infinity`` are rejected with ValueError."""
    return json.loads(text, parse_constant=_reject_constant)


def looks_like_event_stream(text: str) -> bool:
    return text.lstrip().startswith("data:")


def iter_event_stream_json(text: str) -> Iterator[Any]:
    """Yield every ``data:`` line of a complete event-stream body that parses.

    ``[DONE]`` sentinels and lines that are not valid JSON are skipped.
    """
    for line in text.split("\n"):
        payload = extract_data_payload(line)
        if payload is None or payload == SSE_DONE_PAYLOAD:
            continue
        try:
            data = loads_json(payload)
        except ValueError as exc:
            logger.debug("Skipping unparseable event-stream line %r: %s", payload[:100], exc)
            continue
        yield data
