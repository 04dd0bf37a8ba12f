"""Chat completion format translation between clients and the upstream."""

from .stream_adapter import ChatStreamReframer, reframe_chat_stream
from .translator import (
    build_upstream_body,
    extract_message_content,
    generate_completion_id,
    parse_upstream_body,
    to_completion,
    to_completion_chunk,
)

__all__ = [
    "ChatStreamReframer",
    "build_upstream_body",
    "extract_message_content",
    "generate_completion_id",
    "parse_upstream_body",
    "reframe_chat_stream",
    "to_completion",
    "to_completion_chunk",
]
