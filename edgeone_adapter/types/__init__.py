"""Type definitions for the adapter."""

from .chat import (
    ChatCompletionChunk,
    ChatCompletionResponse,
    ChatMessage,
    ChatRequest,
    Choice,
    Delta,
    ModelDescriptor,
    ModelList,
    UpstreamRequestBody,
    Usage,
)

__all__ = [
    "ChatCompletionChunk",
    "ChatCompletionResponse",
    "ChatMessage",
    "ChatRequest",
    "Choice",
    "Delta",
    "ModelDescriptor",
    "ModelList",
    "UpstreamRequestBody",
    "Usage",
]
