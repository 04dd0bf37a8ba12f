"""Types for the chat payloads exchanged by the adapter.

The client-facing side follows the OpenAI Chat Completions format. The
upstream side accepts the same request shape and answers either with a JSON
completion object or an event stream of delta chunks, so the upstream
payloads reuse the OpenAI-compatible types with every field optional.
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# Request Types
# =============================================================================


class ChatMessage(TypedDict, total=False):
    """A message in a chat conversation (OpenAI format).

    Messages are forwarded verbatim, so only the two common keys are
    declared here.

    Attributes:
        role: Role of the message sender ("system", "user", "assistant", ...).
        content: Text content of the message, or a list of content parts.
    """
    role: str
    content: str | list[dict[str, Any]] | None


class ChatRequest(TypedDict, total=False):
    """An inbound chat completion request.

    Attributes:
        model: Public model id, must be known to the model registry.
        messages: Conversation so far, passed through untouched.
        temperature: Sampling temperature.
        max_tokens: Maximum number of tokens to generate.
        top_p: Nucleus sampling probability mass.
        stream: Whether the client wants an event stream back.
    """
    model: str
    messages: list[ChatMessage]
    temperature: float | None
    max_tokens: int | None
    top_p: float | None
    stream: bool | None


class UpstreamRequestBody(TypedDict, total=False):
    """The body posted to the upstream service.

    Optional keys are only present when the client sent them.
    """
    model: str
    messages: list[ChatMessage]
    temperature: float | None
    max_tokens: int | None
    top_p: float | None
    stream: bool | None


# =============================================================================
# Response Types
# =============================================================================


class Delta(TypedDict, total=False):
    """A streamed delta of a choice in a chat completion.

    Attributes:
        role: Role indicator, typically "assistant" for the first chunk.
        content: Incremental text content. Never absent in adapter output.
    """
    role: str | None
    content: str


class Choice(TypedDict, total=False):
    """A choice in a chat completion response.

    Attributes:
        index: Always 0, the adapter emits a single choice.
        delta: Incremental content for streaming responses.
        message: Complete message for non-streaming responses.
        finish_reason: "stop" by default for complete responses, None for
            in-progress chunks.
    """
    index: int
    delta: Delta
    message: ChatMessage
    finish_reason: str | None


class Usage(TypedDict, total=False):
    """Token usage information from a completion response."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionResponse(TypedDict, total=False):
    """A complete (non-streaming) chat completion response.

    Attributes:
        id: Upstream id, or a generated ``chatcmpl-`` id.
        object: Always "chat.completion".
        created: Unix timestamp of when the response was built.
        model: The model id the client asked for.
        choices: Exactly one choice.
        usage: Upstream usage, or all zeros.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


class ChatCompletionChunk(TypedDict, total=False):
    """A streamed chunk of a chat completion response.

    Attributes:
        id: Upstream id, or the stream's generated fallback id.
        object: Always "chat.completion.chunk".
        created: Unix timestamp of the stream start.
        model: The model id the client asked for.
        choices: Exactly one choice carrying a delta.
        usage: Only present when the upstream chunk carried usage.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


# =============================================================================
# Model Listing
# =============================================================================


class ModelDescriptor(TypedDict):
    """An entry of the ``GET /v1/models`` listing."""
    id: str
    object: str
    created: int
    owned_by: str
    permission: list[Any]
    root: str
    parent: str | None


class ModelList(TypedDict):
    object: str
    data: list[ModelDescriptor]
