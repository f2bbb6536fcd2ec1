"""Anthropic Messages types (the canonical request/response model).

Content blocks form a closed tagged union keyed on ``type``. Converters
dispatch on that tag rather than on which fields happen to be present.
"""

from typing import Any, Literal, Union

from typing_extensions import TypedDict


class MediaSource(TypedDict, total=False):
    """Source of an image or document block.

    Attributes:
        type: "base64" for inline data, "url" for a remote reference.
        media_type: MIME type of the payload.
        data: Base64 payload (for "base64").
        url: Remote location (for "url").
    """
    type: Literal["base64", "url"]
    media_type: str
    data: str
    url: str


class TextBlock(TypedDict, total=False):
    type: Literal["text"]
    text: str


class ImageBlock(TypedDict, total=False):
    type: Literal["image"]
    source: MediaSource


class DocumentBlock(TypedDict, total=False):
    type: Literal["document"]
    source: MediaSource
    name: str


class ToolUseBlock(TypedDict, total=False):
    """A tool invocation authored by the assistant.

    Attributes:
        id: Call identifier, echoed back by the matching tool_result.
        name: Tool name.
        input: Parsed call arguments.
        thoughtSignature: Gemini signature proving the call came from the
            backend. Non-standard; many clients drop it between turns.
    """
    type: Literal["tool_use"]
    id: str
    name: str
    input: dict[str, Any]
    thoughtSignature: str


class ToolResultBlock(TypedDict, total=False):
    type: Literal["tool_result"]
    tool_use_id: str
    content: Union[str, list[TextBlock], None]
    is_error: bool


class ThinkingBlock(TypedDict, total=False):
    type: Literal["thinking"]
    thinking: str
    signature: str


class RedactedThinkingBlock(TypedDict, total=False):
    type: Literal["redacted_thinking"]
    data: str


ContentBlock = Union[
    TextBlock,
    ImageBlock,
    DocumentBlock,
    ToolUseBlock,
    ToolResultBlock,
    ThinkingBlock,
    RedactedThinkingBlock,
]

StopReason = Literal["end_turn", "max_tokens", "tool_use", "stop_sequence"]


class Message(TypedDict):
    role: Literal["user", "assistant"]
    content: Union[str, list[ContentBlock]]


class ToolDeclaration(TypedDict, total=False):
    name: str
    description: str
    input_schema: dict[str, Any]


class ThinkingConfig(TypedDict, total=False):
    type: Literal["enabled", "disabled"]
    budget_tokens: int


class MessagesRequest(TypedDict, total=False):
    """Canonical request.

    Attributes:
        model: Target model id.
        messages: Ordered conversation.
        system: System prompt, plain or as text blocks.
        max_tokens / temperature / top_p / top_k / stop_sequences:
            Generation parameters.
        tools: Tool declarations.
        tool_choice: {"type": "auto" | "any" | "none"} or
            {"type": "tool", "name": ...}.
        thinking: Reasoning configuration.
        stream: Whether the caller wants incremental events.
    """
    model: str
    messages: list[Message]
    system: Union[str, list[TextBlock]]
    max_tokens: int
    temperature: float
    top_p: float
    top_k: int
    stop_sequences: list[str]
    tools: list[ToolDeclaration]
    tool_choice: dict[str, Any]
    thinking: ThinkingConfig
    stream: bool


class Usage(TypedDict, total=False):
    input_tokens: int
    output_tokens: int
    cache_read_input_tokens: int
    cache_creation_input_tokens: int


class MessagesResponse(TypedDict):
    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    content: list[ContentBlock]
    model: str
    stop_reason: StopReason
    stop_sequence: Union[str, None]
    usage: Usage


class StreamEvent(TypedDict, total=False):
    """One event of a streamed Messages response.

    Attributes:
        type: message_start, content_block_start, content_block_delta,
            content_block_stop, message_delta or message_stop.
        index: Position of the content block the event refers to.
        message: Initial envelope (message_start).
        content_block: Block header (content_block_start).
        delta: Incremental payload (content_block_delta, message_delta).
        usage: Output usage (message_delta).
    """
    type: str
    index: int
    message: dict[str, Any]
    content_block: dict[str, Any]
    delta: dict[str, Any]
    usage: Usage
