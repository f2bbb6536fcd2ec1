"""OpenAI Chat Completions types.

Follows the OpenAI API format for requests, responses and streamed chunks.
"""

from typing import Any

from typing_extensions import TypedDict


class FunctionCall(TypedDict, total=False):
    """A function call within a tool call.

    Attributes:
        name: Name of the function to call. Absent on streamed follow-up
            chunks where the name was already stated.
        arguments: JSON string containing the arguments. Streamed
            incrementally across chunks.
    """
    name: str | None
    arguments: str | None


class ToolCall(TypedDict, total=False):
    """A tool call in a chat response.

    Attributes:
        id: Unique identifier matched by the later tool message.
        type: Always "function".
        function: The function to call with its arguments.
        index: Position in the tool_calls array (streaming only).
    """
    id: str
    type: str
    function: FunctionCall
    index: int


class ChatMessage(TypedDict, total=False):
    """A message in a chat conversation.

    Attributes:
        role: "system", "user", "assistant" or "tool".
        content: A string, an array of content parts, or None when only
            tool_calls is present.
        reasoning_content: Reasoning trace of the assistant (non-standard,
            widely understood by clients).
        tool_calls: Tool calls requested by the assistant.
        tool_call_id: ID of the call a tool message answers.
    """
    role: str
    content: str | list[dict[str, Any]] | None
    reasoning_content: str | None
    name: str | None
    tool_calls: list[ToolCall] | None
    tool_call_id: str | None


class ChatCompletionRequest(TypedDict, total=False):
    model: str
    messages: list[ChatMessage]
    tools: list[dict[str, Any]]
    tool_choice: str | dict[str, Any]
    max_tokens: int
    max_completion_tokens: int
    temperature: float
    top_p: float
    stop: str | list[str]
    stream: bool
    reasoning_effort: str


class Usage(TypedDict, total=False):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class Delta(TypedDict, total=False):
    """A streamed delta of a choice.

    Attributes:
        role: Present only on the first chunk.
        content: Incremental text.
        reasoning_content: Incremental reasoning text.
        tool_calls: Partial tool calls keyed by ``index``.
    """
    role: str | None
    content: str | None
    reasoning_content: str | None
    tool_calls: list[ToolCall] | None


class Choice(TypedDict, total=False):
    index: int
    message: ChatMessage
    delta: Delta
    finish_reason: str | None
    logprobs: Any


class ChatCompletionResponse(TypedDict, total=False):
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage
    system_fingerprint: str | None


class ChatCompletionChunk(TypedDict, total=False):
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage
