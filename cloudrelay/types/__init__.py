"""Wire-format type definitions for the relay."""

from .anthropic import (
    ContentBlock,
    Message,
    MessagesRequest,
    MessagesResponse,
    StreamEvent,
    ToolDeclaration,
)
from .google import GenerateContentRequest, GenerateContentResponse, Part
from .openai import ChatCompletionChunk, ChatCompletionRequest, ChatCompletionResponse

__all__ = [
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ContentBlock",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "Message",
    "MessagesRequest",
    "MessagesResponse",
    "Part",
    "StreamEvent",
    "ToolDeclaration",
]
