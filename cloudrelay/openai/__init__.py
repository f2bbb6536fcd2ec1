"""OpenAI Chat Completions compatibility helpers.

Provides translation between the OpenAI Chat Completions API format and the
Anthropic Messages API format used as the relay's canonical model.
"""

from .request_converter import convert_openai_to_anthropic
from .response_converter import convert_anthropic_to_openai, convert_finish_reason
from .stream_adapter import (
    MessagesToChatStreamAdapter,
    StreamState,
    adapt_messages_stream_to_chat,
)

__all__ = [
    "convert_openai_to_anthropic",
    "convert_anthropic_to_openai",
    "convert_finish_reason",
    "MessagesToChatStreamAdapter",
    "StreamState",
    "adapt_messages_stream_to_chat",
]
