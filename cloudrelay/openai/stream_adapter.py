"""Stream adapter for converting Anthropic Messages events to OpenAI Chat Completion chunks.

Anthropic Messages Events:
    {"type": "message_start", "message": {"usage": {"input_tokens": 10, ...}}}
    {"type": "content_block_start", "index": 1, "content_block": {"type": "tool_use", ...}}
    {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", ...}}
    {"type": "content_block_stop", "index": 1}
    {"type": "message_delta", "delta": {"stop_reason": "tool_use"}, "usage": {"output_tokens": 5}}
    {"type": "message_stop"}

OpenAI Chat Completion Chunks:
    {"choices": [{"delta": {"role": "assistant"}, "index": 0, "finish_reason": null}]}
    {"choices": [{"delta": {"tool_calls": [{"index": 0, "id": "...", ...}]}, ...}]}
    {"choices": [{"delta": {"tool_calls": [{"index": 0, "function": {"arguments": "..."}}]}}]}
    {"choices": [{"delta": {}, "finish_reason": "tool_calls"}], "usage": {...}}
    "[DONE]"
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional, Union

from ..core.sse import DONE_MARKER
from ..types.openai import ChatCompletionChunk
from .response_converter import convert_finish_reason

logger = logging.getLogger("cloudrelay")


@dataclass
class StreamState:
    """Per-stream counters carried across events."""

    tool_call_index: int = -1
    prompt_tokens: int = 0
    completion_tokens: int = 0
    role_emitted: bool = False


class MessagesToChatStreamAdapter:
    """Converts an Anthropic Messages event stream to OpenAI chunks.

    One instance serves exactly one stream; events must be fed in arrival
    order. The adapter holds no external resources.
    """

    def __init__(
        self,
        model: str,
        completion_id: Optional[str] = None,
        created: Optional[int] = None,
    ):
        """Initialize the stream adapter.

        Args:
            model: Model name for the chunks
            completion_id: The chunk ID to use (e.g., "chatcmpl-xxx")
            created: Unix timestamp shared by every chunk
        """
        self.model = model
        self.completion_id = completion_id or f"chatcmpl-{secrets.token_hex(16)}"
        self.created = created if created is not None else int(time.time())
        self.state = StreamState()

    async def adapt_stream(
        self,
        events: AsyncIterator[Mapping[str, Any]],
    ) -> AsyncIterator[Union[ChatCompletionChunk, str]]:
        """Transform Anthropic events into OpenAI chunks plus ``[DONE]``.

        ``[DONE]`` follows once the source is exhausted, whether or not a
        ``message_stop`` was seen. If the source raises, the error propagates
        and ``[DONE]`` is never produced.

        Args:
            events: Anthropic Messages stream events

        Yields:
            OpenAI chunk dicts, then the ``[DONE]`` marker
        """
        try:
            async for event in events:
                for chunk in self.process_event(event):
                    yield chunk
        except Exception as exc:
            logger.error(f"OpenAI stream adapter error: {exc}")
            raise

        yield DONE_MARKER

    def process_event(self, event: Mapping[str, Any]) -> list[ChatCompletionChunk]:
        """Process one Anthropic event and return the chunks it produces."""
        event_type = event.get("type")
        state = self.state

        if event_type == "message_start":
            chunks = []
            if not state.role_emitted:
                chunks.append(self._build_chunk({"role": "assistant"}))
                state.role_emitted = True
            usage = (event.get("message") or {}).get("usage")
            if isinstance(usage, Mapping):
                state.prompt_tokens = (usage.get("input_tokens") or 0) + (
                    usage.get("cache_read_input_tokens") or 0
                )
            return chunks

        if event_type == "content_block_start":
            block = event.get("content_block") or {}
            if block.get("type") != "tool_use":
                return []
            state.tool_call_index += 1
            return [self._build_chunk({
                "tool_calls": [{
                    "index": state.tool_call_index,
                    "id": block.get("id"),
                    "type": "function",
                    "function": {"name": block.get("name", ""), "arguments": ""},
                }]
            })]

        if event_type == "content_block_delta":
            delta = event.get("delta") or {}
            delta_type = delta.get("type")
            if delta_type == "thinking_delta":
                return [self._build_chunk({"reasoning_content": delta.get("thinking", "")})]
            if delta_type == "text_delta":
                return [self._build_chunk({"content": delta.get("text", "")})]
            if delta_type == "input_json_delta":
                return [self._build_chunk({
                    "tool_calls": [{
                        "index": state.tool_call_index,
                        "function": {"arguments": delta.get("partial_json", "")},
                    }]
                })]
            return []

        if event_type == "message_delta":
            usage = event.get("usage")
            if isinstance(usage, Mapping):
                if usage.get("output_tokens") is not None:
                    state.completion_tokens = usage["output_tokens"]
                if usage.get("input_tokens"):
                    state.prompt_tokens = usage["input_tokens"] + (
                        usage.get("cache_read_input_tokens") or 0
                    )
            stop_reason = (event.get("delta") or {}).get("stop_reason")
            finish_reason = convert_finish_reason(stop_reason, state.tool_call_index >= 0)
            final_usage = {
                "prompt_tokens": state.prompt_tokens,
                "completion_tokens": state.completion_tokens,
                "total_tokens": state.prompt_tokens + state.completion_tokens,
            }
            return [self._build_chunk({}, finish_reason, final_usage)]

        if event_type == "message_stop":
            logger.debug("OpenAI stream reached message_stop")

        # content_block_stop, message_stop and pings need no OpenAI chunk
        return []

    def _build_chunk(
        self,
        delta: dict[str, Any],
        finish_reason: Optional[str] = None,
        usage: Optional[dict[str, int]] = None,
    ) -> ChatCompletionChunk:
        chunk: ChatCompletionChunk = {
            "id": self.completion_id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model,
            "choices": [{
                "index": 0,
                "delta": delta,
                "finish_reason": finish_reason,
                "logprobs": None,
            }],
        }
        if usage:
            chunk["usage"] = usage
        return chunk


async def adapt_messages_stream_to_chat(
    model: str,
    events: AsyncIterator[Mapping[str, Any]],
) -> AsyncIterator[Union[ChatCompletionChunk, str]]:
    """Convenience function to adapt an Anthropic event stream to OpenAI chunks.

    Args:
        model: Model name
        events: Anthropic Messages stream events

    Yields:
        OpenAI chunks, then ``[DONE]``
    """
    adapter = MessagesToChatStreamAdapter(model)
    async for chunk in adapter.adapt_stream(events):
        yield chunk
