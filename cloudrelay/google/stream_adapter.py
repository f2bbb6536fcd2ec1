"""Stream adapter for converting Google streamGenerateContent chunks to Anthropic Messages events.

Google Stream Chunks (one per SSE ``data:`` line, already decoded):
    {"response": {"candidates": [{"content": {"role": "model", "parts": [
        {"text": "Let me think", "thought": true}]}}], "usageMetadata": {...}}}
    {"response": {"candidates": [{"content": {"parts": [
        {"text": "", "thought": true, "thoughtSignature": "..."}]}}]}}
    {"response": {"candidates": [{"content": {"parts": [{"text": "Hello"}]}}]}}
    {"response": {"candidates": [{"content": {"parts": [
        {"functionCall": {"name": "get_weather", "args": {...}}}]},
        "finishReason": "STOP"}], "usageMetadata": {...}}}

Anthropic Messages Events (dicts, framed by the caller):
    {"type": "message_start", "message": {...}}
    {"type": "content_block_start", "index": 0, "content_block": {"type": "thinking", ...}}
    {"type": "content_block_delta", "index": 0, "delta": {"type": "thinking_delta", ...}}
    {"type": "content_block_delta", "index": 0, "delta": {"type": "signature_delta", ...}}
    {"type": "content_block_stop", "index": 0}
    {"type": "message_delta", "delta": {"stop_reason": "tool_use"}, "usage": {...}}
    {"type": "message_stop"}
"""

import json
import logging
from typing import Any, AsyncIterator, Mapping, Optional

from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings
from ..types.anthropic import StreamEvent
from .response_converter import (
    convert_stop_reason,
    convert_usage,
    generate_message_id,
    generate_tool_use_id,
    unwrap_response,
)

logger = logging.getLogger("cloudrelay")


class GoogleToMessagesStreamAdapter:
    """Converts a Google response chunk stream to Anthropic Messages events.

    This adapter maintains state during streaming to:
    - Open and close content blocks as the part kind changes
    - Carry thought signatures onto the thinking block they belong to
    - Track usage and the finish reason
    - Generate a complete event envelope even for empty streams
    """

    def __init__(
        self,
        model: str,
        message_id: Optional[str] = None,
        settings: Optional[TranslatorSettings] = None,
    ):
        """Initialize the stream adapter.

        Args:
            model: Model name for the response
            message_id: The message ID to use (generated when omitted)
            settings: Translator settings; defaults apply when omitted
        """
        self.model = model
        self.message_id = message_id or generate_message_id()
        self.settings = settings or DEFAULT_SETTINGS

        # Content block tracking
        self.block_index = -1
        self.current_block_type: Optional[str] = None
        self.pending_signature = ""

        # Usage tracking
        self.usage: dict[str, int] = convert_usage(None)

        # State flags
        self.message_started = False
        self.has_tool_calls = False
        self.finish_reason: Optional[str] = None

    async def adapt_stream(
        self,
        chunks: AsyncIterator[Mapping[str, Any]],
    ) -> AsyncIterator[StreamEvent]:
        """Transform decoded Google chunks into Anthropic events.

        Failures of the source iterator propagate unchanged and no terminal
        events are produced for an aborted stream.

        Args:
            chunks: Decoded streamGenerateContent payloads

        Yields:
            Anthropic Messages stream events
        """
        async for chunk in chunks:
            for event in self.process_chunk(chunk):
                yield event

        for event in self.finish():
            yield event

    def process_chunk(self, chunk: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Process one decoded chunk and return the events it produces."""
        events: list[dict[str, Any]] = []
        response = unwrap_response(chunk)

        usage_metadata = response.get("usageMetadata")
        if isinstance(usage_metadata, Mapping):
            self.usage = convert_usage(usage_metadata)

        if not self.message_started:
            events.append(self._message_start())
            self.message_started = True

        candidates = response.get("candidates") or []
        candidate = candidates[0] if candidates and isinstance(candidates[0], Mapping) else {}
        parts = (candidate.get("content") or {}).get("parts") or []

        for part in parts:
            if isinstance(part, Mapping):
                events.extend(self._process_part(part))

        if candidate.get("finishReason"):
            self.finish_reason = candidate["finishReason"]

        return events

    def _process_part(self, part: Mapping[str, Any]) -> list[dict[str, Any]]:
        events: list[dict[str, Any]] = []
        signature = part.get("thoughtSignature")
        valid_signature = (
            isinstance(signature, str)
            and len(signature) >= self.settings.min_signature_length
        )

        if isinstance(part.get("functionCall"), Mapping):
            function_call = part["functionCall"]
            events.extend(self._close_current_block())

            block: dict[str, Any] = {
                "type": "tool_use",
                "id": function_call.get("id") or generate_tool_use_id(),
                "name": function_call.get("name", ""),
                "input": {},
            }
            if valid_signature:
                block["thoughtSignature"] = signature

            self.block_index += 1
            self.has_tool_calls = True
            events.append(self._content_block_start(block))
            events.append(self._content_block_delta({
                "type": "input_json_delta",
                "partial_json": json.dumps(function_call.get("args") or {}, ensure_ascii=False),
            }))
            events.append(self._content_block_stop())
            return events

        if "text" not in part:
            return events

        text = part.get("text") or ""

        if part.get("thought") is True:
            if self.current_block_type != "thinking":
                events.extend(self._close_current_block())
                events.extend(self._open_block({"type": "thinking", "thinking": ""}))
            if text:
                events.append(self._content_block_delta({"type": "thinking_delta", "thinking": text}))
            if valid_signature:
                self.pending_signature = signature
            return events

        # Signature-only part trailing a thought
        if not text:
            if valid_signature and self.current_block_type == "thinking":
                self.pending_signature = signature
            return events

        if self.current_block_type != "text":
            events.extend(self._close_current_block())
            events.extend(self._open_block({"type": "text", "text": ""}))
        events.append(self._content_block_delta({"type": "text_delta", "text": text}))
        return events

    def finish(self) -> list[dict[str, Any]]:
        """Emit the terminal events once the source is exhausted."""
        events: list[dict[str, Any]] = []

        if not self.message_started:
            events.append(self._message_start())
            self.message_started = True

        if self.block_index < 0:
            events.extend(self._open_block({"type": "text", "text": ""}))

        events.extend(self._close_current_block())

        stop_reason = convert_stop_reason(self.finish_reason, self.has_tool_calls)
        events.append({
            "type": "message_delta",
            "delta": {"stop_reason": stop_reason, "stop_sequence": None},
            "usage": {
                "input_tokens": self.usage["input_tokens"],
                "output_tokens": self.usage["output_tokens"],
                "cache_read_input_tokens": self.usage["cache_read_input_tokens"],
            },
        })
        events.append({"type": "message_stop"})
        return events

    def _open_block(self, content_block: dict[str, Any]) -> list[dict[str, Any]]:
        self.block_index += 1
        self.current_block_type = content_block["type"]
        return [self._content_block_start(content_block)]

    def _close_current_block(self) -> list[dict[str, Any]]:
        if self.current_block_type is None:
            return []

        events: list[dict[str, Any]] = []
        if self.current_block_type == "thinking" and self.pending_signature:
            events.append(self._content_block_delta({
                "type": "signature_delta",
                "signature": self.pending_signature,
            }))
        self.pending_signature = ""
        events.append(self._content_block_stop())
        self.current_block_type = None
        return events

    def _message_start(self) -> dict[str, Any]:
        return {
            "type": "message_start",
            "message": {
                "id": self.message_id,
                "type": "message",
                "role": "assistant",
                "content": [],
                "model": self.model,
                "stop_reason": None,
                "stop_sequence": None,
                "usage": {
                    "input_tokens": self.usage["input_tokens"],
                    "output_tokens": 0,
                    "cache_read_input_tokens": self.usage["cache_read_input_tokens"],
                    "cache_creation_input_tokens": 0,
                },
            },
        }

    def _content_block_start(self, content_block: dict[str, Any]) -> dict[str, Any]:
        return {
            "type": "content_block_start",
            "index": self.block_index,
            "content_block": content_block,
        }

    def _content_block_delta(self, delta: dict[str, Any]) -> dict[str, Any]:
        return {
            "type": "content_block_delta",
            "index": self.block_index,
            "delta": delta,
        }

    def _content_block_stop(self) -> dict[str, Any]:
        return {"type": "content_block_stop", "index": self.block_index}


async def adapt_google_stream_to_messages(
    model: str,
    chunks: AsyncIterator[Mapping[str, Any]],
    settings: Optional[TranslatorSettings] = None,
) -> AsyncIterator[dict[str, Any]]:
    """Convenience function to adapt a Google chunk stream to Anthropic events.

    Args:
        model: Model name
        chunks: Decoded Google stream chunks
        settings: Translator settings

    Yields:
        Anthropic Messages stream events
    """
    adapter = GoogleToMessagesStreamAdapter(model, settings=settings)
    async for event in adapter.adapt_stream(chunks):
        yield event
