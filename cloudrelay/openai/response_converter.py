"""Anthropic Messages -> OpenAI Chat Completions response translation."""

from __future__ import annotations

import json
import re
import time
from typing import Any, Mapping, Optional

from ..types.openai import ChatCompletionResponse

FINISH_REASON_MAP = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "max_tokens": "length",
    "tool_use": "tool_calls",
}

_MESSAGE_ID_PREFIX_RE = re.compile(r"^msg_")


def convert_finish_reason(stop_reason: Optional[str], has_tool_calls: bool = False) -> str:
    """Convert an Anthropic stop_reason to an OpenAI finish_reason.

    Any tool call forces ``tool_calls``; unknown reasons map to ``stop``.
    """
    if has_tool_calls:
        return "tool_calls"
    return FINISH_REASON_MAP.get(stop_reason or "", "stop")


def convert_usage(usage: Mapping[str, Any] | None) -> dict[str, int]:
    """Convert Anthropic usage to OpenAI usage.

    OpenAI's prompt_tokens includes cached tokens, so cache reads are added
    back onto input_tokens.
    """
    usage = usage or {}
    prompt_tokens = (usage.get("input_tokens") or 0) + (usage.get("cache_read_input_tokens") or 0)
    completion_tokens = usage.get("output_tokens") or 0
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }


def convert_anthropic_to_openai(payload: Mapping[str, Any]) -> ChatCompletionResponse:
    """Translate an Anthropic Messages response to an OpenAI chat completion.

    Handles:
    - Response envelope (id prefix, object, created, model)
    - Text blocks -> content (null when there is no text)
    - Thinking blocks -> reasoning_content
    - tool_use blocks -> tool_calls with JSON-encoded arguments
    - Finish reason and usage mapping

    Args:
        payload: Anthropic Messages API response body

    Returns:
        OpenAI Chat Completions API response body
    """
    content = [b for b in payload.get("content") or [] if isinstance(b, Mapping)]

    text_blocks = [b for b in content if b.get("type") == "text"]
    thinking_blocks = [b for b in content if b.get("type") == "thinking"]
    tool_use_blocks = [b for b in content if b.get("type") == "tool_use"]

    message: dict[str, Any] = {"role": "assistant"}
    # OpenAI clients expect an explicit null when there is no text
    message["content"] = "".join(b.get("text", "") for b in text_blocks) if text_blocks else None

    if thinking_blocks:
        message["reasoning_content"] = "".join(b.get("thinking", "") for b in thinking_blocks)

    if tool_use_blocks:
        message["tool_calls"] = [
            {
                "id": block.get("id"),
                "type": "function",
                "function": {
                    "name": block.get("name", ""),
                    "arguments": json.dumps(block.get("input") or {}, ensure_ascii=False),
                },
            }
            for block in tool_use_blocks
        ]

    return {
        "id": _MESSAGE_ID_PREFIX_RE.sub("chatcmpl-", payload.get("id") or ""),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": payload.get("model", ""),
        "choices": [
            {
                "index": 0,
                "message": message,
                "finish_reason": convert_finish_reason(
                    payload.get("stop_reason"), bool(tool_use_blocks)
                ),
                "logprobs": None,
            }
        ],
        "usage": convert_usage(payload.get("usage")),
        "system_fingerprint": None,
    }
