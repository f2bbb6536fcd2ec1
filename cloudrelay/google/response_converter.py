"""Google Generative AI -> Anthropic Messages response translation."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Mapping, Optional

from ..core.exceptions import TranslationError
from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings
from ..types.anthropic import MessagesResponse

logger = logging.getLogger("cloudrelay")


def generate_tool_use_id() -> str:
    return f"toolu_{secrets.token_hex(12)}"


def generate_message_id() -> str:
    return f"msg_{secrets.token_hex(16)}"


def unwrap_response(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    """Strip the Cloud Code ``{"response": ...}`` envelope if present."""
    inner = payload.get("response")
    return inner if isinstance(inner, Mapping) else payload


def convert_stop_reason(finish_reason: Optional[str], has_tool_calls: bool) -> str:
    """Convert a Google finishReason to an Anthropic stop_reason.

    Google: STOP, MAX_TOKENS, TOOL_USE, SAFETY, RECITATION, OTHER, ...
    Anthropic: end_turn, max_tokens, tool_use, stop_sequence

    An explicit STOP or MAX_TOKENS is taken as reported. A tool call only
    decides the reason when the backend gave no finishReason or another one.
    """
    if finish_reason == "STOP":
        return "end_turn"
    if finish_reason == "MAX_TOKENS":
        return "max_tokens"
    if finish_reason == "TOOL_USE" or has_tool_calls:
        return "tool_use"
    return "end_turn"


def convert_usage(usage_metadata: Mapping[str, Any] | None) -> dict[str, int]:
    """Convert usageMetadata to Anthropic usage.

    promptTokenCount includes cached tokens while Anthropic's input_tokens
    excludes them, so the cached count is subtracted.
    """
    usage_metadata = usage_metadata or {}
    prompt_tokens = usage_metadata.get("promptTokenCount") or 0
    cached_tokens = usage_metadata.get("cachedContentTokenCount") or 0
    return {
        "input_tokens": prompt_tokens - cached_tokens,
        "output_tokens": usage_metadata.get("candidatesTokenCount") or 0,
        "cache_read_input_tokens": cached_tokens,
        "cache_creation_input_tokens": 0,
    }


def convert_part_to_block(
    part: Mapping[str, Any],
    settings: TranslatorSettings,
) -> Optional[dict[str, Any]]:
    """Convert a single Google part to an Anthropic content block."""
    if "text" in part:
        if part.get("thought") is True:
            # Backends may omit the signature even when thinking happened
            return {
                "type": "thinking",
                "thinking": part["text"],
                "signature": part.get("thoughtSignature") or "",
            }
        return {"type": "text", "text": part["text"]}

    function_call = part.get("functionCall")
    if isinstance(function_call, Mapping):
        block: dict[str, Any] = {
            "type": "tool_use",
            "id": function_call.get("id") or generate_tool_use_id(),
            "name": function_call.get("name", ""),
            "input": function_call.get("args") or {},
        }
        signature = part.get("thoughtSignature")
        if isinstance(signature, str) and len(signature) >= settings.min_signature_length:
            block["thoughtSignature"] = signature
        return block

    return None


def convert_google_to_anthropic(
    payload: Mapping[str, Any],
    model: str,
    settings: Optional[TranslatorSettings] = None,
) -> MessagesResponse:
    """Translate a Google generateContent response to an Anthropic message.

    Args:
        payload: Google response body, with or without the Cloud Code envelope
        model: Model name to report
        settings: Translator settings; defaults apply when omitted

    Returns:
        Anthropic Messages API response body

    Raises:
        TranslationError: The response has no candidates at all.
    """
    settings = settings or DEFAULT_SETTINGS
    response = unwrap_response(payload)

    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        block_reason = (response.get("promptFeedback") or {}).get("blockReason")
        detail = f" (blockReason={block_reason})" if block_reason else ""
        raise TranslationError(f"Upstream response contained no candidates{detail}")

    first_candidate = candidates[0] if isinstance(candidates[0], Mapping) else {}
    parts = (first_candidate.get("content") or {}).get("parts") or []

    content: list[dict[str, Any]] = []
    has_tool_calls = False
    for part in parts:
        if not isinstance(part, Mapping):
            continue
        block = convert_part_to_block(part, settings)
        if block is None:
            continue
        if block["type"] == "tool_use":
            has_tool_calls = True
        content.append(block)

    return {
        "id": generate_message_id(),
        "type": "message",
        "role": "assistant",
        "content": content or [{"type": "text", "text": ""}],
        "model": model,
        "stop_reason": convert_stop_reason(first_candidate.get("finishReason"), has_tool_calls),
        "stop_sequence": None,
        "usage": convert_usage(response.get("usageMetadata")),
    }
