"""Normalization of thinking blocks in assistant turns.

Backends only accept reasoning blocks they can prove they produced: every
replayed thinking block must carry its original signature, an assistant turn
must not end on an unsigned thought, and thinking must come before any text
or tool call. Clients routinely violate all three (they drop signatures,
attach ``cache_control`` to blocks, or append text after tool calls), so each
assistant turn runs through four stages before it is sent upstream:

1. signature gate - drop thinking blocks without a valid signature
2. sanitize      - strip thinking blocks down to their legal fields
3. trailing trim - drop unsigned thinking blocks at the end of the turn
4. reorder       - thinking, then non-empty text, then tool_use

Every stage is idempotent and can be called on its own. Blocks that are not
dicts are never touched.

A signature counts as valid purely by length (``min_signature_length``); the
relay cannot verify its contents. Gemini-style parts carry the signature in
``thoughtSignature``; a ``redacted_thinking`` block's opaque ``data`` payload
plays the same role.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings

logger = logging.getLogger("cloudrelay")

THINKING_TYPES = ("thinking", "redacted_thinking")


def is_thinking_block(block: Any) -> bool:
    """Check if a block is a thinking block in any representation."""
    if not isinstance(block, dict):
        return False
    return (
        block.get("type") in THINKING_TYPES
        or "thinking" in block
        or block.get("thought") is True
    )


def _signature_of(block: dict[str, Any]) -> Any:
    if block.get("thought") is True:
        return block.get("thoughtSignature")
    if block.get("type") == "redacted_thinking":
        return block.get("data")
    return block.get("signature")


def has_valid_signature(
    block: dict[str, Any],
    settings: Optional[TranslatorSettings] = None,
) -> bool:
    """Check if a thinking block carries a signature of the minimum length."""
    settings = settings or DEFAULT_SETTINGS
    signature = _signature_of(block)
    return isinstance(signature, str) and len(signature) >= settings.min_signature_length


def sanitize_thinking_block(block: Any) -> Any:
    """Keep only the fields legal for the block's representation.

    - Gemini style: ``{thought, text, thoughtSignature}``
    - Anthropic thinking: ``{type, thinking, signature}``
    - Anthropic redacted thinking: ``{type, data}``

    Anything else is returned unchanged.
    """
    if not isinstance(block, dict):
        return block

    if block.get("thought") is True:
        sanitized: dict[str, Any] = {"thought": True}
        for key in ("text", "thoughtSignature"):
            if key in block:
                sanitized[key] = block[key]
        return sanitized

    if block.get("type") == "redacted_thinking":
        sanitized = {"type": "redacted_thinking"}
        if "data" in block:
            sanitized["data"] = block["data"]
        return sanitized

    if block.get("type") == "thinking" or "thinking" in block:
        sanitized = {"type": "thinking"}
        for key in ("thinking", "signature"):
            if key in block:
                sanitized[key] = block[key]
        return sanitized

    return block


def filter_unsigned_thinking(
    content: list[Any],
    settings: Optional[TranslatorSettings] = None,
) -> list[Any]:
    """Drop thinking blocks without a valid signature and sanitize the rest."""
    filtered: list[Any] = []
    dropped = 0

    for block in content:
        if not is_thinking_block(block):
            filtered.append(block)
            continue
        if has_valid_signature(block, settings):
            filtered.append(sanitize_thinking_block(block))
        else:
            dropped += 1

    if dropped:
        logger.debug(f"Dropped {dropped} unsigned thinking block(s)")
    return filtered


def remove_trailing_thinking_blocks(
    content: list[Any],
    settings: Optional[TranslatorSettings] = None,
) -> list[Any]:
    """Remove unsigned thinking blocks from the end of a turn.

    Scanning stops at the first non-thinking block or at a signed thinking
    block, whichever comes first.
    """
    end_index = len(content)
    for index in range(len(content) - 1, -1, -1):
        block = content[index]
        if not is_thinking_block(block) or has_valid_signature(block, settings):
            break
        end_index = index

    if end_index < len(content):
        logger.debug(f"Removed {len(content) - end_index} trailing unsigned thinking block(s)")
        return content[:end_index]
    return content


def reorder_assistant_content(content: list[Any]) -> list[Any]:
    """Order a turn as thinking, then text, then tool_use.

    Relative order inside each group is preserved. Text blocks that are empty
    after trimming are dropped; other block kinds travel with the text group.
    A single-block turn is only sanitized.
    """
    if len(content) == 1:
        return [sanitize_thinking_block(content[0])] if is_thinking_block(content[0]) else content

    thinking_blocks: list[Any] = []
    text_blocks: list[Any] = []
    tool_use_blocks: list[Any] = []
    dropped_empty = 0

    for block in content:
        if is_thinking_block(block):
            thinking_blocks.append(sanitize_thinking_block(block))
        elif isinstance(block, dict) and block.get("type") == "tool_use":
            tool_use_blocks.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str) and text.strip():
                text_blocks.append(block)
            else:
                dropped_empty += 1
        else:
            text_blocks.append(block)

    if dropped_empty:
        logger.debug(f"Dropped {dropped_empty} empty text block(s)")

    return thinking_blocks + text_blocks + tool_use_blocks


def normalize_assistant_content(
    content: list[Any],
    settings: Optional[TranslatorSettings] = None,
) -> list[Any]:
    """Run the full pipeline on one assistant turn's content blocks."""
    content = filter_unsigned_thinking(content, settings)
    content = remove_trailing_thinking_blocks(content, settings)
    return reorder_assistant_content(content)


def normalize_messages(
    messages: Iterable[Any],
    settings: Optional[TranslatorSettings] = None,
) -> list[Any]:
    """Normalize every assistant turn of a conversation.

    User turns and turns with plain-string content are returned as-is.
    """
    normalized: list[Any] = []
    for message in messages:
        if (
            isinstance(message, dict)
            and message.get("role") in ("assistant", "model")
            and isinstance(message.get("content"), list)
        ):
            message = {
                **message,
                "content": normalize_assistant_content(message["content"], settings),
            }
        normalized.append(message)
    return normalized


def filter_unsigned_thinking_parts(
    contents: list[Any],
    settings: Optional[TranslatorSettings] = None,
) -> list[Any]:
    """Apply the signature gate to already converted backend ``contents``."""
    filtered: list[Any] = []
    for content in contents:
        if isinstance(content, dict) and isinstance(content.get("parts"), list):
            content = {**content, "parts": filter_unsigned_thinking(content["parts"], settings)}
        filtered.append(content)
    return filtered
