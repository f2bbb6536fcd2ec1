"""Conversation-level helpers shared by the translators."""

from .thinking import (
    filter_unsigned_thinking,
    filter_unsigned_thinking_parts,
    has_valid_signature,
    is_thinking_block,
    normalize_assistant_content,
    normalize_messages,
    remove_trailing_thinking_blocks,
    reorder_assistant_content,
    sanitize_thinking_block,
)

__all__ = [
    "filter_unsigned_thinking",
    "filter_unsigned_thinking_parts",
    "has_valid_signature",
    "is_thinking_block",
    "normalize_assistant_content",
    "normalize_messages",
    "remove_trailing_thinking_blocks",
    "reorder_assistant_content",
    "sanitize_thinking_block",
]
