"""Shared constants and model-family helpers."""

from __future__ import annotations

import re

# Thought signatures shorter than this are treated as missing.
MIN_SIGNATURE_LENGTH = 50

# Gemini rejects requests above this output ceiling.
GEMINI_MAX_OUTPUT_TOKENS = 16384

GEMINI_DEFAULT_THINKING_BUDGET = 16000

DEFAULT_MAX_TOKENS = 4096

REASONING_EFFORT_BUDGETS = {
    "low": 4096,
    "medium": 10000,
    "high": 32000,
}

# Recognised by the Gemini validator when a client dropped the original
# thoughtSignature of a function call between turns.
# See: https://ai.google.dev/gemini-api/docs/thought-signatures
GEMINI_SKIP_SIGNATURE = "skip_thought_signature_validator"

INTERLEAVED_THINKING_HINT = (
    "Interleaved thinking is enabled. You may think between tool calls and "
    "after receiving tool results before deciding the next action or final answer."
)

# Token refresh interval of the upstream OAuth provider (seconds).
TOKEN_REFRESH_INTERVAL = 5 * 60

MAX_TOOL_NAME_LENGTH = 64

_GEMINI_VERSION_RE = re.compile(r"gemini-(\d+)")


def get_model_family(model: str | None) -> str:
    """Return ``"claude"``, ``"gemini"`` or ``"unknown"`` for a model id."""
    lower = (model or "").lower()
    if "claude" in lower:
        return "claude"
    if "gemini" in lower:
        return "gemini"
    return "unknown"


def is_thinking_model(model: str | None) -> bool:
    """Check whether a model produces thinking blocks.

    Claude models opt in through a ``-thinking`` variant. Gemini models think
    when the id says so or when the major version is 3 or newer.
    """
    lower = (model or "").lower()
    family = get_model_family(lower)
    if family == "claude":
        return "thinking" in lower
    if family == "gemini":
        if "thinking" in lower:
            return True
        match = _GEMINI_VERSION_RE.search(lower)
        return bool(match) and int(match.group(1)) >= 3
    return False
