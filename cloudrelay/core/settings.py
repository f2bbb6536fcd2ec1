"""Resolved translation settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .constants import (
    DEFAULT_MAX_TOKENS,
    GEMINI_DEFAULT_THINKING_BUDGET,
    GEMINI_MAX_OUTPUT_TOKENS,
    MIN_SIGNATURE_LENGTH,
    REASONING_EFFORT_BUDGETS,
)


@dataclass(frozen=True)
class TranslatorSettings:
    """Knobs shared by the translators.

    Instances are immutable so a single settings object can be handed to
    concurrent requests.
    """

    min_signature_length: int = MIN_SIGNATURE_LENGTH
    gemini_max_output_tokens: int = GEMINI_MAX_OUTPUT_TOKENS
    gemini_default_thinking_budget: int = GEMINI_DEFAULT_THINKING_BUDGET
    default_max_tokens: int = DEFAULT_MAX_TOKENS
    reasoning_effort_budgets: Mapping[str, int] = field(
        default_factory=lambda: dict(REASONING_EFFORT_BUDGETS)
    )

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None) -> "TranslatorSettings":
        """Build settings from the ``translation`` section of a config dict."""
        section = (config or {}).get("translation") or {}
        if not isinstance(section, Mapping):
            section = {}

        budgets = dict(REASONING_EFFORT_BUDGETS)
        raw_budgets = section.get("reasoning_effort_budgets")
        if isinstance(raw_budgets, Mapping):
            for effort, value in raw_budgets.items():
                budgets[str(effort)] = _get_int(raw_budgets, effort, budgets.get(str(effort), 0))

        return cls(
            min_signature_length=_get_int(section, "min_signature_length", MIN_SIGNATURE_LENGTH),
            gemini_max_output_tokens=_get_int(
                section, "gemini_max_output_tokens", GEMINI_MAX_OUTPUT_TOKENS
            ),
            gemini_default_thinking_budget=_get_int(
                section, "gemini_default_thinking_budget", GEMINI_DEFAULT_THINKING_BUDGET
            ),
            default_max_tokens=_get_int(section, "default_max_tokens", DEFAULT_MAX_TOKENS),
            reasoning_effort_budgets=budgets,
        )


def _get_int(config: Mapping[str, Any], key: Any, default: int) -> int:
    value = config.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


DEFAULT_SETTINGS = TranslatorSettings()
