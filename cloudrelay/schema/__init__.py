"""Tool schema normalization."""

from .sanitizer import clean_schema_for_gemini, prepare_tool_schema, sanitize_schema

__all__ = [
    "clean_schema_for_gemini",
    "prepare_tool_schema",
    "sanitize_schema",
]
