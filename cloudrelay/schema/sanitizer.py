"""Tool parameter schema sanitization.

Clients send arbitrary JSON Schema for tool parameters. The backend accepts a
small subset, and Gemini's VALIDATED function-calling mode rejects several
common keywords outright. Two passes turn whatever arrives into something
both backends accept:

- ``sanitize_schema`` keeps an allowlisted set of keys, rewrites ``const`` to
  ``enum``, guarantees a ``type`` and gives empty objects a placeholder
  argument so every tool stays invocable.
- ``clean_schema_for_gemini`` strips keywords Gemini rejects and keeps
  ``required`` consistent with ``properties``.

Neither pass raises: malformed input becomes the placeholder object.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger("cloudrelay")

ALLOWED_FIELDS = frozenset(
    {"type", "description", "properties", "required", "items", "enum", "title"}
)

GEMINI_UNSUPPORTED_FIELDS = (
    "additionalProperties",
    "default",
    "$schema",
    "$defs",
    "definitions",
    "$ref",
    "$id",
    "$comment",
    "title",
    "minLength",
    "maxLength",
    "pattern",
    "format",
    "minItems",
    "maxItems",
    "examples",
)

GEMINI_STRING_FORMATS = frozenset({"enum", "date-time"})

PLACEHOLDER_PROPERTY = "reason"
PLACEHOLDER_DESCRIPTION = "Reason for calling this tool"


def _placeholder_properties() -> dict[str, Any]:
    return {
        PLACEHOLDER_PROPERTY: {
            "type": "string",
            "description": PLACEHOLDER_DESCRIPTION,
        }
    }


def _infer_type(values: list[Any]) -> str | None:
    """Infer a JSON type from enum values, if they agree on one."""
    if not values:
        return None
    if all(isinstance(v, bool) for v in values):
        return "boolean"
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return "integer"
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        return "number"
    if all(isinstance(v, str) for v in values):
        return "string"
    return None


def sanitize_schema(schema: Any) -> dict[str, Any]:
    """Reduce ``schema`` to the allowlisted dialect.

    Returns a new dict; the input is never mutated.
    """
    if not isinstance(schema, dict):
        return {
            "type": "object",
            "properties": _placeholder_properties(),
            "required": [PLACEHOLDER_PROPERTY],
        }

    sanitized: dict[str, Any] = {}

    for key, value in schema.items():
        if key == "const":
            sanitized["enum"] = [value]
            continue

        if key not in ALLOWED_FIELDS:
            continue

        if key == "properties":
            if isinstance(value, dict):
                sanitized["properties"] = {
                    prop_name: sanitize_schema(prop_schema)
                    for prop_name, prop_schema in value.items()
                }
        elif key == "items":
            if isinstance(value, list):
                sanitized["items"] = [sanitize_schema(item) for item in value]
            elif isinstance(value, dict):
                sanitized["items"] = sanitize_schema(value)
        elif isinstance(value, dict):
            sanitized[key] = sanitize_schema(value)
        elif isinstance(value, list):
            sanitized[key] = list(value)
        else:
            sanitized[key] = value

    if not sanitized.get("type"):
        enum_values = sanitized.get("enum")
        inferred = _infer_type(enum_values) if isinstance(enum_values, list) else None
        sanitized["type"] = inferred or "object"

    if sanitized["type"] == "object" and not sanitized.get("properties"):
        sanitized["properties"] = _placeholder_properties()
        sanitized["required"] = [PLACEHOLDER_PROPERTY]

    return sanitized


def clean_schema_for_gemini(schema: Any) -> Any:
    """Strip keywords that Gemini's VALIDATED mode rejects.

    Nested schemas under ``properties`` and ``items`` are cleaned too;
    property names themselves are never treated as keywords.
    """
    if isinstance(schema, list):
        return [clean_schema_for_gemini(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    result = dict(schema)
    string_format = result.get("format")

    for key in GEMINI_UNSUPPORTED_FIELDS:
        result.pop(key, None)

    if result.get("type") == "string" and string_format in GEMINI_STRING_FORMATS:
        result["format"] = string_format

    properties = result.get("properties")
    if isinstance(properties, dict):
        result["properties"] = {
            name: clean_schema_for_gemini(prop) for name, prop in properties.items()
        }

    if "items" in result:
        result["items"] = clean_schema_for_gemini(result["items"])

    required = result.get("required")
    if isinstance(required, list):
        defined = set(properties) if isinstance(properties, dict) else set()
        filtered = [name for name in required if name in defined]
        if filtered:
            result["required"] = filtered
        else:
            del result["required"]

    return result


def prepare_tool_schema(schema: Any, for_gemini: bool = False) -> dict[str, Any]:
    """Run the generic pass and, for Gemini targets, the strict pass."""
    parameters = sanitize_schema(schema)
    if for_gemini:
        parameters = clean_schema_for_gemini(parameters)
    return parameters
