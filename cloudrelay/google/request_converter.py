"""Anthropic Messages -> Google Generative AI request translation.

The Cloud Code backend speaks the Google ``generateContent`` dialect for both
Gemini and Claude models, with a few family-specific twists:

- Claude models need ``functionCall.id`` / ``functionResponse.id`` to pair
  tool calls with results, and take snake_case thinking config.
- Gemini models validate tool schemas strictly, want camelCase thinking
  config, cap output tokens, and (from Gemini 3) require a thoughtSignature
  on every replayed function call.

Key mappings:
- system (string or text blocks) -> systemInstruction.parts
- role assistant -> model, everything else -> user
- text / image / document / tool_use / tool_result / thinking -> parts
- max_tokens, temperature, top_p, top_k, stop_sequences -> generationConfig
- tools -> tools[0].functionDeclarations, tool_choice -> toolConfig
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from ..core.constants import (
    GEMINI_SKIP_SIGNATURE,
    INTERLEAVED_THINKING_HINT,
    MAX_TOOL_NAME_LENGTH,
    get_model_family,
    is_thinking_model,
)
from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings
from ..messages.thinking import (
    filter_unsigned_thinking_parts,
    has_valid_signature,
    normalize_assistant_content,
)
from ..schema.sanitizer import prepare_tool_schema
from ..types.google import GenerateContentRequest

logger = logging.getLogger("cloudrelay")

_TOOL_NAME_RE = re.compile(r"[^a-zA-Z0-9_-]")


def normalize_tool_name(name: Any) -> str:
    """Restrict a tool name to ``[a-zA-Z0-9_-]`` and 64 characters."""
    return _TOOL_NAME_RE.sub("_", str(name))[:MAX_TOOL_NAME_LENGTH]


def _convert_role(role: Optional[str]) -> str:
    return "model" if role in ("assistant", "model") else "user"


def _convert_media_source(
    source: Mapping[str, Any] | None,
    default_mime: str,
) -> Optional[dict[str, Any]]:
    """Convert an image/document source to an inlineData or fileData part."""
    if not isinstance(source, Mapping):
        return None

    source_type = source.get("type")
    if source_type == "base64":
        return {
            "inlineData": {
                "mimeType": source.get("media_type") or default_mime,
                "data": source.get("data", ""),
            }
        }
    if source_type == "url":
        return {
            "fileData": {
                "mimeType": source.get("media_type") or default_mime,
                "fileUri": source.get("url", ""),
            }
        }

    logger.warning(f"Unsupported media source type: {source_type}")
    return None


def _convert_tool_result_content(content: Any) -> Any:
    """Flatten a tool_result payload into a functionResponse body."""
    if isinstance(content, str):
        return {"result": content}
    if isinstance(content, list):
        texts = [
            block.get("text", "")
            for block in content
            if isinstance(block, Mapping) and block.get("type") == "text"
        ]
        return {"result": "\n".join(texts)}
    if isinstance(content, Mapping):
        return dict(content)
    if content is None:
        return {"result": ""}
    return {"result": str(content)}


def _convert_content_to_parts(
    content: Any,
    *,
    is_claude: bool,
    is_gemini: bool,
    tool_names: Mapping[str, str],
    settings: TranslatorSettings,
) -> list[dict[str, Any]]:
    """Convert Anthropic message content to Google parts."""
    if isinstance(content, str):
        return [{"text": content}] if content.strip() else []

    if not isinstance(content, list):
        return [{"text": str(content)}] if content else []

    parts: list[dict[str, Any]] = []

    for block in content:
        if not isinstance(block, Mapping):
            continue

        block_type = block.get("type")

        if block_type == "text":
            text = block.get("text")
            # Empty text parts are rejected by the backend
            if isinstance(text, str) and text.strip():
                parts.append({"text": text})

        elif block_type == "image":
            part = _convert_media_source(block.get("source"), "image/jpeg")
            if part:
                parts.append(part)

        elif block_type == "document":
            part = _convert_media_source(block.get("source"), "application/pdf")
            if part:
                parts.append(part)

        elif block_type == "tool_use":
            function_call: dict[str, Any] = {
                "name": normalize_tool_name(block.get("name", "")),
                "args": block.get("input") or {},
            }
            if is_claude and block.get("id"):
                function_call["id"] = block["id"]

            part = {"functionCall": function_call}
            if is_gemini:
                part["thoughtSignature"] = block.get("thoughtSignature") or GEMINI_SKIP_SIGNATURE
            parts.append(part)

        elif block_type == "tool_result":
            tool_use_id = block.get("tool_use_id")
            tool_name = tool_names.get(tool_use_id or "") or tool_use_id or "unknown"
            function_response: dict[str, Any] = {
                "name": normalize_tool_name(tool_name),
                "response": _convert_tool_result_content(block.get("content")),
            }
            if is_claude and tool_use_id:
                function_response["id"] = tool_use_id
            parts.append({"functionResponse": function_response})

        elif block_type == "thinking":
            if has_valid_signature(dict(block), settings):
                parts.append({
                    "text": block.get("thinking", ""),
                    "thought": True,
                    "thoughtSignature": block.get("signature"),
                })

        elif block_type == "redacted_thinking":
            logger.debug("Dropping redacted_thinking block (no backend representation)")

        elif block.get("thought") is True:
            # Gemini-style thought carried over from an earlier response
            if has_valid_signature(dict(block), settings):
                parts.append({
                    "text": block.get("text", ""),
                    "thought": True,
                    "thoughtSignature": block.get("thoughtSignature"),
                })

        else:
            logger.warning(f"Dropping content block of unknown type: {block_type}")

    return parts


def _convert_system(system: Any) -> Optional[dict[str, Any]]:
    if isinstance(system, str):
        parts = [{"text": system}] if system else []
    elif isinstance(system, list):
        parts = [
            {"text": block.get("text", "")}
            for block in system
            if isinstance(block, Mapping) and block.get("type") == "text"
        ]
    else:
        parts = []

    if not parts:
        return None
    return {"parts": parts}


def _append_interleaved_hint(system_instruction: Optional[dict[str, Any]]) -> dict[str, Any]:
    if not system_instruction:
        return {"parts": [{"text": INTERLEAVED_THINKING_HINT}]}

    last_part = system_instruction["parts"][-1]
    if last_part.get("text"):
        last_part["text"] = f"{last_part['text']}\n\n{INTERLEAVED_THINKING_HINT}"
    else:
        system_instruction["parts"].append({"text": INTERLEAVED_THINKING_HINT})
    return system_instruction


def _convert_tools(
    tools: list[Any],
    *,
    is_gemini: bool,
) -> list[dict[str, Any]]:
    """Build functionDeclarations from Anthropic (or OpenAI-shaped) tools."""
    declarations: list[dict[str, Any]] = []

    for idx, tool in enumerate(tools):
        if not isinstance(tool, Mapping):
            continue
        function = tool.get("function") if isinstance(tool.get("function"), Mapping) else {}
        custom = tool.get("custom") if isinstance(tool.get("custom"), Mapping) else {}

        name = tool.get("name") or function.get("name") or custom.get("name") or f"tool-{idx}"
        description = (
            tool.get("description")
            or function.get("description")
            or custom.get("description")
            or ""
        )
        schema = (
            tool.get("input_schema")
            or function.get("input_schema")
            or function.get("parameters")
            or custom.get("input_schema")
            or tool.get("parameters")
            or {"type": "object"}
        )

        declarations.append({
            "name": normalize_tool_name(name),
            "description": description,
            "parameters": prepare_tool_schema(schema, for_gemini=is_gemini),
        })

    return declarations


def _convert_tool_choice(tool_choice: Any) -> Optional[dict[str, Any]]:
    """Convert Anthropic tool_choice to a Google toolConfig.

    Anthropic: {"type": "auto" | "any" | "none"} | {"type": "tool", "name": ...}
    Google: {"functionCallingConfig": {"mode": "AUTO" | "ANY" | "NONE", ...}}
    """
    if isinstance(tool_choice, str):
        tool_choice = {"type": tool_choice}
    if not isinstance(tool_choice, Mapping):
        return None

    choice_type = tool_choice.get("type")
    if choice_type == "auto":
        return {"functionCallingConfig": {"mode": "AUTO"}}
    if choice_type == "any":
        return {"functionCallingConfig": {"mode": "ANY"}}
    if choice_type == "none":
        return {"functionCallingConfig": {"mode": "NONE"}}
    if choice_type == "tool" and tool_choice.get("name"):
        return {
            "functionCallingConfig": {
                "mode": "ANY",
                "allowedFunctionNames": [normalize_tool_name(tool_choice["name"])],
            }
        }
    return None


def _build_thinking_config(
    thinking: Any,
    *,
    is_claude: bool,
    is_gemini: bool,
    settings: TranslatorSettings,
) -> Optional[dict[str, Any]]:
    budget = thinking.get("budget_tokens") if isinstance(thinking, Mapping) else None

    if is_claude:
        config: dict[str, Any] = {"include_thoughts": True}
        if budget:
            config["thinking_budget"] = budget
            logger.debug(f"Claude thinking enabled with budget: {budget}")
        else:
            logger.debug("Claude thinking enabled (no budget specified)")
        return config

    if is_gemini:
        config = {
            "includeThoughts": True,
            "thinkingBudget": budget or settings.gemini_default_thinking_budget,
        }
        logger.debug(f"Gemini thinking enabled with budget: {config['thinkingBudget']}")
        return config

    return None


def convert_anthropic_to_google(
    payload: Mapping[str, Any],
    settings: Optional[TranslatorSettings] = None,
) -> GenerateContentRequest:
    """Translate an Anthropic Messages request to a Google request body.

    Handles:
    - System prompt and the interleaved-thinking hint
    - Thinking-block normalization of assistant turns
    - Content blocks (text, image, document, tool_use, tool_result, thinking)
    - Generation parameters, thinking config and the Gemini output cap
    - Tools (sanitized schemas, normalized names) and tool_choice

    Args:
        payload: Anthropic Messages API request body
        settings: Translator settings; defaults apply when omitted

    Returns:
        Google generateContent request body
    """
    settings = settings or DEFAULT_SETTINGS
    model_name = payload.get("model") or ""
    family = get_model_family(model_name)
    is_claude = family == "claude"
    is_gemini = family == "gemini"
    is_thinking = is_thinking_model(model_name)
    tools = payload.get("tools") or []

    google_request: dict[str, Any] = {"contents": [], "generationConfig": {}}

    system_instruction = _convert_system(payload.get("system"))
    if is_claude and is_thinking and tools:
        system_instruction = _append_interleaved_hint(system_instruction)
    if system_instruction:
        google_request["systemInstruction"] = system_instruction

    tool_names: dict[str, str] = {}

    for message in payload.get("messages") or []:
        if not isinstance(message, Mapping):
            continue
        role = message.get("role")
        content = message.get("content")

        if role in ("assistant", "model") and isinstance(content, list):
            content = normalize_assistant_content(content, settings)
            for block in content:
                if isinstance(block, Mapping) and block.get("type") == "tool_use" and block.get("id"):
                    tool_names[block["id"]] = block.get("name", "")

        parts = _convert_content_to_parts(
            content,
            is_claude=is_claude,
            is_gemini=is_gemini,
            tool_names=tool_names,
            settings=settings,
        )
        if not parts:
            logger.debug(f"Skipping {role} message with no convertible content")
            continue

        google_request["contents"].append({"role": _convert_role(role), "parts": parts})

    if is_claude:
        google_request["contents"] = filter_unsigned_thinking_parts(
            google_request["contents"], settings
        )

    generation_config = google_request["generationConfig"]
    if payload.get("max_tokens"):
        generation_config["maxOutputTokens"] = payload["max_tokens"]
    if payload.get("temperature") is not None:
        generation_config["temperature"] = payload["temperature"]
    if payload.get("top_p") is not None:
        generation_config["topP"] = payload["top_p"]
    if payload.get("top_k") is not None:
        generation_config["topK"] = payload["top_k"]
    if payload.get("stop_sequences"):
        generation_config["stopSequences"] = list(payload["stop_sequences"])

    thinking = payload.get("thinking")
    thinking_disabled = isinstance(thinking, Mapping) and thinking.get("type") == "disabled"
    if is_thinking and not thinking_disabled:
        thinking_config = _build_thinking_config(
            thinking, is_claude=is_claude, is_gemini=is_gemini, settings=settings
        )
        if thinking_config:
            generation_config["thinkingConfig"] = thinking_config

    if tools:
        google_request["tools"] = [
            {"functionDeclarations": _convert_tools(tools, is_gemini=is_gemini)}
        ]
        tool_config = _convert_tool_choice(payload.get("tool_choice"))
        if tool_config:
            google_request["toolConfig"] = tool_config
        if logger.isEnabledFor(logging.DEBUG):
            names = [d["name"] for d in google_request["tools"][0]["functionDeclarations"]]
            logger.debug(f"Tools: {names}")

    max_output = generation_config.get("maxOutputTokens")
    if is_gemini and max_output and max_output > settings.gemini_max_output_tokens:
        logger.debug(
            f"Capping Gemini max_tokens from {max_output} to {settings.gemini_max_output_tokens}"
        )
        generation_config["maxOutputTokens"] = settings.gemini_max_output_tokens

    return google_request
