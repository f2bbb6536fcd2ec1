"""OpenAI Chat Completions -> Anthropic Messages request translation.

Key mappings:
- system messages (any position) -> top-level system, joined by blank lines
- assistant content + tool_calls -> text block + tool_use blocks
- consecutive tool messages -> one user turn of tool_result blocks
- tools / tool_choice -> Anthropic tools / tool_choice
- reasoning_effort -> thinking budget (thinking-capable models only)
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Any, Mapping, Optional

from ..core.constants import is_thinking_model
from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings
from ..types.anthropic import MessagesRequest

logger = logging.getLogger("cloudrelay")


def _content_to_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "")
            for part in content
            if isinstance(part, Mapping) and part.get("type") == "text"
        )
    return "" if content is None else str(content)


def _convert_image_url(part: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Convert an OpenAI image_url part to an Anthropic image block.

    OpenAI format:
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,..."}}
        {"type": "image_url", "image_url": {"url": "https://..."}}
    """
    image_url = part.get("image_url")
    url = image_url.get("url") if isinstance(image_url, Mapping) else image_url
    if not isinstance(url, str) or not url:
        return None

    if url.startswith("data:") and ";base64," in url:
        header, data = url.split(",", 1)
        media_type = header[len("data:"):].split(";", 1)[0] or "image/png"
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": media_type, "data": data},
        }

    return {"type": "image", "source": {"type": "url", "url": url}}


def _convert_user_content(content: Any) -> Any:
    """Convert user content; plain strings pass through unchanged."""
    if not isinstance(content, list):
        return content if content is not None else ""

    blocks: list[dict[str, Any]] = []
    for part in content:
        if not isinstance(part, Mapping):
            continue
        part_type = part.get("type")
        if part_type == "text":
            blocks.append({"type": "text", "text": part.get("text", "")})
        elif part_type == "image_url":
            block = _convert_image_url(part)
            if block:
                blocks.append(block)
        else:
            logger.warning(f"Unsupported user content part type: {part_type}")
    return blocks


def _parse_arguments(arguments: Any, tool_name: str) -> dict[str, Any]:
    """Parse tool call arguments, falling back to an empty input."""
    if isinstance(arguments, Mapping):
        return dict(arguments)
    if not arguments:
        return {}
    try:
        parsed = json.loads(arguments)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Failed to parse tool arguments for {tool_name}: {exc}")
        return {}
    if not isinstance(parsed, dict):
        logger.warning(f"Tool arguments for {tool_name} are not an object")
        return {}
    return parsed


def _convert_assistant_message(message: Mapping[str, Any]) -> list[dict[str, Any]]:
    content: list[dict[str, Any]] = []

    text = _content_to_text(message.get("content"))
    if text:
        content.append({"type": "text", "text": text})

    for tool_call in message.get("tool_calls") or []:
        if not isinstance(tool_call, Mapping):
            continue
        function = tool_call.get("function")
        if not isinstance(function, Mapping):
            logger.warning(f"Tool call {tool_call.get('id')} has no function object, using empty call")
            function = {}
        name = function.get("name", "")
        content.append({
            "type": "tool_use",
            "id": tool_call.get("id") or f"toolu_{secrets.token_hex(12)}",
            "name": name,
            "input": _parse_arguments(function.get("arguments"), name),
        })

    return content


def _convert_tools(tools: Any) -> list[dict[str, Any]]:
    """Convert OpenAI tools to Anthropic format.

    OpenAI: {"type": "function", "function": {"name", "description", "parameters"}}
    Anthropic: {"name", "description", "input_schema"}
    """
    converted: list[dict[str, Any]] = []
    for tool in tools or []:
        if not isinstance(tool, Mapping):
            continue
        function = tool.get("function")
        if not isinstance(function, Mapping):
            logger.warning("Skipping tool without a function object")
            continue
        converted.append({
            "name": function.get("name", ""),
            "description": function.get("description") or "",
            "input_schema": function.get("parameters") or {"type": "object"},
        })
    return converted


def _convert_tool_choice(tool_choice: Any) -> Optional[dict[str, Any]]:
    """Convert OpenAI tool_choice to Anthropic format.

    OpenAI: "auto" | "required" | "none" | {"type": "function", "function": {"name": ...}}
    Anthropic: {"type": "auto" | "any" | "none"} | {"type": "tool", "name": ...}
    """
    if tool_choice is None or tool_choice == "auto":
        return {"type": "auto"}
    if tool_choice == "none":
        return {"type": "none"}
    if tool_choice == "required":
        return {"type": "any"}
    if isinstance(tool_choice, Mapping) and tool_choice.get("type") == "function":
        function = tool_choice.get("function")
        name = function.get("name") if isinstance(function, Mapping) else None
        if name:
            return {"type": "tool", "name": name}
    return None


def convert_openai_to_anthropic(
    payload: Mapping[str, Any],
    settings: Optional[TranslatorSettings] = None,
) -> MessagesRequest:
    """Translate an OpenAI Chat Completions request to an Anthropic request.

    Args:
        payload: OpenAI Chat Completions API request body
        settings: Translator settings; defaults apply when omitted

    Returns:
        Anthropic Messages API request body
    """
    settings = settings or DEFAULT_SETTINGS
    model = payload.get("model") or ""
    messages = [m for m in payload.get("messages") or [] if isinstance(m, Mapping)]

    system_texts = [_content_to_text(m.get("content")) for m in messages if m.get("role") == "system"]

    anthropic_messages: list[dict[str, Any]] = []
    pending_tool_results: list[dict[str, Any]] = []

    def flush_tool_results() -> None:
        if pending_tool_results:
            anthropic_messages.append({"role": "user", "content": list(pending_tool_results)})
            pending_tool_results.clear()

    for message in messages:
        role = message.get("role")

        if role == "user":
            flush_tool_results()
            anthropic_messages.append({
                "role": "user",
                "content": _convert_user_content(message.get("content")),
            })

        elif role == "assistant":
            content = _convert_assistant_message(message)
            if content:
                anthropic_messages.append({"role": "assistant", "content": content})

        elif role == "tool":
            pending_tool_results.append({
                "type": "tool_result",
                "tool_use_id": message.get("tool_call_id"),
                "content": message.get("content"),
            })

    flush_tool_results()

    result: dict[str, Any] = {
        "model": model,
        "messages": anthropic_messages,
        "max_tokens": (
            payload.get("max_completion_tokens")
            or payload.get("max_tokens")
            or settings.default_max_tokens
        ),
        "stream": bool(payload.get("stream")),
    }

    if system_texts:
        result["system"] = "\n\n".join(system_texts)

    tools = _convert_tools(payload.get("tools"))
    if tools:
        result["tools"] = tools
        tool_choice = _convert_tool_choice(payload.get("tool_choice"))
        if tool_choice:
            result["tool_choice"] = tool_choice

    for param in ("temperature", "top_p"):
        if payload.get(param) is not None:
            result[param] = payload[param]

    stop = payload.get("stop")
    if stop:
        result["stop_sequences"] = list(stop) if isinstance(stop, list) else [stop]

    reasoning_effort = payload.get("reasoning_effort")
    if reasoning_effort and is_thinking_model(model):
        budget = settings.reasoning_effort_budgets.get(
            reasoning_effort, settings.reasoning_effort_budgets.get("medium", 10000)
        )
        result["thinking"] = {"type": "enabled", "budget_tokens": budget}
        logger.debug(f"Mapped reasoning_effort '{reasoning_effort}' to thinking budget {budget}")

    logger.debug(
        f"Converted OpenAI request: {len(anthropic_messages)} messages, {len(tools)} tools"
    )
    return result
