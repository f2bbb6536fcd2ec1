"""SSE (Server-Sent Events) framing, parsing and error detection."""

import json
import logging
from typing import Any, AsyncIterator, Optional

logger = logging.getLogger("cloudrelay")

DONE_MARKER = "[DONE]"


def format_sse_data(data: Any) -> bytes:
    """Frame a value as a ``data:`` only SSE event (OpenAI style).

    Strings are sent verbatim so the ``[DONE]`` marker stays unquoted.
    """
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    return f"data: {payload}\n\n".encode("utf-8")


def format_sse_event(event_type: str, data: dict[str, Any]) -> bytes:
    """Frame an Anthropic event with its ``event:`` line."""
    json_str = json.dumps(data, ensure_ascii=False)
    return f"event: {event_type}\ndata: {json_str}\n\n".encode("utf-8")


def detect_sse_stream_error(parsed: Any) -> Optional[str]:
    """
    Check a parsed SSE payload for an error object.

    Returns an error message if an error is detected, None otherwise.

    Detects patterns like:
    - Anthropic-style: {"type":"error","error":{...}}
    - Google-style: {"error":{"code":429,"message":"...","status":"RESOURCE_EXHAUSTED"}}
    """
    if not isinstance(parsed, dict):
        return None

    if parsed.get("type") == "error":
        error_obj = parsed.get("error", {})
        error_msg = (error_obj.get("message") or str(error_obj)) if error_obj else "unknown error"
        return f"SSE stream error: {error_msg}"

    error_obj = parsed.get("error")
    if isinstance(error_obj, dict):
        error_msg = error_obj.get("message") or str(error_obj)
        parts = [str(error_obj[key]) for key in ("code", "status") if error_obj.get(key)]
        parts.append(error_msg)
        return f"SSE stream error: {' '.join(parts)}"

    return None


async def iter_sse_json(lines: AsyncIterator[str]) -> AsyncIterator[Any]:
    """Yield decoded JSON payloads from the ``data:`` lines of an SSE stream.

    Multi-line ``data:`` fields are joined until the blank line that ends the
    event. Unparsable payloads and the ``[DONE]`` marker are skipped.
    """
    buffer: list[str] = []

    async for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if line.startswith("data:"):
            buffer.append(line[5:].strip())
            continue
        if line.strip() or not buffer:
            continue
        parsed = _decode(buffer)
        buffer = []
        if parsed is not None:
            yield parsed

    if buffer:
        parsed = _decode(buffer)
        if parsed is not None:
            yield parsed


def _decode(buffer: list[str]) -> Any:
    data_str = "\n".join(buffer)
    if not data_str or data_str == DONE_MARKER:
        return None
    try:
        return json.loads(data_str)
    except json.JSONDecodeError:
        logger.debug(f"Failed to parse SSE payload: {data_str[:100]}")
        return None
