"""Anthropic-compatible Messages API endpoint."""

import logging
import time
import uuid
from typing import Any, AsyncIterator

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...core.errors import anthropic_error_payload, classify_error
from ...core.sse import format_sse_event
from .base import (
    anthropic_error_response,
    get_relay,
    read_json_body,
    require_model_and_messages,
)

logger = logging.getLogger("cloudrelay")


async def _sse_body(
    req_id: str,
    first_event: dict[str, Any],
    events: AsyncIterator[dict[str, Any]],
) -> AsyncIterator[bytes]:
    yield format_sse_event(first_event["type"], first_event)
    try:
        async for event in events:
            yield format_sse_event(event["type"], event)
    except Exception as exc:
        # Headers are already sent, so the failure is reported in-band
        info = classify_error(exc)
        logger.error(f"[{req_id}] Messages stream aborted: {info.status_code} {info.message}")
        yield format_sse_event("error", anthropic_error_payload(info))


async def messages_endpoint(request: Request) -> Response:
    """POST /v1/messages - Anthropic Messages API compatible endpoint."""
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()
    relay = get_relay(request)

    try:
        payload = await read_json_body(request)
        model = require_model_and_messages(payload)
        stream = bool(payload.get("stream"))
        logger.info(f"[{req_id}] Messages API request: model={model} stream={stream}")

        auth = await relay.auth_provider.resolve(request)

        if not stream:
            result = await relay.client.generate_content(payload, auth)
            elapsed = time.perf_counter() - start_time
            logger.info(
                f"[{req_id}] Messages API response: stop_reason={result.get('stop_reason')} "
                f"in {elapsed:.3f}s"
            )
            return JSONResponse(result)

        events = relay.client.stream_generate_content(payload, auth).__aiter__()
        # Pull the first event so upstream errors still get a proper status code
        first_event = await events.__anext__()
    except Exception as exc:
        return anthropic_error_response(exc)

    return StreamingResponse(
        _sse_body(req_id, first_event, events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
