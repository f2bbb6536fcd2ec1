"""OpenAI-compatible chat completions endpoint.

Requests are translated to the Anthropic Messages format, sent through the
Cloud Code client, and the replies translated back.
"""

import logging
import time
import uuid
from typing import Any, AsyncIterator, Union

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...core.errors import classify_error, openai_error_payload
from ...core.sse import format_sse_data
from ...openai import (
    MessagesToChatStreamAdapter,
    convert_anthropic_to_openai,
    convert_openai_to_anthropic,
)
from .base import (
    get_relay,
    openai_error_response,
    read_json_body,
    require_model_and_messages,
)

logger = logging.getLogger("cloudrelay")

Chunk = Union[dict[str, Any], str]


async def _sse_body(
    req_id: str,
    first_chunk: Chunk,
    chunks: AsyncIterator[Chunk],
) -> AsyncIterator[bytes]:
    yield format_sse_data(first_chunk)
    try:
        async for chunk in chunks:
            yield format_sse_data(chunk)
    except Exception as exc:
        # No [DONE] after an error so clients do not mistake it for success
        info = classify_error(exc)
        logger.error(f"[{req_id}] Chat stream aborted: {info.status_code} {info.message}")
        yield format_sse_data(openai_error_payload(info))


async def chat_completions(request: Request) -> Response:
    """POST /v1/chat/completions - OpenAI Chat Completions compatible endpoint."""
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()
    relay = get_relay(request)

    try:
        payload = await read_json_body(request)
        model = require_model_and_messages(payload)
        anthropic_request = convert_openai_to_anthropic(payload, relay.settings)
        stream = anthropic_request["stream"]
        logger.info(f"[{req_id}] Chat completions request: model={model} stream={stream}")

        auth = await relay.auth_provider.resolve(request)

        if not stream:
            result = await relay.client.generate_content(anthropic_request, auth)
            completion = convert_anthropic_to_openai(result)
            elapsed = time.perf_counter() - start_time
            logger.info(
                f"[{req_id}] Chat completions response: "
                f"finish_reason={completion['choices'][0]['finish_reason']} in {elapsed:.3f}s"
            )
            return JSONResponse(completion)

        adapter = MessagesToChatStreamAdapter(model)
        events = relay.client.stream_generate_content(anthropic_request, auth)
        chunks = adapter.adapt_stream(events).__aiter__()
        first_chunk = await chunks.__anext__()
    except Exception as exc:
        return openai_error_response(exc)

    return StreamingResponse(
        _sse_body(req_id, first_chunk, chunks),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
