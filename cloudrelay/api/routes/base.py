"""Helpers shared by the API routes."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from fastapi import Request
from fastapi.responses import JSONResponse

from ...auth import RelayAuthProvider
from ...cloudcode import CloudCodeClient
from ...core.errors import anthropic_error_payload, classify_error, openai_error_payload
from ...core.exceptions import InvalidRequestError
from ...core.settings import TranslatorSettings

logger = logging.getLogger("cloudrelay")


@dataclass
class RelayState:
    """Objects the routes need, stored on ``app.state.relay``."""

    settings: TranslatorSettings
    client: CloudCodeClient
    auth_provider: RelayAuthProvider


def get_relay(request: Request) -> RelayState:
    relay = getattr(request.app.state, "relay", None)
    if relay is None:
        raise RuntimeError("Relay not initialized. Did you build the app with create_app?")
    return relay


async def read_json_body(request: Request) -> dict[str, Any]:
    """Read and decode the request body as a JSON object.

    Raises:
        InvalidRequestError: If the body is not a JSON object
    """
    body = await request.body()
    try:
        payload = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequestError(f"Invalid JSON body: {exc}", code="invalid_json") from exc
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object", code="invalid_json")
    return payload


def require_model_and_messages(payload: Mapping[str, Any]) -> str:
    """Validate the fields every chat-style request needs; return the model."""
    model = payload.get("model")
    if not isinstance(model, str) or not model.strip():
        raise InvalidRequestError("'model' is required", code="missing_model")
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise InvalidRequestError("'messages' must be a non-empty list", code="missing_messages")
    return model


def anthropic_error_response(error: BaseException) -> JSONResponse:
    info = classify_error(error)
    logger.warning(f"Messages request failed: {info.status_code} {info.message}")
    return JSONResponse(anthropic_error_payload(info), status_code=info.status_code)


def openai_error_response(error: BaseException) -> JSONResponse:
    info = classify_error(error)
    logger.warning(f"Chat completions request failed: {info.status_code} {info.message}")
    return JSONResponse(openai_error_payload(info), status_code=info.status_code)
