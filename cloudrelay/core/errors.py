"""Upstream error classification and wire-level error payloads.

Upstream failures reach the relay as opaque text (HTTP status plus body, or
an exception message). ``classify_error`` turns that text into a status code,
an OpenAI error type and a user-facing message. The checks are substring
based and run in a fixed priority order, so a message mentioning both a 401
and a 429 is reported as an authentication failure.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from .exceptions import (
    AuthenticationError,
    InvalidRequestError,
    NoAccountsError,
    PermissionDeniedError,
    ProxyError,
    RateLimitError,
    ServiceUnavailableError,
)

logger = logging.getLogger("cloudrelay")

_RESET_RE = re.compile(r"quota will reset after ([\dhms]+)", re.IGNORECASE)
_RATE_LIMITED_MODEL_RE = re.compile(r"Rate limited on ([^.]+)\.")
_JSON_MODEL_RE = re.compile(r'"model":\s*"([^"]+)"')
_JSON_MESSAGE_RE = re.compile(r'"message":"([^"]+)"')

AUTH_FAILED_MESSAGE = (
    "Authentication failed. Make sure the proxy is configured with valid credentials."
)
VERIFICATION_REQUIRED_MESSAGE = (
    "Account requires verification. Please check the WebUI for details."
)
SERVICE_UNAVAILABLE_MESSAGE = (
    "Service temporarily unavailable. The upstream API may be experiencing issues."
)

_ANTHROPIC_TYPES = {
    400: "invalid_request_error",
    401: "authentication_error",
    403: "permission_error",
    404: "not_found_error",
    429: "rate_limit_error",
    503: "overloaded_error",
}


@dataclass(frozen=True)
class ErrorInfo:
    """Classified error in OpenAI terms."""

    status_code: int
    type: str
    message: str
    category: str = "api"


def _contains(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


def classify_error(error: BaseException | str | None) -> ErrorInfo:
    """Map upstream error text to ``ErrorInfo``. Never raises."""
    text = error if isinstance(error, str) else str(error or "")
    if isinstance(error, ProxyError):
        text = error.message

    if _contains(text, "401", "UNAUTHENTICATED", "AUTH_INVALID"):
        info = ErrorInfo(401, "invalid_request_error", AUTH_FAILED_MESSAGE, "authentication")

    elif _contains(text, "429", "RESOURCE_EXHAUSTED", "QUOTA_EXHAUSTED"):
        reset_match = _RESET_RE.search(text)
        model_match = _RATE_LIMITED_MODEL_RE.search(text) or _JSON_MODEL_RE.search(text)
        model = model_match.group(1) if model_match else "the model"
        if reset_match:
            message = f"Rate limit exceeded on {model}. Quota will reset after {reset_match.group(1)}."
        else:
            message = f"Rate limit exceeded on {model}. Please wait for your quota to reset."
        info = ErrorInfo(429, "rate_limit_exceeded", message, "rate_limit")

    elif _contains(text, "invalid_request_error", "INVALID_ARGUMENT"):
        msg_match = _JSON_MESSAGE_RE.search(text)
        message = msg_match.group(1) if msg_match else text
        info = ErrorInfo(400, "invalid_request_error", message, "invalid_request")

    elif _contains(text, "PERMISSION_DENIED", "403"):
        if "VALIDATION_REQUIRED" in text:
            info = ErrorInfo(403, "permission_denied", VERIFICATION_REQUIRED_MESSAGE, "verification")
        else:
            info = ErrorInfo(403, "permission_denied", text, "permission")

    elif _contains(text, "All endpoints failed", "503"):
        info = ErrorInfo(503, "api_error", SERVICE_UNAVAILABLE_MESSAGE, "unavailable")

    elif _contains(text, "No accounts available", "All accounts are invalid"):
        info = ErrorInfo(400, "invalid_request_error", text, "no_accounts")

    elif isinstance(error, ProxyError):
        info = ErrorInfo(error.status_code, error.error_type, text, "api")

    else:
        info = ErrorInfo(500, "api_error", text, "api")

    logger.debug(f"Classified error: {info.status_code} {info.type}: {info.message}")
    return info


def exception_from_error(error: BaseException | str | None) -> ProxyError:
    """Build the taxonomy exception matching an upstream error."""
    info = classify_error(error)
    if info.category == "authentication":
        return AuthenticationError(info.message)
    if info.category == "rate_limit":
        text = error if isinstance(error, str) else str(error or "")
        reset_match = _RESET_RE.search(text)
        model_match = _RATE_LIMITED_MODEL_RE.search(text) or _JSON_MODEL_RE.search(text)
        return RateLimitError(
            info.message,
            model=model_match.group(1) if model_match else None,
            reset_after=reset_match.group(1) if reset_match else None,
        )
    if info.category == "invalid_request":
        return InvalidRequestError(info.message, code="upstream_invalid_argument")
    if info.category in ("permission", "verification"):
        return PermissionDeniedError(
            info.message, needs_verification=info.category == "verification"
        )
    if info.category == "unavailable":
        return ServiceUnavailableError(info.message)
    if info.category == "no_accounts":
        return NoAccountsError(info.message)
    if isinstance(error, ProxyError):
        return error
    return ProxyError(info.message)


def openai_error_payload(info: ErrorInfo) -> dict[str, Any]:
    """Render ``info`` as an OpenAI error body."""
    return {
        "error": {
            "message": info.message,
            "type": info.type,
            "code": None,
        }
    }


def anthropic_error_payload(info: ErrorInfo) -> dict[str, Any]:
    """Render ``info`` as an Anthropic error body."""
    return {
        "type": "error",
        "error": {
            "type": _ANTHROPIC_TYPES.get(info.status_code, "api_error"),
            "message": info.message,
        },
    }
