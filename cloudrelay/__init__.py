"""cloudrelay - Anthropic / OpenAI / Google message translation relay

Translates between the Anthropic Messages API, the OpenAI Chat Completions
API and the Google generateContent format spoken by the Cloud Code backend.

This module provides:
- Request and response translators for all three wire formats
- Stream adapters between backend chunks, Anthropic events and OpenAI chunks
- Tool schema sanitization and thinking-block normalization
- Upstream error classification
- A FastAPI app exposing /v1/messages and /v1/chat/completions

Example:
    >>> from cloudrelay.main import app
    >>> import uvicorn
    >>> uvicorn.run(app, host="127.0.0.1", port=8080)
"""

from .api import create_app
from .config_loader import load_config
from .core import (
    DEFAULT_SETTINGS,
    ProxyError,
    TranslatorSettings,
    classify_error,
)
from .google import (
    GoogleToMessagesStreamAdapter,
    convert_anthropic_to_google,
    convert_google_to_anthropic,
)
from .logging import setup_logging
from .openai import (
    MessagesToChatStreamAdapter,
    convert_anthropic_to_openai,
    convert_openai_to_anthropic,
)
from .schema import sanitize_schema

__all__ = [
    "DEFAULT_SETTINGS",
    "GoogleToMessagesStreamAdapter",
    "MessagesToChatStreamAdapter",
    "ProxyError",
    "TranslatorSettings",
    "classify_error",
    "convert_anthropic_to_google",
    "convert_anthropic_to_openai",
    "convert_google_to_anthropic",
    "convert_openai_to_anthropic",
    "create_app",
    "load_config",
    "sanitize_schema",
    "setup_logging",
]
