"""Core module initialization."""

from .constants import get_model_family, is_thinking_model
from .errors import (
    ErrorInfo,
    anthropic_error_payload,
    classify_error,
    exception_from_error,
    openai_error_payload,
)
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidRequestError,
    NoAccountsError,
    PermissionDeniedError,
    ProxyError,
    RateLimitError,
    ServiceUnavailableError,
    TranslationError,
)
from .settings import DEFAULT_SETTINGS, TranslatorSettings
from .sse import detect_sse_stream_error, format_sse_data, format_sse_event, iter_sse_json

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "DEFAULT_SETTINGS",
    "ErrorInfo",
    "InvalidRequestError",
    "NoAccountsError",
    "PermissionDeniedError",
    "ProxyError",
    "RateLimitError",
    "ServiceUnavailableError",
    "TranslationError",
    "TranslatorSettings",
    "anthropic_error_payload",
    "classify_error",
    "detect_sse_stream_error",
    "exception_from_error",
    "format_sse_data",
    "format_sse_event",
    "get_model_family",
    "is_thinking_model",
    "iter_sse_json",
    "openai_error_payload",
]
