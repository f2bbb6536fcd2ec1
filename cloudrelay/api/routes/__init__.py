"""API routes for the relay."""

from .base import RelayState
from .chat import chat_completions
from .health import health
from .messages import messages_endpoint

__all__ = [
    "RelayState",
    "chat_completions",
    "health",
    "messages_endpoint",
]
