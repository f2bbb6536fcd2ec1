"""API module for the relay."""

from .app import create_app
from .routes import chat_completions, health, messages_endpoint

__all__ = [
    "chat_completions",
    "create_app",
    "health",
    "messages_endpoint",
]
