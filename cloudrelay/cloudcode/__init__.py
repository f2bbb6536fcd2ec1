"""Cloud Code backend access: sessions, token caching and the HTTP client."""

from .client import DEFAULT_BASE_URL, CloudCodeClient
from .session import derive_session_id
from .token_cache import (
    AuthContext,
    DirectAuthenticator,
    TokenCache,
    hash_token,
    is_refresh_token,
)

__all__ = [
    "AuthContext",
    "CloudCodeClient",
    "DEFAULT_BASE_URL",
    "DirectAuthenticator",
    "TokenCache",
    "derive_session_id",
    "hash_token",
    "is_refresh_token",
]
