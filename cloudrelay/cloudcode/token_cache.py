"""Access-token caching for direct (per-request) credentials.

When a caller presents a long-lived refresh token instead of a relay API key,
the relay exchanges it for a short-lived access token and a project id. The
exchange is slow, so results are cached for a bounded time, keyed by a hash
of the credential rather than the credential itself.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Optional

from ..core.constants import TOKEN_REFRESH_INTERVAL
from ..core.exceptions import AuthenticationError

logger = logging.getLogger("cloudrelay")

_REFRESH_TOKEN_RE = re.compile(r"^[A-Za-z0-9\-_.]+$")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def is_refresh_token(token: Any) -> bool:
    """Tell a refresh token apart from a relay API key.

    Refresh tokens are long and use only URL-safe characters; API keys are
    much shorter.
    """
    if not isinstance(token, str) or not token:
        return False
    return len(token) > 100 and bool(_REFRESH_TOKEN_RE.match(token))


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def hash_token(token: str) -> str:
    """Non-cryptographic cache key for a credential.

    A rolling ``hash * 31 + unit`` over the UTF-16 code units, wrapped to a
    signed 32-bit integer and rendered in base 36.
    """
    encoded = token.encode("utf-16-le")
    value = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        value = (value * 31 + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return _to_base36(value)


@dataclass
class AuthContext:
    """Resolved credentials for one backend call.

    Attributes:
        access_token: Bearer token for the backend
        project_id: Cloud project the request is billed to
        account_email: Account the token belongs to, when known
        subscription: Opaque subscription details from project discovery
        credential: Refresh token the context was derived from, if any
    """

    access_token: str
    project_id: str
    account_email: Optional[str] = None
    subscription: Optional[dict[str, Any]] = None
    credential: Optional[str] = field(default=None, repr=False, compare=False)


@dataclass
class _CacheEntry:
    context: AuthContext
    credential: str = field(repr=False)
    cached_at: float = field(default=0.0)


class TokenCache:
    """Time-bounded map from credential hash to ``AuthContext``.

    The hash only picks the slot. An entry is returned for the credential it
    was stored under, so two credentials sharing a hash never see each
    other's context.
    """

    def __init__(
        self,
        ttl: float = TOKEN_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = asyncio.Lock()

    def _expired(self, entry: _CacheEntry, now: float) -> bool:
        return now - entry.cached_at >= self.ttl

    async def get(self, credential: str) -> Optional[AuthContext]:
        """Return the cached context if it is younger than the TTL."""
        key = hash_token(credential)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.credential != credential:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.context

    async def put(self, credential: str, context: AuthContext) -> None:
        """Store ``context`` and drop every entry that has outlived the TTL."""
        async with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if self._expired(entry, now)]
            for key in expired:
                del self._entries[key]
            if expired:
                logger.debug(f"Swept {len(expired)} expired token cache entries")
            self._entries[hash_token(credential)] = _CacheEntry(context, credential, now)

    async def evict(self, credential: str) -> None:
        key = hash_token(credential)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.credential == credential:
                del self._entries[key]

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
        logger.debug("Token cache cleared")

    def __len__(self) -> int:
        return len(self._entries)


Refresher = Callable[[str], Awaitable[AuthContext]]


class DirectAuthenticator:
    """Resolve a caller-supplied refresh token into an ``AuthContext``.

    The exchange itself is delegated to ``refresher`` so OAuth and project
    discovery stay outside the relay core.
    """

    def __init__(self, cache: TokenCache, refresher: Refresher):
        self.cache = cache
        self.refresher = refresher

    async def authenticate(self, refresh_token: str) -> AuthContext:
        """Return a fresh or cached ``AuthContext`` for ``refresh_token``.

        Raises:
            AuthenticationError: If the token is empty or the exchange fails
        """
        if not refresh_token or not isinstance(refresh_token, str):
            raise AuthenticationError("Invalid refresh token: must be a non-empty string")

        cached = await self.cache.get(refresh_token)
        if cached is not None:
            logger.debug("Using cached access token for direct credential")
            return cached

        try:
            logger.info("Refreshing access token from direct credential")
            context = await self.refresher(refresh_token)
            if not context.project_id:
                raise AuthenticationError("Failed to discover project ID")
        except Exception as exc:
            await self.cache.evict(refresh_token)
            message = exc.message if isinstance(exc, AuthenticationError) else str(exc)
            logger.error(f"Direct authentication failed: {message}")
            raise AuthenticationError(f"Direct authentication failed: {message}") from exc

        context = replace(context, credential=refresh_token)
        await self.cache.put(refresh_token, context)
        logger.info(f"Direct authentication successful, project: {context.project_id}")
        return context

    async def invalidate(self, refresh_token: str) -> None:
        """Drop the cached context, e.g. after the backend rejected it."""
        await self.cache.evict(refresh_token)
