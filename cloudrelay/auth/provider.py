"""Request authentication for the relay.

A caller authenticates either with a relay API key (served by the statically
configured account) or by presenting a Google refresh token directly, which
is exchanged through a ``DirectAuthenticator``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

from ..cloudcode.token_cache import AuthContext, DirectAuthenticator, is_refresh_token
from ..core.exceptions import AuthenticationError

logger = logging.getLogger("cloudrelay")

DEFAULT_HEADER_NAME = "x-api-key"


def extract_credential(request: Request, header_name: str = DEFAULT_HEADER_NAME) -> Optional[str]:
    """Return the credential from the API key header or a Bearer token."""
    provided = request.headers.get(header_name)
    if not provided:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.lower().startswith("bearer "):
            provided = auth_header[7:].strip()
    return provided or None


class RelayAuthProvider:
    """Resolves the ``AuthContext`` used for a backend call."""

    def __init__(
        self,
        static_context: Optional[AuthContext] = None,
        authenticator: Optional[DirectAuthenticator] = None,
        header_name: str = DEFAULT_HEADER_NAME,
    ) -> None:
        self.static_context = static_context
        self.authenticator = authenticator
        self.header_name = header_name

    async def resolve(self, request: Request) -> AuthContext:
        """Pick direct auth for refresh tokens, else the static account.

        Raises:
            AuthenticationError: If no credentials are available
        """
        credential = extract_credential(request, self.header_name)
        if self.authenticator is not None and is_refresh_token(credential):
            logger.debug("Using direct refresh-token authentication")
            return await self.authenticator.authenticate(credential)

        if self.static_context is None:
            logger.warning("Request rejected: no backend credentials configured")
            raise AuthenticationError(
                "No backend credentials configured. Provide a refresh token or "
                "configure cloudcode.access_token."
            )
        return self.static_context

    async def invalidate(self, context: AuthContext) -> None:
        """Forget cached credentials the backend has rejected."""
        if self.authenticator is not None and context.credential:
            await self.authenticator.invalidate(context.credential)
