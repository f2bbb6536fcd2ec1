"""HTTP client for the Cloud Code generateContent backend.

Every request is wrapped in the Cloud Code envelope:

    {
        "project": "<project id>",
        "model": "<model>",
        "request": {...generateContent body..., "sessionId": "..."},
        "userAgent": "antigravity",
        "requestType": "agent",
        "requestId": "agent-<uuid>"
    }

and responses come back wrapped as ``{"response": {...}}``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional

import httpx

from ..core.errors import exception_from_error
from ..core.exceptions import AuthenticationError, ServiceUnavailableError
from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings
from ..core.sse import detect_sse_stream_error, iter_sse_json
from ..google.request_converter import convert_anthropic_to_google
from ..google.response_converter import convert_google_to_anthropic, unwrap_response
from ..google.stream_adapter import GoogleToMessagesStreamAdapter
from .session import derive_session_id
from .token_cache import AuthContext

logger = logging.getLogger("cloudrelay")

DEFAULT_BASE_URL = "https://cloudcode-pa.googleapis.com/v1internal"
DEFAULT_TIMEOUT = 120.0

AuthFailureCallback = Callable[[AuthContext], Awaitable[None]]


def _format_httpx_error(exc: httpx.HTTPError, url: str) -> str:
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)
    parts.append(f"url={url}")
    return "; ".join(parts)


class CloudCodeClient:
    """Sends canonical requests to Cloud Code and translates the replies.

    The client performs no retries; upstream failures surface as taxonomy
    exceptions so the HTTP layer can report them in the caller's format.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        settings: Optional[TranslatorSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_auth_failure: Optional[AuthFailureCallback] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.settings = settings or DEFAULT_SETTINGS
        self.transport = transport
        self.on_auth_failure = on_auth_failure

    def build_envelope(
        self,
        google_request: Mapping[str, Any],
        model: str,
        auth: AuthContext,
        session_id: str,
    ) -> dict[str, Any]:
        request = dict(google_request)
        request["sessionId"] = session_id
        return {
            "project": auth.project_id,
            "model": model,
            "request": request,
            "userAgent": "antigravity",
            "requestType": "agent",
            "requestId": f"agent-{uuid.uuid4()}",
        }

    def _headers(self, auth: AuthContext, stream: bool) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {auth.access_token}",
            "Content-Type": "application/json",
        }
        if stream:
            headers["Accept"] = "text/event-stream"
        return headers

    def _prepare(
        self, anthropic_request: Mapping[str, Any], auth: AuthContext
    ) -> tuple[str, dict[str, Any]]:
        model = anthropic_request.get("model") or ""
        google_request = convert_anthropic_to_google(anthropic_request, self.settings)
        session_id = derive_session_id(anthropic_request, auth.account_email)
        return model, self.build_envelope(google_request, model, auth, session_id)

    async def _raise_for_upstream_error(
        self, status_code: int, body: str, auth: AuthContext
    ) -> None:
        logger.warning(f"Cloud Code returned HTTP {status_code}: {body[:500]}")
        error = exception_from_error(f"{status_code} {body}")
        await self._handle_error(error, auth)
        raise error

    async def _handle_error(self, error: Exception, auth: AuthContext) -> None:
        if isinstance(error, AuthenticationError) and self.on_auth_failure is not None:
            logger.info("Backend rejected credentials, invalidating cached token")
            await self.on_auth_failure(auth)

    async def generate_content(
        self, anthropic_request: Mapping[str, Any], auth: AuthContext
    ) -> dict[str, Any]:
        """Send a non-streaming request and return the Anthropic response.

        Raises:
            ProxyError: A taxonomy subclass describing the upstream failure
        """
        model, envelope = self._prepare(anthropic_request, auth)
        url = f"{self.base_url}:generateContent"
        logger.info(f"Cloud Code request: model={model} stream=False")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    url, json=envelope, headers=self._headers(auth, stream=False)
                )
        except httpx.HTTPError as exc:
            detail = _format_httpx_error(exc, url)
            logger.error(f"Cloud Code request failed: {detail}")
            raise ServiceUnavailableError(f"Upstream request failed: {detail}") from exc

        if response.status_code >= 400:
            await self._raise_for_upstream_error(response.status_code, response.text, auth)

        payload = unwrap_response(response.json())
        return convert_google_to_anthropic(payload, model, self.settings)

    async def stream_generate_content(
        self, anthropic_request: Mapping[str, Any], auth: AuthContext
    ) -> AsyncIterator[dict[str, Any]]:
        """Send a streaming request and yield Anthropic stream events.

        Upstream errors, including error events inside the SSE body, are
        raised from the iterator.
        """
        model, envelope = self._prepare(anthropic_request, auth)
        url = f"{self.base_url}:streamGenerateContent?alt=sse"
        logger.info(f"Cloud Code request: model={model} stream=True")

        adapter = GoogleToMessagesStreamAdapter(model, settings=self.settings)
        async for event in adapter.adapt_stream(self._iter_chunks(url, envelope, auth)):
            yield event

    async def _iter_chunks(
        self, url: str, envelope: dict[str, Any], auth: AuthContext
    ) -> AsyncIterator[dict[str, Any]]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                async with client.stream(
                    "POST", url, json=envelope, headers=self._headers(auth, stream=True)
                ) as response:
                    if response.status_code >= 400:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        await self._raise_for_upstream_error(response.status_code, body, auth)

                    async for chunk in iter_sse_json(response.aiter_lines()):
                        sse_error = detect_sse_stream_error(chunk)
                        if sse_error:
                            logger.warning(sse_error)
                            error = exception_from_error(sse_error)
                            await self._handle_error(error, auth)
                            raise error
                        yield chunk
        except httpx.HTTPError as exc:
            detail = _format_httpx_error(exc, url)
            logger.error(f"Cloud Code stream failed: {detail}")
            raise ServiceUnavailableError(f"Upstream request failed: {detail}") from exc
