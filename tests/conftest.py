"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import pytest

from cloudrelay.api import create_app
from cloudrelay.auth import RelayAuthProvider
from cloudrelay.cloudcode import AuthContext, CloudCodeClient

TEST_BASE_URL = "https://cloudcode.test/v1internal"


def google_chunk(
    parts: list[dict[str, Any]],
    finish_reason: Optional[str] = None,
    usage: Optional[dict[str, int]] = None,
) -> dict[str, Any]:
    """Build one Cloud Code response payload (also used as a stream chunk)."""
    candidate: dict[str, Any] = {"content": {"role": "model", "parts": parts}}
    if finish_reason:
        candidate["finishReason"] = finish_reason
    response: dict[str, Any] = {"candidates": [candidate]}
    if usage:
        response["usageMetadata"] = usage
    return {"response": response}


class FakeCloudCode:
    """In-process stand-in for the Cloud Code backend.

    Records every request and replays a canned JSON body, an SSE body built
    from ``sse_chunks``, or a raw error body.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.json_body: dict[str, Any] = google_chunk(
            [{"text": "Hello!"}],
            finish_reason="STOP",
            usage={"promptTokenCount": 5, "candidatesTokenCount": 2},
        )
        self.sse_chunks: list[dict[str, Any]] = [
            google_chunk([{"text": "Hel"}]),
            google_chunk(
                [{"text": "lo!"}],
                finish_reason="STOP",
                usage={"promptTokenCount": 5, "candidatesTokenCount": 2},
            ),
        ]
        self.error_body: Optional[str] = None
        self.fail_connect = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_connect:
            raise httpx.ConnectError("connection refused", request=request)
        if self.error_body is not None:
            return httpx.Response(self.status_code, text=self.error_body)
        if ":streamGenerateContent" in str(request.url):
            body = "".join(f"data: {json.dumps(chunk)}\n\n" for chunk in self.sse_chunks)
            return httpx.Response(
                self.status_code,
                text=body,
                headers={"Content-Type": "text/event-stream"},
            )
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_envelope(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def fake_cloudcode() -> FakeCloudCode:
    return FakeCloudCode()


@pytest.fixture
def static_auth() -> AuthContext:
    return AuthContext(
        access_token="ya29.test-token",
        project_id="proj-test",
        account_email="dev@example.com",
    )


@pytest.fixture
def cloudcode_client(fake_cloudcode: FakeCloudCode) -> CloudCodeClient:
    return CloudCodeClient(base_url=TEST_BASE_URL, transport=fake_cloudcode.transport)


@pytest.fixture
def relay_app(cloudcode_client: CloudCodeClient, static_auth: AuthContext):
    """App wired to the fake backend with a static account."""
    return create_app(
        client=cloudcode_client,
        auth_provider=RelayAuthProvider(static_context=static_auth),
    )
