"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI

from ..auth import RelayAuthProvider
from ..cloudcode import CloudCodeClient
from ..core.settings import DEFAULT_SETTINGS, TranslatorSettings
from .routes import RelayState, chat_completions, health, messages_endpoint

logger = logging.getLogger("cloudrelay")


def create_app(
    settings: Optional[TranslatorSettings] = None,
    client: Optional[CloudCodeClient] = None,
    auth_provider: Optional[RelayAuthProvider] = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Translator settings shared by every request
        client: Cloud Code client; one with default settings is created if omitted
        auth_provider: Resolves backend credentials per request

    Returns:
        The configured FastAPI application instance.
    """
    settings = settings or DEFAULT_SETTINGS
    client = client or CloudCodeClient(settings=settings)
    auth_provider = auth_provider or RelayAuthProvider()

    if client.on_auth_failure is None:
        client.on_auth_failure = auth_provider.invalidate

    app = FastAPI(title="cloudrelay")
    app.state.relay = RelayState(
        settings=settings,
        client=client,
        auth_provider=auth_provider,
    )

    app.post("/v1/messages")(messages_endpoint)
    app.post("/v1/chat/completions")(chat_completions)
    app.get("/health")(health)

    logger.info("FastAPI application created")
    return app
