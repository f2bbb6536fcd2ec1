"""Main FastAPI application for cloudrelay, built from the YAML config."""

from typing import Any, Mapping, Optional

from .api import create_app
from .auth import RelayAuthProvider
from .cloudcode import (
    DEFAULT_BASE_URL,
    AuthContext,
    CloudCodeClient,
    DirectAuthenticator,
    TokenCache,
)
from .cloudcode.client import DEFAULT_TIMEOUT
from .cloudcode.token_cache import Refresher
from .config_loader import get_server_address, load_config
from .core.constants import TOKEN_REFRESH_INTERVAL
from .core.settings import TranslatorSettings
from .logging import setup_logging

logger = setup_logging()


def _configured(value: Any) -> Optional[str]:
    """Return a config string unless it is empty or an unresolved ``$VAR``."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.startswith("$"):
        return None
    return text


def build_static_context(cloudcode_cfg: Mapping[str, Any]) -> Optional[AuthContext]:
    """Build the single-account context from ``cloudcode`` settings, if complete."""
    access_token = _configured(cloudcode_cfg.get("access_token"))
    project_id = _configured(cloudcode_cfg.get("project_id"))
    if not access_token or not project_id:
        logger.info("No static Cloud Code credentials configured")
        return None
    return AuthContext(
        access_token=access_token,
        project_id=project_id,
        account_email=_configured(cloudcode_cfg.get("account_email")),
    )


def _get_float(section: Mapping[str, Any], key: str, default: float) -> float:
    try:
        return float(section.get(key, default))
    except (TypeError, ValueError):
        logger.warning(f"Invalid cloudcode.{key}, using {default}")
        return default


def build_app(config: Mapping[str, Any], refresher: Optional[Refresher] = None):
    """Create the FastAPI app from a loaded config dict.

    Args:
        config: Loaded configuration
        refresher: Exchanges a caller's refresh token for an ``AuthContext``.
            Without one, only the statically configured account is served.
    """
    settings = TranslatorSettings.from_config(config)
    cloudcode_cfg = config.get("cloudcode") or {}

    client = CloudCodeClient(
        base_url=str(cloudcode_cfg.get("base_url") or DEFAULT_BASE_URL),
        timeout=_get_float(cloudcode_cfg, "timeout", DEFAULT_TIMEOUT),
        settings=settings,
    )

    authenticator = None
    if refresher is not None:
        ttl = _get_float(cloudcode_cfg, "token_cache_ttl", TOKEN_REFRESH_INTERVAL)
        authenticator = DirectAuthenticator(TokenCache(ttl=ttl), refresher)
        logger.info(f"Direct refresh-token authentication enabled (cache TTL {ttl}s)")

    auth_provider = RelayAuthProvider(
        static_context=build_static_context(cloudcode_cfg),
        authenticator=authenticator,
    )

    logger.info(f"Cloud Code backend: {client.base_url}")
    return create_app(settings=settings, client=client, auth_provider=auth_provider)


config = load_config()
app = build_app(config)
SERVER_HOST, SERVER_PORT = get_server_address(config)


def run() -> None:
    """Serve the app with uvicorn on the configured address."""
    import uvicorn

    logger.info(f"Starting cloudrelay on {SERVER_HOST}:{SERVER_PORT}")
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    run()


__all__ = ["app", "build_app", "config", "run", "SERVER_HOST", "SERVER_PORT"]
