"""YAML configuration for the relay.

A config file may reference environment variables as ``${NAME}`` or
``$NAME``. Values are looked up first in the ``.env`` file paired with the
config (read with python-dotenv, ``os.environ`` is left untouched) and then
in the process environment.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

logger = logging.getLogger("cloudrelay")

CONFIG_ENV = "CLOUDRELAY_CONFIG"
HOST_ENV = "CLOUDRELAY_HOST"
PORT_ENV = "CLOUDRELAY_PORT"

DEFAULT_CONFIG_PATH = "configs/config_default.yaml"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

PROJECT_ROOT = Path(__file__).resolve().parent.parent

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def default_config_path() -> str:
    return os.getenv(CONFIG_ENV) or DEFAULT_CONFIG_PATH


def resolve_config_path(path: str) -> Path:
    """Anchor relative paths at the project root, not the working directory."""
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_env_path(config_path: Path, env_path: Optional[str] = None) -> Path:
    """Pick the ``.env`` file that belongs to ``config_path``.

    ``config_<name>.yaml`` pairs with ``.env_<name>`` in the same directory,
    so several deployments can share one ``configs/`` folder. Other file
    names fall back to a plain ``.env``.
    """
    if env_path:
        return resolve_config_path(env_path)
    stem = config_path.stem
    name = stem.removeprefix("config_")
    if name != stem:
        return config_path.with_name(f".env_{name}")
    return config_path.with_name(".env")


def load_env_values(env_path: Path) -> dict[str, str]:
    if not env_path.is_file():
        return {}
    return {key: value for key, value in dotenv_values(env_path).items() if value is not None}


def load_config(
    path: Optional[str] = None,
    env_path: Optional[str] = None,
    substitute_env: bool = True,
) -> dict:
    """Read the relay configuration.

    Args:
        path: Config file; defaults to $CLOUDRELAY_CONFIG or the bundled default
        env_path: Explicit ``.env`` file used for substitution
        substitute_env: Expand ``${VAR}`` placeholders

    Raises:
        RuntimeError: The config file does not exist.
    """
    config_path = resolve_config_path(path or default_config_path())
    if not config_path.exists():
        logger.error(f"Config file not found: {config_path}")
        raise RuntimeError(f"Config file not found: {config_path}")

    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    logger.info(f"Loaded configuration from {config_path}")

    if not substitute_env:
        return data

    env_file = resolve_env_path(config_path, env_path)
    env_values = load_env_values(env_file)
    if env_values:
        logger.info(f"Using {len(env_values)} value(s) from {env_file}")
    return _substitute_env_vars(data, env_values)


def _lookup(name: str, env_values: Mapping[str, str]) -> Optional[str]:
    if name in env_values:
        return env_values[name]
    return os.environ.get(name)


def _substitute_env_vars(obj: Any, env_values: Optional[Mapping[str, str]] = None) -> Any:
    """Expand placeholders in every string of a parsed config tree.

    An unset variable keeps its placeholder text so that consumers can tell
    it was never configured.
    """
    env_values = env_values or {}

    def expand(match: "re.Match[str]") -> str:
        name = match.group(1) or match.group(2)
        value = _lookup(name, env_values)
        if value is None:
            logger.warning(f"Config references unset environment variable ${name}")
            return match.group(0)
        return value

    if isinstance(obj, str):
        return _PLACEHOLDER_RE.sub(expand, obj)
    if isinstance(obj, dict):
        return {key: _substitute_env_vars(value, env_values) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    return obj


def _parse_port(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid port value: {value!r}")
        return None


def get_server_address(config: Mapping[str, Any]) -> tuple[str, int]:
    """Return ``(host, port)``; CLOUDRELAY_HOST/PORT beat ``proxy_settings.server``."""
    server = (config.get("proxy_settings") or {}).get("server") or {}

    host = os.getenv(HOST_ENV) or str(server.get("host") or DEFAULT_HOST)

    port = _parse_port(os.getenv(PORT_ENV))
    if port is None:
        port = _parse_port(server.get("port"))
    return host, port if port is not None else DEFAULT_PORT
