"""Configuration loading utilities."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .model import ClientConfig

DEFAULT_CONFIG_FILE = "bancho_irc.conf"

# Environment variables that win over the file, mapped to config fields.
_ENV_OVERRIDES = {
    "BANCHO_USERNAME": "username",
    "BANCHO_PASSWORD": "password",
    "BANCHO_API_KEY": "api_key",
    "BANCHO_HOST": "host",
    "BANCHO_PORT": "port",
}


def load_raw(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Read the JSON configuration file.

    Returns an empty dict when the file does not exist so environment
    variables alone can describe a client.

    Raises:
        ValueError: If the file is not a JSON object.
    """
    p = Path(path)
    if not p.exists():
        logging.debug(f"📁 Config file not found path={p}")
        return {}
    with p.open(encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{p}: expected a JSON object at top level")
    return data


def apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    merged = dict(data)
    for env_name, field in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            merged[field] = value
    return merged


def load_config(path: str | os.PathLike[str] | None = None) -> ClientConfig:
    """Load and validate the client configuration.

    Args:
        path: JSON file to read. Defaults to ``$BANCHO_CONF_FILE`` or
            ``bancho_irc.conf`` in the working directory.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    if path is None:
        path = os.environ.get("BANCHO_CONF_FILE", DEFAULT_CONFIG_FILE)
    data = apply_env_overrides(load_raw(path))
    try:
        config = ClientConfig.from_dict(data)
    except ValidationError as e:
        logging.error(f"⚠️ Invalid configuration path={path} errors={e.error_count()}")
        raise ValueError(f"Invalid configuration in {path}: {e}") from e
    logging.info(
        f"✅ Configuration loaded user={config.username} host={config.host}:{config.port} "
        f"channels={len(config.channels)}"
    )
    return config
