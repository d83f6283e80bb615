"""
Configuration constants for the Bancho IRC client

This module contains all configurable constants used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Same contract as ``_get_env_int`` for floating point values.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Gateway endpoint
BANCHO_DEFAULT_HOST = os.getenv("BANCHO_DEFAULT_HOST", "irc.ppy.sh")
BANCHO_DEFAULT_PORT = _get_env_int("BANCHO_DEFAULT_PORT", 6667)

# Connection lifecycle
RECONNECT_DELAY_SECONDS = _get_env_float(
    "RECONNECT_DELAY_SECONDS", 5.0
)  # Delay before reconnecting after an unexpected close
RECONNECT_BACKOFF_MULTIPLIER = _get_env_float(
    "RECONNECT_BACKOFF_MULTIPLIER", 1.0
)  # 1.0 keeps the delay fixed
RECONNECT_MAX_DELAY_SECONDS = _get_env_float(
    "RECONNECT_MAX_DELAY_SECONDS", 300.0
)  # Upper bound when the multiplier grows the delay
IDLE_TIMEOUT_SECONDS = _get_env_float(
    "IDLE_TIMEOUT_SECONDS", 60.0
)  # No data for this long is a transport failure
CONNECT_TIMEOUT_SECONDS = _get_env_float(
    "CONNECT_TIMEOUT_SECONDS", 30.0
)  # TCP open timeout
READ_CHUNK_SIZE = _get_env_int("READ_CHUNK_SIZE", 4096)  # Bytes per socket read

# Anti-flood quotas (documented server limits, margins applied in config)
RATE_WINDOW_SECONDS = _get_env_float("RATE_WINDOW_SECONDS", 60.0)
RATE_NORMAL_LIMIT = _get_env_int(
    "RATE_NORMAL_LIMIT", 300
)  # Ordinary lines per window
RATE_ADDRESSED_LIMIT = _get_env_int(
    "RATE_ADDRESSED_LIMIT", 60
)  # Private messages / highlights per window
RATE_SAFETY_MARGIN = _get_env_float(
    "RATE_SAFETY_MARGIN", 0.1
)  # Fraction shaved off each documented limit

# Framing / identities
MAX_LINE_LENGTH = _get_env_int(
    "MAX_LINE_LENGTH", 449
)  # Bytes of "PRIVMSG <target> :<text>" per line
MAX_USERNAME_LENGTH = _get_env_int("MAX_USERNAME_LENGTH", 28)
CHANNEL_PREFIX = "#"
MULTIPLAYER_CHANNEL_PREFIX = "#mp_"
MENTION_SENTINELS = ("@",)

# Metadata lookup (osu! API v1)
OSU_API_BASE_URL = os.getenv("OSU_API_BASE_URL", "https://osu.ppy.sh/api")
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default HTTP request timeout
DEFAULT_MAX_RETRY_ATTEMPTS = _get_env_int(
    "DEFAULT_MAX_RETRY_ATTEMPTS", 3
)  # Attempts for transient lookup failures
RETRY_MAX_BACKOFF_SECONDS = _get_env_int(
    "RETRY_MAX_BACKOFF_SECONDS", 10
)  # Maximum backoff between lookup attempts
