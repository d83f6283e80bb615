"""Asyncio client for the osu! Bancho IRC gateway."""

from .chat import BanchoChannel, BanchoMultiplayerChannel, BanchoUser, ChannelMember
from .config import ClientConfig, load_config
from .errors import *  # noqa: F403
from .errors import __all__ as _error_names
from .events import (
    ChannelMemberEvent,
    ChannelMessage,
    EventChannel,
    PrivateMessage,
    StateChange,
)
from .irc import BanchoClient, ConnectionState
from .rate import BanchoRateLimiter, QuotaKind

__version__ = "0.1.0"

__all__ = [
    "BanchoChannel",
    "BanchoClient",
    "BanchoMultiplayerChannel",
    "BanchoRateLimiter",
    "BanchoUser",
    "ChannelMember",
    "ChannelMemberEvent",
    "ChannelMessage",
    "ClientConfig",
    "ConnectionState",
    "EventChannel",
    "PrivateMessage",
    "QuotaKind",
    "StateChange",
    "load_config",
    *_error_names,
]
