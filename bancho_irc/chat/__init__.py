"""Users, channels and outgoing chat messages."""

from .cache import IdentityCache
from .channel import BanchoChannel, BanchoMultiplayerChannel, ChannelMember
from .outgoing import OutboundDispatcher, OutgoingMessage, split_message
from .user import BanchoUser, normalize_username

__all__ = [
    "BanchoChannel",
    "BanchoMultiplayerChannel",
    "BanchoUser",
    "ChannelMember",
    "IdentityCache",
    "OutboundDispatcher",
    "OutgoingMessage",
    "normalize_username",
    "split_message",
]
