"""IRC subsystem package.

Framing, verb routing, the read loop and the connection state machine for
the Bancho gateway.
"""

from .client import BanchoClient  # noqa: F401
from .commands import DEFAULT_COMMANDS  # noqa: F401
from .connection import IRCConnectionController  # noqa: F401
from .dispatcher import IGNORED_REPLIES, CommandHandler, IRCDispatcher  # noqa: F401
from .listener import IRCListener  # noqa: F401
from .models import ConnectionState  # noqa: F401
from .parser import IRCLine, LineFramer, tokenize  # noqa: F401

__all__ = [
    "BanchoClient",
    "CommandHandler",
    "ConnectionState",
    "DEFAULT_COMMANDS",
    "IGNORED_REPLIES",
    "IRCConnectionController",
    "IRCDispatcher",
    "IRCLine",
    "IRCListener",
    "LineFramer",
    "tokenize",
]
