"""Bancho IRC client: owns the connection, caches and outgoing pipeline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from ..api.osu import OsuAPI, UserLookup
from ..chat.cache import IdentityCache
from ..chat.channel import BanchoChannel
from ..chat.outgoing import OutboundDispatcher, OutgoingMessage
from ..chat.user import BanchoUser, normalize_username
from ..config.model import ClientConfig
from ..errors.internal import NotConnectedError, TransportError
from ..events import ClientEvents, StateChange
from ..logging_config import ErrorStats
from ..logs.logger import logger
from ..rate.rate_limiter import BanchoRateLimiter
from .commands import DEFAULT_COMMANDS
from .connection import IRCConnectionController
from .dispatcher import CommandHandler, IRCDispatcher
from .listener import IRCListener
from .models import ConnectionState


class BanchoClient:  # pylint: disable=too-many-instance-attributes
    """One logged-in connection to the Bancho IRC gateway.

    Every cache and piece of connection state lives on the instance, so
    several clients can share a process. Connection losses and failed
    lookups are counted in ``error_stats``.

    Args:
        config: Connection settings.
        lookup: Metadata lookup used by ``get_user_by_id``; an ``OsuAPI`` is
            created when omitted and ``config.api_key`` is set.
        commands: Verb registry; defaults to ``DEFAULT_COMMANDS``.
        rate_limiter: Outgoing limiter; built from ``config`` when omitted.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        lookup: UserLookup | None = None,
        commands: Mapping[str, CommandHandler] | None = None,
        rate_limiter: BanchoRateLimiter | None = None,
    ) -> None:
        self.config = config
        self.username = normalize_username(config.username)
        self.host = config.host
        self.port = config.port
        self.state = ConnectionState.DISCONNECTED
        self.events = ClientEvents()
        self.error_stats = ErrorStats()
        self._owns_lookup = lookup is None and config.api_key is not None
        if self._owns_lookup:
            lookup = OsuAPI(config.api_key, error_stats=self.error_stats)  # type: ignore[arg-type]
        self.lookup = lookup
        self.cache = IdentityCache(self, lookup)
        self.rate_limiter = rate_limiter or BanchoRateLimiter.from_config(config)
        self.outbound = OutboundDispatcher(
            self,
            self.rate_limiter,
            max_line_length=config.max_line_length,
            mention_sentinels=config.mention_sentinels,
        )
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.dispatcher = IRCDispatcher(
            self, DEFAULT_COMMANDS if commands is None else commands
        )
        self.connection = IRCConnectionController(self)
        self.listener = IRCListener(self)

    def __repr__(self) -> str:
        return f"BanchoClient({self.username!r}, state={self.state.value})"

    # ---- lifecycle ----
    async def connect(self) -> None:
        """Connect and log in; returns once the gateway welcomed us.

        Raises:
            AlreadyConnectedError: If connecting or connected already.
            AuthenticationError: If the password was refused.
            TransportError: If the connection failed and reconnecting is off.
            NotConnectedError: If ``disconnect()`` was called meanwhile.
        """
        await self.connection.connect()

    async def disconnect(self) -> None:
        await self.connection.disconnect()

    async def close(self) -> None:
        """Disconnect, then release the caches, limiter timers and HTTP session."""
        await self.disconnect()
        self.rate_limiter.cancel_wakeups()
        self.cache.clear()
        if self._owns_lookup and isinstance(self.lookup, OsuAPI):
            await self.lookup.close()

    async def __aenter__(self) -> BanchoClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def get_connect_state(self) -> ConnectionState:
        return self.state

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def is_disconnected(self) -> bool:
        return self.state is ConnectionState.DISCONNECTED

    async def set_state(
        self, new_state: ConnectionState, error: Exception | None = None
    ) -> None:
        if self.state is new_state:
            return
        previous = self.state
        self.state = new_state
        logger.log_event(
            "irc",
            "state_change",
            level=logging.DEBUG,
            user=self.username,
            old_state=previous.value,
            new_state=new_state.value,
        )
        await self.events.state.publish(StateChange(new_state, previous, error))
        if new_state is ConnectionState.CONNECTED:
            await self.events.connected.publish(None)
        elif new_state is ConnectionState.DISCONNECTED:
            await self.events.disconnected.publish(error)

    # ---- transport ----
    def write_now(self, line: str) -> None:
        """Write one line without waiting for the buffer to drain.

        Raises:
            NotConnectedError: Unless connecting or connected.
        """
        if self.state not in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            raise NotConnectedError()
        if self.writer is None:
            raise NotConnectedError()
        self.writer.write(f"{line}\r\n".encode())

    async def send_raw(self, line: str) -> None:
        self.write_now(line)
        writer = self.writer
        generation = self.connection.generation
        try:
            await writer.drain()  # type: ignore[union-attr]
        except (OSError, ConnectionError) as e:
            error = TransportError(str(e))
            await self.connection.handle_close(generation, error)
            raise error from e

    def reset_channels(self, error: Exception) -> None:
        """Mark every channel as left and fail its pending join/part."""
        for channel in self.cache.channels.values():
            channel.mark_parted()
            channel.fail_pending(error)

    # ---- identities ----
    def get_user(self, name: str) -> BanchoUser:
        return self.cache.get_user(name)

    def get_self(self) -> BanchoUser:
        return self.cache.get_user(self.username)

    def get_channel(self, name: str) -> BanchoChannel:
        return self.cache.get_channel(name)

    async def get_user_by_id(self, user_id: int | str) -> BanchoUser:
        return await self.cache.get_user_by_id(user_id)

    # ---- convenience ----
    async def send_message(
        self, recipient: str | BanchoUser | BanchoChannel, message: str
    ) -> OutgoingMessage:
        """Send ``message`` to a channel (``#name``) or user name."""
        if isinstance(recipient, str):
            recipient = (
                self.get_channel(recipient)
                if recipient.startswith("#")
                else self.get_user(recipient)
            )
        return await self.outbound.send(recipient, message)

    async def join_channel(self, name: str) -> BanchoChannel:
        channel = self.get_channel(name)
        await channel.join()
        return channel

    async def leave_channel(self, name: str) -> BanchoChannel:
        channel = self.get_channel(name)
        await channel.leave()
        return channel
