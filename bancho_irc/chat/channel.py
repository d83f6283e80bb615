"""Channels known to the client."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import MULTIPLAYER_CHANNEL_PREFIX
from ..events import ChannelEvents
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.client import BanchoClient
    from .outgoing import OutgoingMessage
    from .user import BanchoUser

JOIN = "JOIN"
PART = "PART"


@dataclass(slots=True)
class ChannelMember:
    channel: BanchoChannel
    user: BanchoUser
    mode: str = ""  # "" regular, "+" voiced, "@" operator

    @property
    def is_moderator(self) -> bool:
        return self.mode == "@"


class BanchoChannel:
    """A discussion channel (PMs are not channels).

    At most one JOIN and one PART may be in flight per channel: calling
    ``join()`` (or ``leave()``) again before the server answered returns the
    future already pending instead of sending another command.

    Attributes:
        name: Channel name including the leading '#'.
        topic: Last topic received.
        joined: Whether the client is currently in the channel.
        members: Normalized username -> ``ChannelMember``.
        events: Per-channel ``message`` / ``join`` / ``part`` event channels.
    """

    def __init__(self, client: BanchoClient, name: str) -> None:
        self.client = client
        self.name = name
        self.topic = ""
        self.joined = False
        self.members: dict[str, ChannelMember] = {}
        self.events = ChannelEvents()
        self._pending: dict[str, asyncio.Future[None]] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, joined={self.joined})"

    async def send_message(self, message: str) -> OutgoingMessage:
        """Send a message to the channel; completes once every chunk is written."""
        return await self.client.outbound.send(self, message)

    def join(self) -> asyncio.Future[None]:
        """Join the channel.

        Raises:
            NotConnectedError: If the client is disconnected.
        """
        return self._join_or_part(JOIN)

    def leave(self) -> asyncio.Future[None]:
        """Leave the channel.

        Raises:
            NotConnectedError: If the client is disconnected.
        """
        return self._join_or_part(PART)

    def pending(self, action: str) -> asyncio.Future[None] | None:
        fut = self._pending.get(action)
        return fut if fut is not None and not fut.done() else None

    def _join_or_part(self, action: str) -> asyncio.Future[None]:
        in_flight = self.pending(action)
        if in_flight is not None:
            logger.log_event(
                "channel",
                "request_coalesced",
                level=logging.DEBUG,
                user=self.client.username,
                channel=self.name,
                action=action,
            )
            return in_flight
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.client.write_now(f"{action} {self.name}")
        self._pending[action] = fut
        return fut

    def resolve_pending(self, action: str, error: Exception | None = None) -> bool:
        """Complete the in-flight JOIN/PART; returns False if none was pending."""
        fut = self._pending.pop(action, None)
        if fut is None or fut.done():
            return False
        if error is None:
            fut.set_result(None)
        else:
            fut.set_exception(error)
        return True

    def fail_pending(self, error: Exception) -> None:
        for action in (JOIN, PART):
            self.resolve_pending(action, error)

    def add_member(self, user: BanchoUser, mode: str = "") -> ChannelMember:
        member = self.members.get(user.key)
        if member is None:
            member = ChannelMember(self, user, mode)
            self.members[user.key] = member
        elif mode:
            member.mode = mode
        return member

    def remove_member(self, user: BanchoUser) -> ChannelMember | None:
        return self.members.pop(user.key, None)

    def mark_joined(self) -> None:
        self.joined = True

    def mark_parted(self) -> None:
        self.joined = False
        self.members.clear()


class BanchoMultiplayerChannel(BanchoChannel):
    """A multiplayer lobby channel (``#mp_<lobby id>``)."""

    @property
    def lobby_id(self) -> int | None:
        suffix = self.name[len(MULTIPLAYER_CHANNEL_PREFIX) :]
        return int(suffix) if suffix.isdigit() else None


__all__ = [
    "BanchoChannel",
    "BanchoMultiplayerChannel",
    "ChannelMember",
    "JOIN",
    "PART",
]
