"""Typed event channels published by the client.

Each ``EventChannel`` carries one payload type. Subscribers may be plain
callables or coroutine functions; they are awaited in subscription order on
the reader task, so they never run concurrently with protocol handling.
A failing subscriber is logged and does not stop the others.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from .chat.channel import BanchoChannel, ChannelMember
    from .chat.user import BanchoUser
    from .irc.models import ConnectionState

T = TypeVar("T")

Handler = Callable[[T], Any]


class EventChannel(Generic[T]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Handler[T]] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler[T]) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(handler)

        return unsubscribe

    def unsubscribe(self, handler: Handler[T]) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    async def publish(self, payload: T) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "events",
                    "handler_error",
                    level=logging.ERROR,
                    event=self.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )


@dataclass(frozen=True, slots=True)
class StateChange:
    state: ConnectionState
    previous: ConnectionState
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class ChannelMessage:
    user: BanchoUser
    channel: BanchoChannel
    message: str
    own: bool = False


@dataclass(frozen=True, slots=True)
class PrivateMessage:
    user: BanchoUser
    recipient: BanchoUser
    message: str
    own: bool = False


@dataclass(frozen=True, slots=True)
class ChannelMemberEvent:
    channel: BanchoChannel
    user: BanchoUser
    member: ChannelMember | None = None


@dataclass
class ClientEvents:
    """Event channels exposed as ``BanchoClient.events``."""

    connected: EventChannel[None] = field(
        default_factory=lambda: EventChannel("connected")
    )
    disconnected: EventChannel[Exception | None] = field(
        default_factory=lambda: EventChannel("disconnected")
    )
    state: EventChannel[StateChange] = field(
        default_factory=lambda: EventChannel("state")
    )
    error: EventChannel[Exception] = field(
        default_factory=lambda: EventChannel("error")
    )
    channel_message: EventChannel[ChannelMessage] = field(
        default_factory=lambda: EventChannel("channel_message")
    )
    private_message: EventChannel[PrivateMessage] = field(
        default_factory=lambda: EventChannel("private_message")
    )
    join: EventChannel[ChannelMemberEvent] = field(
        default_factory=lambda: EventChannel("join")
    )
    part: EventChannel[ChannelMemberEvent] = field(
        default_factory=lambda: EventChannel("part")
    )
    no_channel: EventChannel[str] = field(
        default_factory=lambda: EventChannel("no_channel")
    )


@dataclass
class ChannelEvents:
    """Event channels exposed as ``BanchoChannel.events``."""

    message: EventChannel[ChannelMessage] = field(
        default_factory=lambda: EventChannel("channel.message")
    )
    join: EventChannel[ChannelMemberEvent] = field(
        default_factory=lambda: EventChannel("channel.join")
    )
    part: EventChannel[ChannelMemberEvent] = field(
        default_factory=lambda: EventChannel("channel.part")
    )
