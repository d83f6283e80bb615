"""Outbound message dispatch: splitting, quota classification and pacing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..errors.internal import NotConnectedError, ProtocolViolation
from ..logs.logger import logger
from ..rate.rate_limiter import BanchoRateLimiter, QuotaKind
from .user import BanchoUser

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.client import BanchoClient
    from .channel import BanchoChannel


def target_name(recipient: BanchoUser | BanchoChannel) -> str:
    if isinstance(recipient, BanchoUser):
        return recipient.irc_username
    return recipient.name


def privmsg_prefix(target: str) -> str:
    return f"PRIVMSG {target} :"


def split_message(text: str, target: str, max_line_length: int) -> list[str]:
    """Split ``text`` into the fewest chunks that fit one PRIVMSG line each.

    Newlines always start a new chunk and empty lines are dropped. Chunk size
    is measured in UTF-8 bytes and a code point is never split.
    """
    budget = max_line_length - len(privmsg_prefix(target).encode("utf-8"))
    if budget < 4:
        raise ProtocolViolation(f"Target name too long to send to: {target}")

    chunks: list[str] = []
    for line in text.replace("\r", "").split("\n"):
        current: list[str] = []
        size = 0
        for ch in line:
            width = len(ch.encode("utf-8"))
            if size + width > budget:
                chunks.append("".join(current))
                current, size = [], 0
            current.append(ch)
            size += width
        if current:
            chunks.append("".join(current))
    return chunks


def classify(
    recipient: BanchoUser | BanchoChannel, text: str, sentinels: Iterable[str]
) -> QuotaKind:
    if isinstance(recipient, BanchoUser):
        return QuotaKind.ADDRESSED
    if text.lstrip().startswith(tuple(sentinels)):
        return QuotaKind.ADDRESSED
    return QuotaKind.NORMAL


@dataclass
class OutgoingMessage:
    recipient: BanchoUser | BanchoChannel
    message: str
    kind: QuotaKind
    chunks: list[str] = field(default_factory=list)
    sent: int = 0

    @property
    def target(self) -> str:
        return target_name(self.recipient)


class OutboundDispatcher:
    """Turns ``send(recipient, text)`` into paced PRIVMSG lines."""

    def __init__(
        self,
        client: BanchoClient,
        limiter: BanchoRateLimiter,
        *,
        max_line_length: int,
        mention_sentinels: Iterable[str] = ("@",),
    ) -> None:
        self.client = client
        self.limiter = limiter
        self.max_line_length = max_line_length
        self.mention_sentinels = tuple(mention_sentinels)

    def prepare(
        self, recipient: BanchoUser | BanchoChannel, message: str
    ) -> OutgoingMessage:
        chunks = split_message(message, target_name(recipient), self.max_line_length)
        if not chunks:
            raise ProtocolViolation("Cannot send an empty message")
        kind = classify(recipient, message, self.mention_sentinels)
        return OutgoingMessage(recipient, message, kind, chunks)

    async def send(
        self, recipient: BanchoUser | BanchoChannel, message: str
    ) -> OutgoingMessage:
        """Send ``message`` and return once the last chunk was written.

        Raises:
            NotConnectedError: If the client is not connected; nothing is sent.
            ProtocolViolation: If the message is empty.
        """
        if not self.client.is_connected():
            raise NotConnectedError()
        outgoing = self.prepare(recipient, message)
        prefix = privmsg_prefix(outgoing.target)
        for chunk in outgoing.chunks:
            await self.limiter.admit(outgoing.kind)
            await self.client.send_raw(prefix + chunk)
            outgoing.sent += 1
        logger.log_event(
            "chat",
            "message_sent",
            level=logging.DEBUG,
            user=self.client.username,
            target=outgoing.target,
            kind=outgoing.kind.value,
            chunks=outgoing.sent,
        )
        return outgoing
