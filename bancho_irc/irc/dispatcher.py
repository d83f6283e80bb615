"""Line routing: keep-alive replies, ignored numerics and the verb registry."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING

from ..logs.logger import logger
from .parser import IRCLine, LineFramer, tokenize

if TYPE_CHECKING:  # pragma: no cover
    from .client import BanchoClient

CommandHandler = Callable[["BanchoClient", IRCLine], Awaitable[None]]

# Replies that carry nothing the client acts on.
IGNORED_REPLIES = frozenset(
    {
        "312",  # RPL_WHOISSERVER
        "333",  # RPL_TOPICWHOTIME
        "366",  # RPL_ENDOFNAMES
        "372",  # RPL_MOTD
        "375",  # RPL_MOTDSTART
        "376",  # RPL_ENDOFMOTD
        "QUIT",
    }
)


class IRCDispatcher:
    """Feeds raw socket data through the framer and routes each line.

    Lines are handled one at a time, in arrival order. ``PING`` is answered
    before anything else looks at the line.
    """

    def __init__(
        self, client: BanchoClient, commands: Mapping[str, CommandHandler]
    ) -> None:
        self.client = client
        self.commands: dict[str, CommandHandler] = dict(commands)
        self.framer = LineFramer()

    def register(self, verb: str, handler: CommandHandler) -> None:
        self.commands[verb] = handler

    def reset(self) -> None:
        self.framer.reset()

    async def process_incoming_data(self, data: bytes | str) -> int:
        lines = self.framer.feed(data)
        for line in lines:
            await self.handle_line(line)
        return len(lines)

    async def handle_line(self, raw_line: str) -> None:
        if not raw_line:
            return
        line = tokenize(raw_line)
        if line.tokens[0] == "PING":
            self._handle_ping(line)
            return

        verb = line.verb
        if verb is None or verb in IGNORED_REPLIES:
            return
        handler = self.commands.get(verb)
        if handler is None:
            logger.log_event(
                "irc",
                "unhandled_command",
                level=logging.DEBUG,
                user=self.client.username,
                verb=verb,
            )
            return
        logger.log_event(
            "irc",
            "raw",
            level=logging.DEBUG,
            user=self.client.username,
            raw=raw_line,
        )
        try:
            await handler(self.client, line)
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "irc",
                "command_handler_error",
                level=logging.ERROR,
                user=self.client.username,
                verb=verb,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _handle_ping(self, line: IRCLine) -> None:
        pong = " ".join(["PONG", *line.tokens[1:]])
        self.client.write_now(pong)
