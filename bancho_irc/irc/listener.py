"""Read loop feeding socket data to the dispatcher."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..constants import READ_CHUNK_SIZE
from ..errors.internal import TransportError, TransportTimeoutError
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from .client import BanchoClient


class IRCListener:
    """Owns the read loop of one connection generation.

    Every chunk read is handled to completion (framing, routing, awaited
    subscribers) before the next read, so handlers never run concurrently.
    """

    def __init__(self, client: BanchoClient) -> None:
        self.client = client

    async def listen(self, generation: int, reader: asyncio.StreamReader) -> None:
        client = self.client
        connection = client.connection
        logger.log_event("irc", "listener_start", level=logging.DEBUG, user=client.username)
        error: Exception | None = None
        try:
            while generation == connection.generation:
                data = await self._read(reader)
                await client.dispatcher.process_incoming_data(data)
        except TransportError as e:
            error = e
        finally:
            logger.log_event(
                "irc", "listener_stopped", level=logging.DEBUG, user=client.username
            )
        if error is not None:
            await connection.handle_close(generation, error)

    async def _read(self, reader: asyncio.StreamReader) -> bytes:
        timeout = self.client.config.idle_timeout
        try:
            data = await asyncio.wait_for(reader.read(READ_CHUNK_SIZE), timeout=timeout)
        except TimeoutError as e:
            logger.log_event(
                "irc",
                "connection_stale",
                level=logging.WARNING,
                user=self.client.username,
                timeout=timeout,
            )
            raise TransportTimeoutError(timeout) from e
        except (OSError, ConnectionError) as e:
            raise TransportError(str(e)) from e
        if not data:
            logger.log_event(
                "irc", "connection_lost", level=logging.ERROR, user=self.client.username
            )
            raise TransportError("Connection closed by the server")
        return data
