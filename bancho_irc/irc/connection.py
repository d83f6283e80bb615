"""Connection lifecycle & reconnection logic for the Bancho gateway."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..errors.handling import log_error
from ..errors.internal import (
    AlreadyConnectedError,
    AuthenticationError,
    NotConnectedError,
    TransportError,
    TransportTimeoutError,
)
from ..logs.logger import logger
from ..rate.backoff_strategy import ReconnectBackoff
from .models import ConnectionState

if TYPE_CHECKING:  # pragma: no cover
    from .client import BanchoClient


class IRCConnectionController:
    """Runs the connection state machine for a host ``BanchoClient``.

    Every opened socket gets a new generation number. Close notifications
    carry the generation they were raised for and are ignored once it is
    stale, which makes ``handle_close`` idempotent: the listener, a failed
    write and a forced close may all report the same loss, only the first
    one acts.
    """

    def __init__(self, host: BanchoClient) -> None:
        self.host = host
        config = host.config
        self.backoff = ReconnectBackoff(
            config.reconnect_delay,
            config.reconnect_backoff_multiplier,
            config.reconnect_max_delay,
        )
        self.generation = 0
        self._connect_future: asyncio.Future[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._listener_task: asyncio.Task[None] | None = None
        self._sleep = asyncio.sleep

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    async def connect(self) -> None:
        host = self.host
        if host.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            raise AlreadyConnectedError()
        if host.state is ConnectionState.RECONNECTING:
            self._cancel_reconnect()
        fut = self._connect_future
        if fut is None or fut.done():
            fut = asyncio.get_running_loop().create_future()
            self._connect_future = fut
        await self._open()
        await asyncio.shield(fut)

    async def disconnect(self) -> None:
        host = self.host
        if host.state is ConnectionState.DISCONNECTED:
            return
        was_connected = host.state is ConnectionState.CONNECTED
        self.generation += 1
        self._cancel_reconnect()
        if was_connected and host.writer is not None:
            try:
                host.write_now("QUIT")
                await host.writer.drain()
            except (OSError, ConnectionError) as e:
                logger.log_event(
                    "irc",
                    "quit_failed",
                    level=logging.DEBUG,
                    user=host.username,
                    error=str(e),
                )
        await self._drop_transport()
        error = NotConnectedError("Disconnected by the client")
        host.reset_channels(error)
        self._settle_connect(error)
        self.backoff.reset()
        logger.log_event("irc", "disconnected", level=logging.WARNING, user=host.username)
        await host.set_state(ConnectionState.DISCONNECTED)

    async def on_welcome(self) -> None:
        host = self.host
        if host.state is not ConnectionState.CONNECTING:
            return
        self.backoff.reset()
        logger.log_event("irc", "connect_success", user=host.username, host=host.host)
        await host.set_state(ConnectionState.CONNECTED)
        self._settle_connect(None)

    async def on_auth_failure(self, error: AuthenticationError) -> None:
        logger.log_event(
            "irc", "auth_failed", level=logging.ERROR, user=self.host.username, reason=str(error)
        )
        self._settle_connect(error)
        await self.handle_close(self.generation, error)

    async def handle_close(
        self, generation: int, error: Exception | None = None
    ) -> None:
        """React to the loss of the connection tagged ``generation``."""
        host = self.host
        if generation != self.generation:
            return
        if host.state in (ConnectionState.DISCONNECTED, ConnectionState.RECONNECTING):
            return
        self.generation += 1
        generation = self.generation
        await self._drop_transport()
        host.reset_channels(error or TransportError("Connection closed"))

        if error is not None:
            log_error(
                "Connection lost",
                error,
                context={"user": host.username, "state": host.state.value},
                stats=host.error_stats,
            )
            await host.events.error.publish(error)
            # An error subscriber may have disconnected or reconnected already.
            if generation != self.generation or host.state is ConnectionState.DISCONNECTED:
                return

        if not host.config.reconnect:
            self._settle_connect(error or TransportError("Connection closed"))
            await host.set_state(ConnectionState.DISCONNECTED, error)
            return

        await host.set_state(ConnectionState.RECONNECTING, error)
        # A subscriber may have reconnected or disconnected in the meantime.
        if host.state is not ConnectionState.RECONNECTING or self.reconnect_pending:
            return
        delay = self.backoff.next_delay()
        logger.log_event(
            "irc",
            "reconnect_scheduled",
            level=logging.WARNING,
            user=host.username,
            delay=round(delay, 2),
            attempt=self.backoff.attempts,
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        self._reconnect_task = None
        if self.host.state is not ConnectionState.RECONNECTING:
            return
        logger.log_event("irc", "reconnect_attempt", user=self.host.username)
        await self._open()

    async def _open(self) -> None:
        host = self.host
        self.generation += 1
        generation = self.generation
        await host.set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "irc", "connect_start", user=host.username, host=host.host, port=host.port
        )
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host.host, host.port),
                timeout=host.config.connect_timeout,
            )
        except TimeoutError:
            await self.handle_close(
                generation, TransportTimeoutError(host.config.connect_timeout)
            )
            return
        except OSError as e:
            await self.handle_close(generation, TransportError(str(e), data={"errno": e.errno}))
            return

        if generation != self.generation:
            # disconnect() ran while the socket was opening
            writer.close()
            return

        host.reader, host.writer = reader, writer
        host.dispatcher.reset()
        try:
            host.write_now(f"PASS {host.config.password}")
            host.write_now(f"USER {host.username} 0 * :{host.username}")
            host.write_now(f"NICK {host.username}")
            await writer.drain()
        except (OSError, ConnectionError) as e:
            await self.handle_close(generation, TransportError(str(e)))
            return
        logger.log_event("irc", "auth_sent", level=logging.DEBUG, user=host.username)
        self._listener_task = asyncio.create_task(host.listener.listen(generation, reader))

    async def _drop_transport(self) -> None:
        host = self.host
        writer = host.writer
        host.reader = None
        host.writer = None
        host.dispatcher.reset()
        task = self._listener_task
        self._listener_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except (OSError, ConnectionError) as e:
            logger.log_event(
                "irc", "close_failed", level=logging.DEBUG, user=host.username, error=str(e)
            )

    def _cancel_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    def _settle_connect(self, error: Exception | None) -> None:
        fut = self._connect_future
        self._connect_future = None
        if fut is None or fut.done():
            return
        if error is None:
            fut.set_result(None)
        else:
            fut.set_exception(error)
