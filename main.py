#!/usr/bin/env python3
"""
Main entry point for the Bancho IRC client
"""

import asyncio
import logging
import signal
import sys

from bancho_irc.config import load_config
from bancho_irc.errors.handling import log_error
from bancho_irc.errors.internal import InternalError
from bancho_irc.events import ChannelMessage, PrivateMessage
from bancho_irc.irc import BanchoClient
from bancho_irc.logging_config import LoggerConfigurator
from bancho_irc.logs.logger import logger


def _install_signal_handlers(stop: asyncio.Event) -> None:  # pragma: no cover
    loop = asyncio.get_running_loop()

    def handler() -> None:
        if stop.is_set():
            return
        logging.warning("🛑 Signal received - initiating shutdown")
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handler)
        except NotImplementedError:
            # Windows event loops have no signal support
            pass


async def _join_configured(client: BanchoClient) -> None:
    for name in client.config.channels:
        try:
            await client.join_channel(name)
        except InternalError as e:
            logger.log_event(
                "app",
                "join_failed",
                level=logging.WARNING,
                user=client.username,
                channel=name,
                error=str(e),
            )


async def main():
    """Main function"""
    config = load_config()
    stop = asyncio.Event()
    _install_signal_handlers(stop)
    logger.log_event("app", "start", username=config.username)

    background: set[asyncio.Task] = set()

    async with BanchoClient(config) as client:

        def on_channel_message(msg: ChannelMessage) -> None:
            logger.log_event(
                "chat",
                "received",
                user=client.username,
                channel=msg.channel.name,
                sender=msg.user.irc_username,
                message=msg.message,
            )

        def on_private_message(msg: PrivateMessage) -> None:
            if msg.own:
                return
            logger.log_event(
                "chat",
                "received",
                user=client.username,
                channel=msg.user.irc_username,
                sender=msg.user.irc_username,
                message=msg.message,
            )

        async def on_connected(_payload: None) -> None:
            # Channels are not rejoined by the client after a reconnect
            task = asyncio.create_task(_join_configured(client))
            background.add(task)
            task.add_done_callback(background.discard)

        client.events.channel_message.subscribe(on_channel_message)
        client.events.private_message.subscribe(on_private_message)
        client.events.connected.subscribe(on_connected)

        connect = asyncio.create_task(client.connect())
        waiter = asyncio.create_task(stop.wait())
        done, _ = await asyncio.wait({connect, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if connect in done:
            connect.result()
            await waiter
        else:
            connect.cancel()
        client.error_stats.report(client.username)
    logger.log_event("app", "stop")


if __name__ == "__main__":
    LoggerConfigurator().configure()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.log_event("app", "stop")
        sys.exit(0)
    except (InternalError, ValueError) as e:
        log_error("Top-level error", e)
        logging.critical(f"Critical error occurred: {e}", exc_info=True)
        sys.exit(1)
