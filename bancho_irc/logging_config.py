"""
Logging setup for the Bancho IRC client.

``LoggerConfigurator`` installs a colorlog handler on the root logger.
``ErrorStats`` counts logged failures per category for one client, so an
application can report how often it lost the connection or failed lookups.
"""

import logging
import os
import sys
import time
from collections import Counter
from collections.abc import Callable
from typing import Any

import colorlog

from .logs.logger import logger

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


def _level_from_env() -> int:
    debug_env = os.environ.get("DEBUG", "").lower()
    return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO


class ErrorStats:
    """Failure counters of one client, keyed by error category.

    Categories are the ones ``errors.handling.log_error`` assigns, such as
    ``transport`` for a lost connection or ``lookup`` for a failed id lookup.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.counts: Counter[str] = Counter()
        self.last_messages: dict[str, str] = {}
        self._clock = clock
        self.started = clock()

    def record(self, category: str, message: str) -> int:
        self.counts[category] += 1
        self.last_messages[category] = message
        return self.counts[category]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def report(self, user: str | None = None) -> None:
        """Log one line per category seen since the client was created."""
        if not self.counts:
            logger.log_event("errors", "none", user=user)
            return
        minutes = round((self._clock() - self.started) / 60, 1)
        for category, count in sorted(self.counts.items()):
            logger.log_event(
                "errors",
                "summary",
                level=logging.WARNING,
                user=user,
                category=category,
                count=count,
                minutes=minutes,
                last=self.last_messages[category],
            )


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
    stats: ErrorStats | None = None,
) -> None:
    """Log an error with its category and context, counting it in ``stats``.

    Args:
        error_type: Category of the error (e.g. 'transport', 'auth', 'lookup').
        message: Descriptive error message.
        exception: The exception that occurred (optional).
        context: Additional context data for debugging.
        level: Logging level (default: ERROR).
        stats: Counters of the client the error belongs to, if any.
    """
    structured_message = f"[{error_type.upper()}] {message}"
    if exception is not None:
        structured_message += f" | Exception: {type(exception).__name__}: {exception}"
    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.log(level, structured_message)

    if stats is not None:
        stats.record(error_type, message)


class LoggerConfigurator:
    """Configures the root logger with colorlog output on stderr.

    The level is DEBUG when the ``DEBUG`` environment variable is 'true',
    '1' or 'yes', INFO otherwise, unless ``level`` is given explicitly.
    """

    def __init__(self, level: int | None = None):
        self.level = level

    @staticmethod
    def build_formatter() -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=LEVEL_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

    def configure(self) -> int:
        log_level = self.level if self.level is not None else _level_from_env()
        formatter = self.build_formatter()

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s")

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        for h in root_logger.handlers:
            h.setFormatter(formatter)

        # aiohttp access chatter is not useful for a chat client
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        return log_level
