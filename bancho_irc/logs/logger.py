"""Event-style logger used across the client."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO


def _supports_color(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):  # pragma: no cover
        return False


def _is_debug_enabled() -> bool:
    return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")


class SimpleFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[35m",
    }
    RESET = "\x1b[0m"

    def __init__(self) -> None:
        super().__init__()
        self.enable_color = _supports_color(sys.stdout)

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 (simple override)
        msg = record.getMessage()
        # 'CRITICAL' is the longest built-in level name (8 chars).
        raw_level = record.levelname.ljust(8)
        if self.enable_color:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            return f"{color}{raw_level}{self.RESET} {msg}"
        return f"{raw_level} {msg}"


class BanchoLogger:
    """Logs named events (``<domain>_<action>``) with a human readable line.

    The human text comes from the event catalog when a template exists for
    ``(domain, action)``; keyword context is appended in debug mode.
    ``user`` and ``channel`` keywords are reserved and rendered as the
    ``[user#channel]`` prefix column.
    """

    EVENT_NAME_WIDTH = 28
    PREFIX_WIDTH = 24

    def __init__(self, name: str = "bancho_irc", log_file: str | None = None) -> None:
        self.logger = logging.getLogger(name)
        self.log_file = log_file
        self.logger.handlers.clear()
        self.logger.setLevel(logging.DEBUG if _is_debug_enabled() else logging.INFO)
        self.logger.propagate = False

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(SimpleFormatter())
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
            self.logger.addHandler(file_handler)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        event_name = f"{domain}_{action}".lower()
        human_text = human if human is not None else self._render(domain, action, kwargs)
        user = kwargs.pop("user", None)
        channel = kwargs.pop("channel", None)
        prefix = self._build_prefix(
            user if isinstance(user, str) else None,
            channel if isinstance(channel, str) else None,
        )
        if _is_debug_enabled():
            msg = self._build_debug_message(event_name, prefix, human_text, kwargs)
        else:
            msg = f"{prefix} {human_text}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _render(domain: str, action: str, kwargs: dict[str, object]) -> str:
        # Local import to avoid cyclic import issues during module init.
        from . import event_catalog

        template = event_catalog.EVENT_TEMPLATES.get((domain, action))
        if template is None:
            return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return template

    @classmethod
    def _build_prefix(cls, user: str | None, channel: str | None) -> str:
        core = user or "system"
        if channel:
            core = f"{core}{channel}" if channel.startswith("#") else f"{core}>{channel}"
        return f"[{core.ljust(cls.PREFIX_WIDTH)[: cls.PREFIX_WIDTH]}]"

    @classmethod
    def _build_debug_message(
        cls,
        event_name: str,
        prefix: str,
        human_text: str,
        kwargs: dict[str, object],
    ) -> str:
        width = cls.EVENT_NAME_WIDTH
        if len(event_name) <= width:
            ev = event_name.ljust(width)
        else:
            ev = event_name[: width - 1] + "…"
        base = f"{ev} {prefix} {human_text}"
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        if context:
            base = f"{base} ({context})"
        return base


logger = BanchoLogger()
