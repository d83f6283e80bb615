"""Reconnect delay strategy (fixed by default, optionally exponential)."""

from __future__ import annotations

import logging
from random import SystemRandom

from ..logs.logger import logger


class ReconnectBackoff:
    """Computes the delay before each reconnection attempt.

    With the default multiplier of 1.0 every attempt waits ``base_delay``.
    A larger multiplier grows the delay per consecutive failure up to
    ``max_delay``. ``reset()`` is called once the gateway welcomes us.
    """

    def __init__(
        self,
        base_delay: float,
        multiplier: float = 1.0,
        max_delay: float | None = None,
        jitter: float = 0.0,
    ) -> None:
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay if max_delay is not None else base_delay
        self.jitter = jitter
        self._attempts = 0
        self._rng = SystemRandom()

    @property
    def attempts(self) -> int:
        return self._attempts

    def next_delay(self) -> float:
        delay = self.base_delay * (self.multiplier**self._attempts)
        delay = min(delay, max(self.max_delay, self.base_delay))
        if self.jitter:
            spread = delay * self.jitter
            delay = max(0.0, delay + self._rng.uniform(-spread, spread))
        self._attempts += 1
        if self._attempts > 1 and self.multiplier > 1:
            logger.log_event(
                "rate",
                "backoff_grown",
                level=logging.DEBUG,
                delay=round(delay, 2),
                attempt=self._attempts,
            )
        return delay

    def reset(self) -> None:
        if self._attempts:
            logger.log_event("rate", "backoff_reset", level=logging.DEBUG, attempts=self._attempts)
        self._attempts = 0
