"""Anti-flood rate limiter for outgoing chat lines.

Bancho applies two quotas over the same window: one for every line and a
much stricter one for lines that address somebody (private messages and
highlights). Each quota is a ``RateWindow``; callers that find their window
full wait in a FIFO queue until the window resets.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import ClientConfig


class QuotaKind(str, Enum):
    NORMAL = "normal"
    ADDRESSED = "addressed"


@dataclass
class RateWindow:
    """A quota bucket that empties once per window.

    The reset is lazy: it happens on the admission check that first observes
    ``now - window_start >= window_length``. Nothing runs while idle.
    """

    capacity: int
    window_length: float
    consumed: int = 0
    window_start: float | None = None

    def refresh(self, now: float) -> bool:
        if self.window_start is None or now - self.window_start >= self.window_length:
            self.consumed = 0
            self.window_start = now
            return True
        return False

    def try_consume(self, now: float) -> bool:
        self.refresh(now)
        if self.consumed < self.capacity:
            self.consumed += 1
            return True
        return False

    def resets_at(self) -> float | None:
        if self.window_start is None:
            return None
        return self.window_start + self.window_length


class BanchoRateLimiter:
    """Grants or defers permission to send one line of a given kind.

    Args:
        window_length: Shared window length in seconds.
        normal_capacity: Lines of kind NORMAL per window.
        addressed_capacity: Lines of kind ADDRESSED per window.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        window_length: float,
        normal_capacity: int,
        addressed_capacity: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._windows: dict[QuotaKind, RateWindow] = {
            QuotaKind.NORMAL: RateWindow(normal_capacity, window_length),
            QuotaKind.ADDRESSED: RateWindow(addressed_capacity, window_length),
        }
        self._waiters: dict[QuotaKind, deque[asyncio.Future[None]]] = {
            kind: deque() for kind in QuotaKind
        }
        self._wakeups: dict[QuotaKind, asyncio.TimerHandle | None] = {
            kind: None for kind in QuotaKind
        }

    @classmethod
    def from_config(cls, config: ClientConfig) -> BanchoRateLimiter:
        return cls(
            config.rate_window,
            config.normal_capacity,
            config.addressed_capacity,
        )

    def window(self, kind: QuotaKind) -> RateWindow:
        return self._windows[kind]

    def pending(self, kind: QuotaKind) -> int:
        return sum(1 for fut in self._waiters[kind] if not fut.done())

    def snapshot(self) -> dict[str, object]:
        """Return a serializable snapshot of limiter state for debugging."""
        now = self._clock()
        out: dict[str, object] = {}
        for kind, window in self._windows.items():
            resets_at = window.resets_at()
            out[kind.value] = {
                "capacity": window.capacity,
                "consumed": window.consumed,
                "window_length": window.window_length,
                "reset_in": max(0.0, resets_at - now) if resets_at is not None else None,
                "queued": self.pending(kind),
            }
        return out

    async def admit(self, kind: QuotaKind = QuotaKind.NORMAL) -> None:
        """Wait until one line of ``kind`` may be sent, then consume it."""
        waiters = self._waiters[kind]
        self._discard_finished(waiters)
        if not waiters and self._windows[kind].try_consume(self._clock()):
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        waiters.append(fut)
        self._schedule_wakeup(kind)
        logger.log_event(
            "rate",
            "deferred",
            level=logging.DEBUG,
            kind=kind.value,
            queued=len(waiters),
        )
        await fut

    def cancel_wakeups(self) -> None:
        """Drop scheduled wake-ups; queued callers are served on the next admit."""
        for kind, handle in self._wakeups.items():
            if handle is not None:
                handle.cancel()
                self._wakeups[kind] = None

    def _schedule_wakeup(self, kind: QuotaKind) -> None:
        if self._wakeups[kind] is not None:
            return
        resets_at = self._windows[kind].resets_at()
        delay = 0.0 if resets_at is None else max(0.0, resets_at - self._clock())
        loop = asyncio.get_running_loop()
        self._wakeups[kind] = loop.call_later(delay, self._drain, kind)

    def _drain(self, kind: QuotaKind) -> None:
        self._wakeups[kind] = None
        window = self._windows[kind]
        waiters = self._waiters[kind]
        now = self._clock()
        while waiters:
            fut = waiters[0]
            if fut.done():
                waiters.popleft()
                continue
            if not window.try_consume(now):
                break
            waiters.popleft()
            fut.set_result(None)
        if waiters:
            self._schedule_wakeup(kind)

    @staticmethod
    def _discard_finished(waiters: deque[asyncio.Future[None]]) -> None:
        while waiters and waiters[0].done():
            waiters.popleft()
