"""Anti-flood admission and reconnect pacing."""

from .backoff_strategy import ReconnectBackoff  # noqa: F401
from .rate_limiter import BanchoRateLimiter, QuotaKind, RateWindow  # noqa: F401

__all__ = [
    "BanchoRateLimiter",
    "QuotaKind",
    "RateWindow",
    "ReconnectBackoff",
]
