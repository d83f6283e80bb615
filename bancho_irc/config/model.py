from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import (
    BANCHO_DEFAULT_HOST,
    BANCHO_DEFAULT_PORT,
    CONNECT_TIMEOUT_SECONDS,
    IDLE_TIMEOUT_SECONDS,
    MAX_LINE_LENGTH,
    MENTION_SENTINELS,
    RATE_ADDRESSED_LIMIT,
    RATE_NORMAL_LIMIT,
    RATE_SAFETY_MARGIN,
    RATE_WINDOW_SECONDS,
    RECONNECT_BACKOFF_MULTIPLIER,
    RECONNECT_DELAY_SECONDS,
    RECONNECT_MAX_DELAY_SECONDS,
)


class ClientConfig(BaseModel):
    """Connection settings for one Bancho IRC client.

    Attributes:
        username: osu! username used for PASS/USER/NICK.
        password: IRC password (see https://osu.ppy.sh/p/irc).
        host: Gateway host.
        port: Gateway port.
        api_key: osu! API key; enables user id lookups and lobby channels.
        channels: Channels ``main.py`` joins after connecting.
        reconnect: Reconnect automatically after unexpected closes.
        reconnect_delay: Delay before the first reconnect attempt.
        reconnect_backoff_multiplier: Growth factor per failed attempt (1.0 = fixed).
        reconnect_max_delay: Upper bound for the grown delay.
        idle_timeout: Seconds without data before the socket is considered dead.
        connect_timeout: TCP open timeout.
        rate_window: Length of the anti-flood window in seconds.
        rate_normal_limit: Documented ordinary line limit per window.
        rate_addressed_limit: Documented private/highlight line limit per window.
        rate_safety_margin: Fraction shaved off both documented limits.
        max_line_length: Max bytes of one outgoing PRIVMSG line.
        mention_sentinels: Text prefixes marking a line as addressed.
    """

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    host: str = BANCHO_DEFAULT_HOST
    port: int = Field(default=BANCHO_DEFAULT_PORT, gt=0, lt=65536)
    api_key: str | None = None
    channels: list[str] = Field(default_factory=list)
    reconnect: bool = True
    reconnect_delay: float = Field(default=RECONNECT_DELAY_SECONDS, ge=0)
    reconnect_backoff_multiplier: float = Field(default=RECONNECT_BACKOFF_MULTIPLIER, ge=1)
    reconnect_max_delay: float = Field(default=RECONNECT_MAX_DELAY_SECONDS, ge=0)
    idle_timeout: float = Field(default=IDLE_TIMEOUT_SECONDS, gt=0)
    connect_timeout: float = Field(default=CONNECT_TIMEOUT_SECONDS, gt=0)
    rate_window: float = Field(default=RATE_WINDOW_SECONDS, gt=0)
    rate_normal_limit: int = Field(default=RATE_NORMAL_LIMIT, gt=0)
    rate_addressed_limit: int = Field(default=RATE_ADDRESSED_LIMIT, gt=0)
    rate_safety_margin: float = Field(default=RATE_SAFETY_MARGIN, ge=0, lt=1)
    max_line_length: int = Field(default=MAX_LINE_LENGTH, gt=32)
    mention_sentinels: tuple[str, ...] = MENTION_SENTINELS

    @field_validator("username", "password", mode="before")
    @classmethod
    def strip_credentials(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_api_key_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("channels", mode="before")
    @classmethod
    def validate_channels(cls, v: Any) -> list[str]:
        """Ensure every channel carries the '#' prefix, dropping blanks and
        case-insensitive duplicates while keeping the given order."""
        if not isinstance(v, list):
            raise ValueError("channels must be a list")
        seen: set[str] = set()
        validated: list[str] = []
        for c in v:
            if not isinstance(c, str) or not c.strip():
                continue
            name = c.strip()
            if not name.startswith("#"):
                name = f"#{name}"
            if name.lower() not in seen:
                seen.add(name.lower())
                validated.append(name)
        return validated

    @model_validator(mode="after")
    def validate_reconnect_bounds(self) -> ClientConfig:
        if self.reconnect_max_delay < self.reconnect_delay:
            raise ValueError("reconnect_max_delay must be >= reconnect_delay")
        return self

    @property
    def normal_capacity(self) -> int:
        """Ordinary lines admitted per window once the margin is applied."""
        return self._with_margin(self.rate_normal_limit)

    @property
    def addressed_capacity(self) -> int:
        """Addressed lines admitted per window once the margin is applied."""
        return self._with_margin(self.rate_addressed_limit)

    def _with_margin(self, limit: int) -> int:
        return max(1, limit - round(limit * self.rate_safety_margin))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientConfig:
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
