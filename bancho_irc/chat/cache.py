"""Identity cache: one shared instance per user name and channel name."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..constants import CHANNEL_PREFIX, MULTIPLAYER_CHANNEL_PREFIX
from ..errors.internal import (
    InvalidChannelNameError,
    InvalidUserIdError,
    MetadataLookupError,
)
from ..logs.logger import logger
from .channel import BanchoChannel, BanchoMultiplayerChannel
from .user import BanchoUser, normalize_username

if TYPE_CHECKING:  # pragma: no cover
    from ..api.osu import UserLookup
    from ..irc.client import BanchoClient

# Characters a channel name may never contain.
_FORBIDDEN_CHANNEL_CHARS = (",", "\x07", " ")


def validate_channel_name(name: str) -> None:
    if not isinstance(name, str) or not name.startswith(CHANNEL_PREFIX):
        raise InvalidChannelNameError(name)
    if len(name) == len(CHANNEL_PREFIX):
        raise InvalidChannelNameError(name)
    if any(ch in name for ch in _FORBIDDEN_CHANNEL_CHARS):
        raise InvalidChannelNameError(name)


def parse_user_id(user_id: int | str) -> int:
    if isinstance(user_id, bool):
        raise InvalidUserIdError(user_id)
    if isinstance(user_id, int):
        return user_id
    if isinstance(user_id, str) and user_id.strip().isdigit():
        return int(user_id.strip())
    raise InvalidUserIdError(user_id)


class IdentityCache:
    """Users and channels owned by one client.

    ``get_user`` and ``get_channel`` are synchronous, so creation can never
    interleave with another lookup of the same key. Numeric-id resolution is
    the only asynchronous path; concurrent lookups of one id share a single
    request.
    """

    def __init__(self, client: BanchoClient, lookup: UserLookup | None = None) -> None:
        self.client = client
        self.lookup = lookup
        self.users: dict[str, BanchoUser] = {}
        self.channels: dict[str, BanchoChannel] = {}
        self._users_by_id: dict[int, BanchoUser] = {}
        self._inflight_ids: dict[int, asyncio.Task[BanchoUser]] = {}

    def get_user(self, name: str) -> BanchoUser:
        irc_name = normalize_username(name)
        key = irc_name.lower()
        user = self.users.get(key)
        if user is None:
            user = BanchoUser(self.client, irc_name)
            self.users[key] = user
        return user

    def get_channel(self, name: str) -> BanchoChannel:
        """Return the channel called ``name``.

        ``#mp_`` channels get the multiplayer variant only when a metadata
        lookup is configured.

        Raises:
            InvalidChannelNameError: On a malformed name; the cache is left
                untouched.
        """
        validate_channel_name(name)
        channel = self.channels.get(name)
        if channel is None:
            if self.lookup is not None and name.startswith(MULTIPLAYER_CHANNEL_PREFIX):
                channel = BanchoMultiplayerChannel(self.client, name)
            else:
                channel = BanchoChannel(self.client, name)
            self.channels[name] = channel
        return channel

    def cached_user_by_id(self, user_id: int) -> BanchoUser | None:
        return self._users_by_id.get(user_id)

    async def get_user_by_id(self, user_id: int | str) -> BanchoUser:
        """Resolve a numeric osu! id to its user.

        Raises:
            InvalidUserIdError: If ``user_id`` is not numeric.
            MetadataLookupError: If no lookup is configured or it fails.
        """
        uid = parse_user_id(user_id)
        cached = self._users_by_id.get(uid)
        if cached is not None:
            return cached
        if self.lookup is None:
            raise MetadataLookupError("No API key configured for id lookups")

        task = self._inflight_ids.get(uid)
        if task is None:
            task = asyncio.ensure_future(self._resolve_id(uid))
            self._inflight_ids[uid] = task
            task.add_done_callback(lambda _t: self._inflight_ids.pop(uid, None))
        return await asyncio.shield(task)

    def bind_user_id(self, user: BanchoUser, user_id: int) -> None:
        user.id = user_id
        self._users_by_id[user_id] = user

    def clear(self) -> None:
        for task in self._inflight_ids.values():
            task.cancel()
        self._inflight_ids.clear()
        self._users_by_id.clear()
        self.users.clear()
        self.channels.clear()

    async def _resolve_id(self, uid: int) -> BanchoUser:
        lookup = self.lookup
        if lookup is None:
            raise MetadataLookupError("No API key configured for id lookups")
        data = await lookup.lookup_user_by_id(uid)
        username = data.get("username")
        if not isinstance(username, str) or not username:
            raise MetadataLookupError(f"No username returned for id {uid}")
        user = self.get_user(username)
        user.update_from_api(data)
        self.bind_user_id(user, user.id if user.id is not None else uid)
        logger.log_event(
            "cache",
            "user_resolved",
            level=logging.DEBUG,
            user=user.irc_username,
            user_id=uid,
        )
        return user
