"""Users known to the client."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..constants import MAX_USERNAME_LENGTH

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.client import BanchoClient
    from .outgoing import OutgoingMessage


def normalize_username(name: str) -> str:
    """Return the IRC form of an osu! username.

    Spaces become underscores, anything after the first newline is dropped
    and the result is clipped to the maximum username length. Case is kept;
    use ``username_key`` for lookups.
    """
    return name.replace(" ", "_").split("\n", 1)[0][:MAX_USERNAME_LENGTH]


def username_key(name: str) -> str:
    return normalize_username(name).lower()


class BanchoUser:
    """A user as seen over IRC.

    There is exactly one instance per normalized name for the lifetime of a
    client, so references may be held indefinitely; attributes are updated in
    place when the user's metadata is looked up.

    Attributes:
        irc_username: Normalized IRC name (original case).
        username: Display name, from the API once looked up.
        id: osu! user id, ``None`` until known.
        api_data: Last raw metadata payload.
    """

    def __init__(self, client: BanchoClient, irc_username: str) -> None:
        self.client = client
        self.irc_username = irc_username
        self.username = irc_username
        self.id: int | None = None
        self.api_data: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"BanchoUser({self.irc_username!r}, id={self.id})"

    @property
    def key(self) -> str:
        return self.irc_username.lower()

    def is_client(self) -> bool:
        """True when this user is the account the client is logged in as."""
        return self.key == username_key(self.client.username)

    def update_from_api(self, data: Mapping[str, Any]) -> None:
        self.api_data = dict(data)
        username = data.get("username")
        if isinstance(username, str) and username:
            self.username = username
        raw_id = data.get("user_id", data.get("id"))
        if raw_id is not None and str(raw_id).isdigit():
            self.id = int(raw_id)

    async def send_message(self, message: str) -> OutgoingMessage:
        """Send a private message; completes once every chunk is written."""
        return await self.client.outbound.send(self, message)
