"""Default verb handlers.

Each handler receives the client and the tokenized line. Tokens follow
Bancho's layout, ``:<nick>!cho@ppy.sh <VERB> <params...>``, so the verb is
``tokens[1]`` and parameters start at ``tokens[2]``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..chat.channel import JOIN, PART
from ..errors.internal import AuthenticationError, RemoteRejection
from ..events import ChannelMemberEvent, ChannelMessage, PrivateMessage
from ..logs.logger import logger
from .dispatcher import CommandHandler
from .parser import IRCLine

if TYPE_CHECKING:  # pragma: no cover
    from .client import BanchoClient

MEMBER_MODES = ("@", "+")


def _channel_param(line: IRCLine, index: int) -> str:
    name = line.param(index)
    return name[1:] if name.startswith(":") else name


async def handle_welcome(client: BanchoClient, line: IRCLine) -> None:
    await client.connection.on_welcome()


async def handle_bad_password(client: BanchoClient, line: IRCLine) -> None:
    reason = line.trailing(3) or "Bad authentication token."
    await client.connection.on_auth_failure(AuthenticationError(reason))


async def handle_privmsg(client: BanchoClient, line: IRCLine) -> None:
    sender = client.get_user(line.nick)
    target = line.param(2)
    message = line.trailing(3)
    own = sender.is_client()
    if target.startswith("#"):
        channel = client.get_channel(target)
        payload = ChannelMessage(sender, channel, message, own)
        await client.events.channel_message.publish(payload)
        await channel.events.message.publish(payload)
        return
    recipient = client.get_user(target)
    await client.events.private_message.publish(
        PrivateMessage(sender, recipient, message, own)
    )


async def handle_join(client: BanchoClient, line: IRCLine) -> None:
    user = client.get_user(line.nick)
    channel = client.get_channel(_channel_param(line, 2))
    if user.is_client():
        channel.mark_joined()
        channel.resolve_pending(JOIN)
        logger.log_event("channel", "joined", user=client.username, channel=channel.name)
    member = channel.add_member(user)
    event = ChannelMemberEvent(channel, user, member)
    await client.events.join.publish(event)
    await channel.events.join.publish(event)


async def handle_part(client: BanchoClient, line: IRCLine) -> None:
    user = client.get_user(line.nick)
    channel = client.get_channel(_channel_param(line, 2))
    member = channel.remove_member(user)
    if user.is_client():
        channel.mark_parted()
        channel.resolve_pending(PART)
        logger.log_event("channel", "parted", user=client.username, channel=channel.name)
    event = ChannelMemberEvent(channel, user, member)
    await client.events.part.publish(event)
    await channel.events.part.publish(event)


async def handle_mode(client: BanchoClient, line: IRCLine) -> None:
    # :BanchoBot!cho@ppy.sh MODE #osu +o SomeUser
    target = line.param(2)
    change = line.param(3)
    nick = line.param(4)
    if not target.startswith("#") or len(change) != 2 or not nick:
        return
    channel = client.get_channel(target)
    user = client.get_user(nick)
    mode = {"o": "@", "v": "+"}.get(change[1])
    if mode is None:
        return
    if change[0] == "+":
        channel.add_member(user, mode)
    elif change[0] == "-":
        member = channel.members.get(user.key)
        if member is not None and member.mode == mode:
            member.mode = ""


async def handle_topic(client: BanchoClient, line: IRCLine) -> None:
    # :cho.ppy.sh 332 <nick> #osu :<topic>
    channel = client.get_channel(line.param(3))
    channel.topic = line.trailing(4)


async def handle_names(client: BanchoClient, line: IRCLine) -> None:
    # :cho.ppy.sh 353 <nick> = #osu :@BanchoBot +Someone Other
    channel = client.get_channel(line.param(4))
    for raw in line.trailing(5).split(" "):
        if not raw:
            continue
        mode = raw[0] if raw[0] in MEMBER_MODES else ""
        channel.add_member(client.get_user(raw[len(mode) :]), mode)


async def handle_no_such_channel(client: BanchoClient, line: IRCLine) -> None:
    # :cho.ppy.sh 403 <nick> #name :No such channel #name
    name = line.param(3)
    reason = line.trailing(4) or "No such channel"
    logger.log_event(
        "channel",
        "no_such_channel",
        level=logging.WARNING,
        user=client.username,
        channel=name,
        reason=reason,
    )
    if name.startswith("#") and name in client.cache.channels:
        channel = client.cache.channels[name]
        channel.resolve_pending(JOIN, RemoteRejection(reason, channel=name))
    await client.events.no_channel.publish(name)


DEFAULT_COMMANDS: dict[str, CommandHandler] = {
    "001": handle_welcome,
    "464": handle_bad_password,
    "PRIVMSG": handle_privmsg,
    "JOIN": handle_join,
    "PART": handle_part,
    "MODE": handle_mode,
    "332": handle_topic,
    "353": handle_names,
    "403": handle_no_such_channel,
}
