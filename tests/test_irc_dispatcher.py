from unittest.mock import AsyncMock, MagicMock

import pytest

from bancho_irc.irc.dispatcher import IGNORED_REPLIES, IRCDispatcher


def make_dispatcher(**commands):
    client = MagicMock()
    client.username = "TestBot"
    client.write_now = MagicMock()
    return client, IRCDispatcher(client, commands)


@pytest.mark.asyncio
async def test_ping_answered_with_pong_and_not_routed():
    handler = AsyncMock()
    client, dispatcher = make_dispatcher(PING=handler, PRIVMSG=handler)

    count = await dispatcher.process_incoming_data(b"PING :abc123\r\n")

    assert count == 1
    client.write_now.assert_called_once_with("PONG :abc123")
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_ping_mid_stream_answered_in_order():
    order = []
    client, dispatcher = make_dispatcher()

    async def on_privmsg(_client, line):
        order.append(line.trailing(3))

    dispatcher.register("PRIVMSG", on_privmsg)
    client.write_now.side_effect = lambda text: order.append(text)

    await dispatcher.process_incoming_data(
        b":a!cho@ppy.sh PRIVMSG #osu :first\nPING :abc123\n:a!cho@ppy.sh PRIVMSG #osu :second\n"
    )

    assert order == ["first", "PONG :abc123", "second"]


@pytest.mark.asyncio
@pytest.mark.parametrize("verb", sorted(IGNORED_REPLIES))
async def test_ignored_replies_never_reach_handlers(verb):
    handler = AsyncMock()
    _client, dispatcher = make_dispatcher(**{verb: handler})
    await dispatcher.handle_line(f":cho.ppy.sh {verb} TestBot :whatever")
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_verb_is_dropped():
    handler = AsyncMock()
    client, dispatcher = make_dispatcher(PRIVMSG=handler)
    await dispatcher.handle_line(":cho.ppy.sh 999 TestBot :mystery")
    handler.assert_not_awaited()
    client.write_now.assert_not_called()


@pytest.mark.asyncio
async def test_handler_error_does_not_stop_later_lines():
    failing = AsyncMock(side_effect=RuntimeError("boom"))
    after = AsyncMock()
    _client, dispatcher = make_dispatcher(JOIN=failing, PART=after)

    await dispatcher.process_incoming_data(
        b":a!cho@ppy.sh JOIN :#osu\n:a!cho@ppy.sh PART :#osu\n"
    )

    failing.assert_awaited_once()
    after.assert_awaited_once()


@pytest.mark.asyncio
async def test_empty_lines_are_skipped():
    handler = AsyncMock()
    _client, dispatcher = make_dispatcher(PRIVMSG=handler)
    assert await dispatcher.process_incoming_data(b"\r\n\n") == 2
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_handler_receives_client_and_line():
    handler = AsyncMock()
    client, dispatcher = make_dispatcher(PRIVMSG=handler)
    await dispatcher.handle_line(":a!cho@ppy.sh PRIVMSG #osu :hi")
    passed_client, line = handler.await_args.args
    assert passed_client is client
    assert line.tokens[:3] == [":a!cho@ppy.sh", "PRIVMSG", "#osu"]
