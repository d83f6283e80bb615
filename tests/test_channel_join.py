import asyncio

import pytest

from bancho_irc.errors.internal import NotConnectedError, RemoteRejection, TransportError
from bancho_irc.irc.models import ConnectionState
from tests.fixtures.irc_fixtures import ManualSleep, wait_until


def count_lines(server, line: str) -> int:
    return sum(1 for sent in server.writer.lines if sent == line)


@pytest.mark.asyncio
async def test_concurrent_joins_share_one_request(connected_client, fake_server):
    channel = connected_client.get_channel("#osu")

    first = channel.join()
    second = channel.join()

    assert first is second
    assert count_lines(fake_server, "JOIN #osu") == 1

    fake_server.feed(":TestBot!cho@ppy.sh JOIN :#osu\r\n")
    await asyncio.wait_for(asyncio.gather(first, second), timeout=1.0)
    assert channel.joined
    assert channel.pending("JOIN") is None


@pytest.mark.asyncio
async def test_join_after_completion_sends_again(connected_client, fake_server):
    channel = connected_client.get_channel("#osu")
    fut = channel.join()
    fake_server.feed(":TestBot!cho@ppy.sh JOIN :#osu\r\n")
    await asyncio.wait_for(fut, timeout=1.0)

    again = channel.join()
    assert again is not fut
    assert count_lines(fake_server, "JOIN #osu") == 2
    again.cancel()


@pytest.mark.asyncio
async def test_join_channel_convenience(connected_client, fake_server):
    task = asyncio.create_task(connected_client.join_channel("#taiko"))
    await wait_until(lambda: count_lines(fake_server, "JOIN #taiko") == 1)
    fake_server.feed(":TestBot!cho@ppy.sh JOIN :#taiko\r\n")
    channel = await asyncio.wait_for(task, timeout=1.0)
    assert channel is connected_client.get_channel("#taiko")
    assert channel.joined


@pytest.mark.asyncio
async def test_no_such_channel_rejects_join(connected_client, fake_server):
    missing: list[str] = []
    connected_client.events.no_channel.subscribe(missing.append)
    channel = connected_client.get_channel("#nope")
    fut = channel.join()

    fake_server.feed(":cho.ppy.sh 403 TestBot #nope :No such channel #nope\r\n")

    with pytest.raises(RemoteRejection, match="No such channel #nope"):
        await asyncio.wait_for(fut, timeout=1.0)
    assert missing == ["#nope"]
    assert not channel.joined
    assert connected_client.is_connected()


@pytest.mark.asyncio
async def test_leave_resolves_on_part(connected_client, fake_server):
    channel = connected_client.get_channel("#osu")
    joined = channel.join()
    fake_server.feed(
        ":TestBot!cho@ppy.sh JOIN :#osu\r\n"
        ":cho.ppy.sh 353 TestBot = #osu :@BanchoBot TestBot\r\n"
    )
    await asyncio.wait_for(joined, timeout=1.0)
    await wait_until(lambda: len(channel.members) == 2)

    left = channel.leave()
    assert count_lines(fake_server, "PART #osu") == 1
    fake_server.feed(":TestBot!cho@ppy.sh PART :#osu\r\n")
    await asyncio.wait_for(left, timeout=1.0)

    assert not channel.joined
    assert channel.members == {}


@pytest.mark.asyncio
async def test_join_while_disconnected_raises(client):
    channel = client.get_channel("#osu")
    with pytest.raises(NotConnectedError):
        channel.join()
    assert channel.pending("JOIN") is None


@pytest.mark.asyncio
async def test_connection_loss_fails_pending_join(connected_client, fake_server):
    connected_client.connection._sleep = ManualSleep()
    fut = connected_client.get_channel("#osu").join()

    fake_server.hang_up()

    with pytest.raises(TransportError):
        await asyncio.wait_for(fut, timeout=1.0)
    await wait_until(lambda: connected_client.state is ConnectionState.RECONNECTING)


@pytest.mark.asyncio
async def test_disconnect_fails_pending_leave(connected_client, fake_server):
    fut = connected_client.get_channel("#osu").leave()
    await connected_client.disconnect()
    with pytest.raises(NotConnectedError):
        await fut
