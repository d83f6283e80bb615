"""In-memory stand-ins for the gateway socket."""

import asyncio

from bancho_irc.irc.client import BanchoClient
from bancho_irc.irc.models import ConnectionState

WELCOME = ":cho.ppy.sh 001 TestBot :Welcome to the osu!Bancho.\r\n"


class FakeWriter:
    """Collects written bytes in place of an ``asyncio.StreamWriter``."""

    def __init__(self) -> None:
        self.buffer = b""
        self.closed = False
        self.drain_error: Exception | None = None

    def write(self, data: bytes) -> None:
        self.buffer += data

    async def drain(self) -> None:
        if self.drain_error is not None:
            raise self.drain_error

    def close(self) -> None:
        self.closed = True

    def is_closing(self) -> bool:
        return self.closed

    async def wait_closed(self) -> None:
        return None

    @property
    def lines(self) -> list[str]:
        text = self.buffer.decode("utf-8")
        return [line for line in text.split("\r\n") if line]


class FakeServer:
    """Stands in for ``asyncio.open_connection``; one reader/writer pair per call."""

    def __init__(self) -> None:
        self.connections: list[tuple[asyncio.StreamReader, FakeWriter]] = []
        self.fail_with: Exception | None = None

    async def open_connection(self, host: str, port: int):
        if self.fail_with is not None:
            raise self.fail_with
        reader = asyncio.StreamReader()
        writer = FakeWriter()
        self.connections.append((reader, writer))
        return reader, writer

    @property
    def reader(self) -> asyncio.StreamReader:
        return self.connections[-1][0]

    @property
    def writer(self) -> FakeWriter:
        return self.connections[-1][1]

    def feed(self, text: str) -> None:
        self.reader.feed_data(text.encode("utf-8"))

    def hang_up(self) -> None:
        self.reader.feed_eof()


async def settle(rounds: int = 20) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


async def connect_client(client: BanchoClient, server: FakeServer) -> None:
    """Run ``client.connect()`` against ``server`` and answer with a welcome."""
    task = asyncio.create_task(client.connect())
    await wait_until(lambda: client.writer is not None)
    server.feed(WELCOME)
    await asyncio.wait_for(task, timeout=1.0)
    assert client.state is ConnectionState.CONNECTED


class ManualSleep:
    """Replacement for the reconnect sleep that waits until released."""

    def __init__(self) -> None:
        self.calls: list[float] = []
        self.release = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await self.release.wait()
