import asyncio
import os

import pytest
import pytest_asyncio

# Keep logger output deterministic regardless of the developer's environment
os.environ.pop("DEBUG", None)

from bancho_irc.config.model import ClientConfig  # noqa: E402
from bancho_irc.irc.client import BanchoClient  # noqa: E402
from tests.fixtures.irc_fixtures import FakeServer, connect_client  # noqa: E402


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        username="TestBot",
        password="secret",
        reconnect_delay=0,
        idle_timeout=5,
        connect_timeout=1,
    )


@pytest.fixture
def fake_server(monkeypatch) -> FakeServer:
    server = FakeServer()
    monkeypatch.setattr(asyncio, "open_connection", server.open_connection)
    return server


@pytest_asyncio.fixture
async def client(config, fake_server):
    c = BanchoClient(config)
    yield c
    await c.close()


@pytest_asyncio.fixture
async def connected_client(client, fake_server):
    await connect_client(client, fake_server)
    return client
