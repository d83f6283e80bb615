from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from bancho_irc.api.osu import OsuAPI
from bancho_irc.errors.internal import MetadataLookupError


class FakeResponse:
    def __init__(self, status: int, payload) -> None:
        self.status = status
        self._payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def json(self, content_type=None):
        return self._payload

    def raise_for_status(self):
        raise aiohttp.ClientResponseError(MagicMock(), (), status=self.status)


def make_session(*responses) -> MagicMock:
    session = MagicMock()
    session.closed = False
    session.get = MagicMock(side_effect=list(responses))
    return session


def test_requires_api_key():
    with pytest.raises(ValueError):
        OsuAPI("")


@pytest.mark.asyncio
async def test_lookup_user_by_id_returns_first_entry():
    session = make_session(FakeResponse(200, [{"user_id": "2", "username": "peppy"}]))
    api = OsuAPI("key", session=session)

    data = await api.lookup_user_by_id(2)

    assert data["username"] == "peppy"
    url = session.get.call_args.args[0]
    params = session.get.call_args.kwargs["params"]
    assert url == "https://osu.ppy.sh/api/get_user"
    assert params == {"k": "key", "u": "2", "type": "id"}


@pytest.mark.asyncio
async def test_unknown_user_raises_lookup_error():
    api = OsuAPI("key", session=make_session(FakeResponse(200, [])))
    with pytest.raises(MetadataLookupError, match="not found"):
        await api.lookup_user_by_id(999999999)


@pytest.mark.asyncio
async def test_client_error_status_is_not_retried():
    session = make_session(FakeResponse(401, {"error": "Please provide a valid API key."}))
    api = OsuAPI("bad", session=session)
    with pytest.raises(MetadataLookupError, match="HTTP 401"):
        await api.lookup_user_by_id(2)
    assert session.get.call_count == 1


@pytest.mark.asyncio
async def test_close_leaves_injected_session_open():
    session = make_session()
    session.close = AsyncMock()
    api = OsuAPI("key", session=session)
    await api.close()
    session.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_closes_owned_session():
    api = OsuAPI("key")
    session = await api._get_session()
    await api.close()
    assert session.closed
