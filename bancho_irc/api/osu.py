"""Thin asynchronous client for the osu! API (v1), used for id lookups."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import aiohttp

from ..constants import HTTP_REQUEST_TIMEOUT_SECONDS, OSU_API_BASE_URL
from ..errors.handling import handle_api_error
from ..errors.internal import MetadataLookupError
from ..logging_config import ErrorStats


class UserLookup(Protocol):
    """Anything that can resolve a numeric user id to user metadata."""

    async def lookup_user_by_id(self, user_id: int) -> dict[str, Any]: ...


class OsuAPI:
    """Asynchronous client for osu! API v1 endpoints.

    The session is created lazily on first request unless one is passed in;
    ``close()`` only closes sessions this object created. Failed requests
    are counted in ``error_stats`` when given.

    Attributes:
        BASE_URL (str): Base URL of the legacy API.
    """

    BASE_URL = OSU_API_BASE_URL

    def __init__(
        self,
        api_key: str,
        session: aiohttp.ClientSession | None = None,
        error_stats: ErrorStats | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("osu! API key required")
        self._api_key = api_key
        self._session = session
        self._owns_session = session is None
        self.error_stats = error_stats

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=HTTP_REQUEST_TIMEOUT_SECONDS)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def request(self, endpoint: str, params: dict[str, Any]) -> Any:
        """GET ``endpoint`` with the API key added and return the decoded JSON.

        Raises:
            MetadataLookupError: On a non-200 answer or once retries of
                network errors are exhausted.
        """
        session = await self._get_session()
        url = f"{self.BASE_URL}/{endpoint}"
        query = {"k": self._api_key, **params}

        async def operation() -> Any:
            async with session.get(url, params=query) as resp:
                logging.debug(f"osu! API response: status={resp.status}, endpoint={endpoint}")
                if resp.status >= 500:
                    resp.raise_for_status()
                if resp.status != 200:
                    raise MetadataLookupError(
                        f"osu! API {endpoint} returned HTTP {resp.status}",
                        data={"http_status": resp.status},
                    )
                return await resp.json(content_type=None)

        return await handle_api_error(
            operation, f"osu! API {endpoint}", stats=self.error_stats
        )

    async def lookup_user_by_id(self, user_id: int) -> dict[str, Any]:
        """Return the ``get_user`` payload for ``user_id``.

        Raises:
            MetadataLookupError: If the user does not exist or the request failed.
        """
        data = await self.request("get_user", {"u": str(user_id), "type": "id"})
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or not data.get("username"):
            raise MetadataLookupError(f"User with id {user_id} not found")
        return data

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
