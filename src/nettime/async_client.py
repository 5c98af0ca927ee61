"""Async HTTP client that reads server time from the ``Date`` header."""

from __future__ import annotations

import asyncio
import logging
import ssl
from datetime import datetime
from typing import Any

import aiohttp

from nettime.constants import (
    DEFAULT_ENDPOINT,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT,
    NO_CACHE_HEADERS,
    SUPPORTED_METHODS,
)
from nettime.errors import InvalidResponseError, NetworkError, SyncError
from nettime.models import SyncResult
from nettime.offset_store import OffsetStore
from nettime.sync_client import (
    extract_server_time,
    validate_endpoint,
    validate_timeout,
)

LOGGER = logging.getLogger(__name__)


class AsyncSyncClient:
    """Async variant of :class:`nettime.sync_client.SyncClient` on aiohttp."""

    def __init__(
        self,
        store: OffsetStore | None = None,
        *,
        method: str = DEFAULT_METHOD,
        session: aiohttp.ClientSession | None = None,
        verify_ssl: bool = True,  # Enable SSL certificate verification
        ssl_context: ssl.SSLContext | None = None,  # Custom SSL context
    ) -> None:
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method: {method}")
        self.store = store if store is not None else OffsetStore()
        self.method = method
        self._ssl_context = ssl_context
        if ssl_context is None and verify_ssl:
            self._ssl_context = ssl.create_default_context()
        elif ssl_context is None and not verify_ssl:
            self._ssl_context = ssl._create_unverified_context()
            LOGGER.warning(
                "SSL certificate verification is DISABLED. "
                "A tampered Date header can skew the synchronized clock."
            )
        self._session = session
        self._owns_session = session is None

    async def fetch_server_time(
        self, endpoint: Any = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT
    ) -> datetime:
        """Perform one request and return the parsed server time."""
        timeout = validate_timeout(timeout)
        url = validate_endpoint(endpoint)
        session = await self._ensure_session()
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        try:
            async with session.request(
                self.method,
                url,
                headers=dict(NO_CACHE_HEADERS),
                timeout=client_timeout,
            ) as response:
                headers = response.headers
        except aiohttp.ClientResponseError as exc:
            raise InvalidResponseError(
                f"Response was not an HTTP response: {exc!r}"
            ) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(exc) from exc
        return extract_server_time(headers)

    async def update_time(
        self, endpoint: Any = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT
    ) -> SyncResult:
        """Run one sync; failures are returned in the result, not raised."""
        LOGGER.debug("Requesting server time from %s", endpoint)
        try:
            reference_time = await self.fetch_server_time(endpoint, timeout)
        except SyncError as exc:
            LOGGER.warning("Server time sync with %s failed: %s", endpoint, exc)
            return SyncResult.failure(endpoint, exc)
        offset = self.store.commit(reference_time)
        LOGGER.info(
            "Synchronized with %s: server time %s, offset %.3fs",
            endpoint,
            reference_time.isoformat(),
            offset,
        )
        return SyncResult.success(endpoint, reference_time, offset)

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
            self._owns_session = False

    async def __aenter__(self) -> "AsyncSyncClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session
