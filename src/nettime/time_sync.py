"""Server-time synchronization helpers."""

from __future__ import annotations

import time
from concurrent.futures import Future
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable

from nettime.async_client import AsyncSyncClient
from nettime.constants import (
    DEFAULT_ENDPOINT,
    DEFAULT_IGNORABLE_NETWORK_DELAY,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT,
)
from nettime.models import SyncResult, SyncSettings
from nettime.offset_store import OffsetStore
from nettime.sync_client import (
    CallbackContext,
    OnComplete,
    SyncClient,
    default_on_complete,
    validate_timeout,
)


# Distinguishes an omitted endpoint from an explicit None.
_UNSET: Any = object()


class ClockSynchronizer:
    """Fetches server time once and serves an offset-corrected clock."""

    def __init__(
        self,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        ignorable_network_delay: float = DEFAULT_IGNORABLE_NETWORK_DELAY,
        method: str = DEFAULT_METHOD,
        time_provider: Callable[[], float] | None = None,
        store: OffsetStore | None = None,
        client: SyncClient | None = None,
        async_client: AsyncSyncClient | None = None,
    ) -> None:
        self._time_provider = time_provider or time.time
        if store is None:
            store = client.store if client is not None else OffsetStore(
                self._time_provider
            )
        self._store = store
        self._client = (
            client if client is not None else SyncClient(self._store, method=method)
        )
        self._async_client = async_client
        self._method = method
        self.endpoint = endpoint
        self.timeout = validate_timeout(timeout)
        self._config_lock = Lock()
        self._ignorable_network_delay = 0.0
        self.ignorable_network_delay = ignorable_network_delay

    @classmethod
    def from_settings(
        cls, settings: SyncSettings, **kwargs: Any
    ) -> "ClockSynchronizer":
        return cls(
            endpoint=settings.endpoint,
            timeout=settings.timeout,
            ignorable_network_delay=settings.ignorable_network_delay,
            method=settings.method,
            **kwargs,
        )

    @property
    def store(self) -> OffsetStore:
        return self._store

    @property
    def ignorable_network_delay(self) -> float:
        with self._config_lock:
            return self._ignorable_network_delay

    @ignorable_network_delay.setter
    def ignorable_network_delay(self, value: float) -> None:
        value = float(value)
        if value < 0:
            raise ValueError("ignorable_network_delay must be non-negative")
        with self._config_lock:
            self._ignorable_network_delay = value

    @property
    def offset(self) -> float:
        return self._store.offset

    @property
    def reference_time(self) -> datetime | None:
        return self._store.reference_time

    def time(self) -> float:
        return self._store.current_adjusted_time(self.ignorable_network_delay)

    def server_time(self) -> datetime:
        return datetime.fromtimestamp(self.time(), tz=timezone.utc)

    def set_offset(self, offset: float) -> None:
        self._store.set_offset(offset)

    def update_time(
        self,
        endpoint: Any = _UNSET,
        timeout: float | None = None,
        callback_context: CallbackContext | None = None,
        on_complete: OnComplete = default_on_complete,
    ) -> Future[SyncResult]:
        """Sync in the background; see :meth:`SyncClient.update_time`."""
        return self._client.update_time(
            self.endpoint if endpoint is _UNSET else endpoint,
            self.timeout if timeout is None else timeout,
            callback_context=callback_context,
            on_complete=on_complete,
        )

    def sync(self, endpoint: Any = _UNSET, timeout: float | None = None) -> SyncResult:
        """Sync on the calling thread."""
        return self._client.sync(
            self.endpoint if endpoint is _UNSET else endpoint,
            self.timeout if timeout is None else timeout,
        )

    async def async_update_time(
        self, endpoint: Any = _UNSET, timeout: float | None = None
    ) -> SyncResult:
        if self._async_client is None:
            self._async_client = AsyncSyncClient(self._store, method=self._method)
        return await self._async_client.update_time(
            self.endpoint if endpoint is _UNSET else endpoint,
            self.timeout if timeout is None else timeout,
        )

    def close(self) -> None:
        self._client.close()

    async def aclose(self) -> None:
        self.close()
        if self._async_client is not None:
            await self._async_client.close()


_default_lock = Lock()
_default_synchronizer: ClockSynchronizer | None = None


def get_default_synchronizer() -> ClockSynchronizer:
    """Return the process-wide synchronizer, creating it on first use."""
    global _default_synchronizer
    with _default_lock:
        if _default_synchronizer is None:
            _default_synchronizer = ClockSynchronizer()
        return _default_synchronizer


def set_default_synchronizer(synchronizer: ClockSynchronizer | None) -> None:
    """Replace the process-wide synchronizer (``None`` resets it)."""
    global _default_synchronizer
    with _default_lock:
        _default_synchronizer = synchronizer


def update_time(
    endpoint: Any = _UNSET,
    timeout: float | None = None,
    callback_context: CallbackContext | None = None,
    on_complete: OnComplete = default_on_complete,
) -> Future[SyncResult]:
    return get_default_synchronizer().update_time(
        endpoint, timeout, callback_context=callback_context, on_complete=on_complete
    )


def server_time() -> datetime:
    return get_default_synchronizer().server_time()
