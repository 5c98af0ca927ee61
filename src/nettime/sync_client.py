"""Blocking HTTP client that reads server time from the ``Date`` header."""

from __future__ import annotations

import asyncio
import http.client
import logging
import math
import ssl
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from email.message import Message
from threading import Lock
from typing import Any, Callable, Union
from urllib.error import HTTPError, URLError
from urllib.parse import urlsplit
from urllib.request import Request, urlopen

from nettime.constants import (
    DATE_HEADER,
    DEFAULT_ENDPOINT,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT,
    NO_CACHE_HEADERS,
    SUPPORTED_METHODS,
    SUPPORTED_SCHEMES,
)
from nettime.errors import (
    DateParsingFailedError,
    InvalidEndpointError,
    InvalidResponseError,
    MissingDateHeaderError,
    NetworkError,
    SyncError,
)
from nettime.http_date import parse_http_date
from nettime.models import SyncResult
from nettime.offset_store import OffsetStore

LOGGER = logging.getLogger(__name__)

OnComplete = Callable[[SyncResult], None]
CallbackContext = Union[Executor, asyncio.AbstractEventLoop]


def default_on_complete(result: SyncResult) -> None:
    """Completion handler used when the caller does not supply one."""
    return None


def validate_endpoint(endpoint: Any) -> str:
    """Return the endpoint URL or raise :class:`InvalidEndpointError`."""
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise InvalidEndpointError(endpoint)
    url = endpoint.strip()
    # http.client refuses URLs with embedded whitespace or control characters.
    if any(ch.isspace() or not ch.isprintable() for ch in url):
        raise InvalidEndpointError(endpoint)
    try:
        parts = urlsplit(url)
        # Accessing .port validates it.
        parts.port
    except ValueError as exc:
        raise InvalidEndpointError(endpoint) from exc
    if parts.scheme.lower() not in SUPPORTED_SCHEMES or not parts.hostname:
        raise InvalidEndpointError(endpoint)
    try:
        # Empty or oversized labels ("a..b") fail here instead of in the resolver.
        parts.hostname.encode("idna")
    except UnicodeError as exc:
        raise InvalidEndpointError(endpoint) from exc
    return url


def validate_timeout(timeout: Any) -> float:
    """Return ``timeout`` as a float or raise ``ValueError``.

    Args:
        timeout: Request timeout in seconds; must be a finite number above zero

    Returns:
        The timeout as a float
    """
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ValueError(f"timeout must be a positive number, got {timeout!r}")
    if not math.isfinite(timeout) or timeout <= 0:
        raise ValueError(f"timeout must be a positive number, got {timeout!r}")
    return float(timeout)


def extract_server_time(headers: Message | Any) -> datetime:
    """Read and parse the ``Date`` header from a response header mapping."""
    if headers is None or not hasattr(headers, "get"):
        raise InvalidResponseError()
    raw_date = headers.get(DATE_HEADER)
    if raw_date is None or not str(raw_date).strip():
        raise MissingDateHeaderError()
    parsed = parse_http_date(str(raw_date))
    if parsed is None:
        raise DateParsingFailedError(str(raw_date))
    return parsed


class SyncClient:
    """Fetches server time over HTTP and commits it to an offset store."""

    def __init__(
        self,
        store: OffsetStore | None = None,
        *,
        method: str = DEFAULT_METHOD,
        executor: Executor | None = None,
        callback_context: CallbackContext | None = None,
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
        self._executor = executor
        self._owns_executor = executor is None
        self._callback_context = callback_context
        self._owns_callback_context = callback_context is None
        self._executor_lock = Lock()

    def fetch_server_time(
        self, endpoint: Any = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT
    ) -> datetime:
        """Perform one request and return the parsed server time.

        Blocks the calling thread. Raises a :class:`SyncError` subclass on
        failure; the offset store is not touched. A non-positive timeout
        raises ``ValueError`` before any request is made.
        """
        timeout = validate_timeout(timeout)
        url = validate_endpoint(endpoint)
        request = Request(url=url, method=self.method, headers=dict(NO_CACHE_HEADERS))
        try:
            with urlopen(
                request, timeout=timeout, context=self._ssl_context
            ) as response:
                headers = response.headers
        except HTTPError as exc:
            # Error statuses are still well-formed responses carrying a Date.
            headers = exc.headers
        except http.client.InvalidURL as exc:
            raise InvalidEndpointError(endpoint) from exc
        except http.client.RemoteDisconnected as exc:
            # Connection dropped before a status line: a transport failure.
            raise NetworkError(exc) from exc
        except http.client.HTTPException as exc:
            raise InvalidResponseError(
                f"Response was not an HTTP response: {exc!r}"
            ) from exc
        except URLError as exc:
            cause = exc.reason if isinstance(exc.reason, BaseException) else exc
            raise NetworkError(cause) from exc
        except OSError as exc:
            raise NetworkError(exc) from exc
        return extract_server_time(headers)

    def sync(
        self, endpoint: Any = DEFAULT_ENDPOINT, timeout: float = DEFAULT_TIMEOUT
    ) -> SyncResult:
        """Run one blocking sync and commit the result on success."""
        LOGGER.debug("Requesting server time from %s", endpoint)
        try:
            reference_time = self.fetch_server_time(endpoint, timeout)
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

    def update_time(
        self,
        endpoint: Any = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        callback_context: CallbackContext | None = None,
        on_complete: OnComplete = default_on_complete,
    ) -> Future[SyncResult]:
        """
        Start one asynchronous sync.

        The request runs on a worker thread. ``on_complete`` is invoked exactly
        once on ``callback_context`` (an executor or an asyncio event loop),
        never on the caller's stack. The returned future resolves with the same
        result after ``on_complete`` has returned.

        A bad ``callback_context`` raises ``TypeError`` and a non-positive
        ``timeout`` raises ``ValueError``, both before any work is scheduled.
        """
        timeout = validate_timeout(timeout)
        context = (
            callback_context
            if callback_context is not None
            else self._ensure_callback_context()
        )
        if not isinstance(context, (Executor, asyncio.AbstractEventLoop)):
            raise TypeError(
                "callback_context must be a concurrent.futures.Executor or an "
                f"asyncio event loop, got {type(context).__name__}"
            )
        future: Future[SyncResult] = Future()
        future.set_running_or_notify_cancel()
        try:
            validate_endpoint(endpoint)
        except InvalidEndpointError as exc:
            LOGGER.warning("Server time sync rejected: %s", exc)
            result = SyncResult.failure(endpoint, exc)
            self._deliver(context, on_complete, result, future)
            return future
        self._ensure_executor().submit(
            self._run, endpoint, timeout, context, on_complete, future
        )
        return future

    def close(self) -> None:
        """Shut down executors created by this client."""
        with self._executor_lock:
            if self._executor is not None and self._owns_executor:
                self._executor.shutdown(wait=True)
                self._executor = None
            if self._callback_context is not None and self._owns_callback_context:
                self._callback_context.shutdown(wait=True)
                self._callback_context = None

    def __enter__(self) -> "SyncClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _run(
        self,
        endpoint: Any,
        timeout: float,
        context: CallbackContext,
        on_complete: OnComplete,
        future: Future[SyncResult],
    ) -> None:
        try:
            result = self.sync(endpoint, timeout)
        except Exception as exc:
            LOGGER.exception("Unexpected error during server time sync: %s", exc)
            error = SyncError(f"Unexpected error during sync: {exc!r}")
            error.__cause__ = exc
            result = SyncResult.failure(endpoint, error)
        self._deliver(context, on_complete, result, future)

    def _deliver(
        self,
        context: CallbackContext,
        on_complete: OnComplete,
        result: SyncResult,
        future: Future[SyncResult],
    ) -> None:
        def complete() -> None:
            try:
                on_complete(result)
            except Exception:
                LOGGER.exception("Sync completion handler raised")
            finally:
                future.set_result(result)

        if isinstance(context, asyncio.AbstractEventLoop):
            context.call_soon_threadsafe(complete)
        else:
            context.submit(complete)

    def _ensure_executor(self) -> Executor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=4, thread_name_prefix="nettime-sync"
                )
                self._owns_executor = True
            return self._executor

    def _ensure_callback_context(self) -> CallbackContext:
        with self._executor_lock:
            if self._callback_context is None:
                self._callback_context = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix="nettime-callback"
                )
                self._owns_callback_context = True
            return self._callback_context
