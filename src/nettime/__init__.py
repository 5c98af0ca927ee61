"""Clock synchronization against the HTTP ``Date`` header of a remote server."""

from nettime.errors import (
    DateParsingFailedError,
    InvalidEndpointError,
    InvalidResponseError,
    MissingDateHeaderError,
    NetworkError,
    SyncError,
)
from nettime.models import SyncResult, SyncSettings
from nettime.offset_store import OffsetStore
from nettime.time_sync import (
    ClockSynchronizer,
    get_default_synchronizer,
    server_time,
    set_default_synchronizer,
    update_time,
)

__all__ = [
    "ClockSynchronizer",
    "DateParsingFailedError",
    "InvalidEndpointError",
    "InvalidResponseError",
    "MissingDateHeaderError",
    "NetworkError",
    "OffsetStore",
    "SyncError",
    "SyncResult",
    "SyncSettings",
    "get_default_synchronizer",
    "server_time",
    "set_default_synchronizer",
    "update_time",
]
