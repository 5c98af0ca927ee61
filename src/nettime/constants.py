"""Shared defaults for server-time synchronization."""

DEFAULT_ENDPOINT = "https://www.apple.com"
DEFAULT_TIMEOUT = 10.0
DEFAULT_IGNORABLE_NETWORK_DELAY = 2.0
DEFAULT_METHOD = "HEAD"
SUPPORTED_METHODS = ("HEAD", "GET")
SUPPORTED_SCHEMES = ("http", "https")

DATE_HEADER = "Date"
# Bypass intermediary caches so the Date header reflects the origin clock.
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0",
    "Pragma": "no-cache",
}
