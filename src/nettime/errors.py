"""Error taxonomy for server-time synchronization."""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for sync failures."""

    kind = "sync_error"


class InvalidEndpointError(SyncError):
    """Raised before any request when the endpoint is missing or malformed."""

    kind = "invalid_endpoint"

    def __init__(self, endpoint: object) -> None:
        super().__init__(f"Invalid URL: {endpoint!r}")
        self.endpoint = endpoint


class NetworkError(SyncError):
    """Raised for transport failures (timeout, DNS, connect, TLS)."""

    kind = "network_error"

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.cause = cause


class InvalidResponseError(SyncError):
    """Raised when the server reply is not a well-formed HTTP response."""

    kind = "invalid_response"

    def __init__(self, message: str = "Response was not an HTTP response") -> None:
        super().__init__(message)


class MissingDateHeaderError(SyncError):
    """Raised when the response headers lack a Date field."""

    kind = "missing_date_header"

    def __init__(self) -> None:
        super().__init__("Failed to get 'Date' from response headers")


class DateParsingFailedError(SyncError):
    """Raised when the Date header does not match the RFC 1123 format."""

    kind = "date_parsing_failed"

    def __init__(self, value: str | None = None) -> None:
        super().__init__("Failed to parse date from 'Date' header")
        self.value = value
