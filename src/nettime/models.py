"""Data models for server-time synchronization.

Pydantic-based models with validation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nettime.constants import (
    DEFAULT_ENDPOINT,
    DEFAULT_IGNORABLE_NETWORK_DELAY,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT,
    SUPPORTED_METHODS,
)
from nettime.errors import SyncError


class SyncSettings(BaseModel):
    """Settings for a clock synchronizer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    ignorable_network_delay: float = Field(
        default=DEFAULT_IGNORABLE_NETWORK_DELAY, ge=0
    )
    method: str = DEFAULT_METHOD

    @field_validator("endpoint", mode="before")
    @classmethod
    def validate_endpoint(cls, v: Any) -> str:
        """Strip whitespace; scheme/host checks happen at request time."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("endpoint must be a non-empty string")
        return v.strip()

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v: Any) -> str:
        method = str(v).upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(
                f"Unsupported method {v!r}; expected one of {', '.join(SUPPORTED_METHODS)}"
            )
        return method


class SyncResult(BaseModel):
    """Outcome of a single sync attempt."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    endpoint: Any = None
    error: SyncError | None = None
    reference_time: datetime | None = None
    offset: float | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> str:
        """``"success"`` or the error kind, e.g. ``"missing_date_header"``."""
        return "success" if self.error is None else self.error.kind

    @classmethod
    def success(
        cls, endpoint: str, reference_time: datetime, offset: float
    ) -> "SyncResult":
        return cls(endpoint=endpoint, reference_time=reference_time, offset=offset)

    @classmethod
    def failure(cls, endpoint: Any, error: SyncError) -> "SyncResult":
        return cls(endpoint=endpoint, error=error)

    def unwrap(self) -> datetime:
        """Return the reference time or raise the stored error."""
        if self.error is not None:
            raise self.error
        if self.reference_time is None:
            raise ValueError(
                "SyncResult carries neither a reference time nor an error"
            )
        return self.reference_time
