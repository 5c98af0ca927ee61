"""Configuration validation utilities for nettime."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

from nettime.constants import SUPPORTED_METHODS, SUPPORTED_SCHEMES

KNOWN_FIELDS = frozenset({"endpoint", "timeout", "ignorable_network_delay", "method"})


class ConfigValidationError(ValueError):
    """Raised when configuration validation fails."""


def validate_endpoint(config: dict[str, Any], *, required: bool = False) -> None:
    """Validate the endpoint is an absolute http(s) URL."""
    if "endpoint" not in config:
        if required:
            raise ConfigValidationError("Missing required field: endpoint")
        return

    endpoint = config["endpoint"]
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise ConfigValidationError("endpoint must be a non-empty string")

    parts = urlsplit(endpoint.strip())
    if parts.scheme.lower() not in SUPPORTED_SCHEMES or not parts.netloc:
        raise ConfigValidationError(
            f"endpoint '{endpoint}' must be an absolute http:// or https:// URL"
        )


def validate_number(
    config: dict[str, Any],
    field: str,
    *,
    required: bool = False,
    allow_zero: bool = True,
) -> None:
    """Validate that a field is a non-negative (or positive) number."""
    if field not in config:
        if required:
            raise ConfigValidationError(f"Missing required field: {field}")
        return

    value = config[field]
    if isinstance(value, bool):
        raise ConfigValidationError(f"{field} must be a number, got: bool")
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(
            f"{field} must be a valid number, got: {value}"
        ) from exc

    if allow_zero and numeric < 0:
        raise ConfigValidationError(f"{field} must be non-negative, got: {numeric}")
    if not allow_zero and numeric <= 0:
        raise ConfigValidationError(f"{field} must be positive, got: {numeric}")


def validate_method(config: dict[str, Any]) -> None:
    if "method" not in config:
        return
    method = config["method"]
    if not isinstance(method, str) or method.upper() not in SUPPORTED_METHODS:
        raise ConfigValidationError(
            f"method must be one of {', '.join(SUPPORTED_METHODS)}, got: {method}"
        )


def validate_sync_config(config: dict[str, Any]) -> None:
    """
    Validate a sync configuration mapping.

    Raises:
        ConfigValidationError: If any field is missing, unknown or invalid
    """
    unknown = sorted(set(config) - KNOWN_FIELDS)
    if unknown:
        raise ConfigValidationError(f"Unknown config fields: {', '.join(unknown)}")

    validate_endpoint(config)
    validate_number(config, "timeout", allow_zero=False)
    validate_number(config, "ignorable_network_delay")
    validate_method(config)
