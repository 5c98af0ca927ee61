"""Tests for HTTP Date header parsing."""

from __future__ import annotations

import locale
from datetime import datetime, timedelta, timezone

import pytest

from nettime.http_date import format_http_date, parse_http_date, to_utc


def test_parse_rfc1123_date_fields() -> None:
    parsed = parse_http_date("Sun, 12 Jan 2025 17:44:00 GMT")

    assert parsed is not None
    utc = parsed.astimezone(timezone.utc)
    assert (utc.year, utc.month, utc.day) == (2025, 1, 12)
    assert (utc.hour, utc.minute, utc.second) == (17, 44, 0)
    assert parsed.utcoffset() == timedelta(0)


@pytest.mark.parametrize(
    "value",
    [
        "Invalid Date String",
        "",
        "   ",
        "Sun, 12 Jan 2025 17:44:00",
        "Sun, 12 Jan 2025 17:44:00 PST",
        "Sun, 12 Foo 2025 17:44:00 GMT",
        "Xyz, 12 Jan 2025 17:44:00 GMT",
        "Sun, 31 Feb 2025 17:44:00 GMT",
        "Sun, 12 Jan 2025 25:44:00 GMT",
        "2025-01-12T17:44:00Z",
        "Sunday, 12-Jan-25 17:44:00 GMT",
    ],
)
def test_parse_rejects_malformed_values(value: str) -> None:
    assert parse_http_date(value) is None


def test_parse_rejects_non_string() -> None:
    assert parse_http_date(None) is None
    assert parse_http_date(1736703840) is None  # type: ignore[arg-type]


def test_parse_accepts_utc_aliases_and_single_digit_day() -> None:
    expected = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert parse_http_date("Thu, 2 Jan 2025 03:04:05 GMT") == expected
    assert parse_http_date("Thu, 02 Jan 2025 03:04:05 UTC") == expected
    assert parse_http_date("  Thu, 02 Jan 2025 03:04:05 UT  ") == expected


def test_parse_is_independent_of_host_locale() -> None:
    original = locale.setlocale(locale.LC_TIME)
    try:
        for candidate in ("de_DE.UTF-8", "fr_FR.UTF-8", "C"):
            try:
                locale.setlocale(locale.LC_TIME, candidate)
            except locale.Error:
                continue
            parsed = parse_http_date("Sun, 12 Jan 2025 17:44:00 GMT")
            assert parsed == datetime(2025, 1, 12, 17, 44, tzinfo=timezone.utc)
    finally:
        locale.setlocale(locale.LC_TIME, original)


def test_format_http_date() -> None:
    dt = datetime(2025, 1, 12, 17, 44, 0, tzinfo=timezone.utc)
    assert format_http_date(dt) == "Sun, 12 Jan 2025 17:44:00 GMT"

    eastern = dt.astimezone(timezone(timedelta(hours=-5)))
    assert format_http_date(eastern) == "Sun, 12 Jan 2025 17:44:00 GMT"
    assert parse_http_date(format_http_date(eastern)) == dt


def test_to_utc_treats_naive_as_utc() -> None:
    naive = datetime(2025, 1, 12, 17, 44)
    assert to_utc(naive) == datetime(2025, 1, 12, 17, 44, tzinfo=timezone.utc)
