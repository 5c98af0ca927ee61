"""HTTP ``Date`` header parsing utilities.

Servers send the date in the fixed RFC 1123 form::

    Sun, 12 Jan 2025 17:44:00 GMT

``time.strptime`` resolves ``%a``/``%b`` through the host locale, so day and
month names are matched against fixed English tables instead. The result does
not depend on the locale or time zone of the machine doing the parsing.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)
UTC_ZONE_NAMES = ("GMT", "UTC", "UT")

_HTTP_DATE_PATTERN = re.compile(
    r"^(?P<weekday>[A-Za-z]{3}), +"
    r"(?P<day>\d{1,2}) +(?P<month>[A-Za-z]{3}) +(?P<year>\d{4}) +"
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2}) +"
    r"(?P<zone>[A-Za-z]+)$"
)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an RFC 1123 ``Date`` header value.

    Args:
        value: Raw header value, e.g. ``"Sun, 12 Jan 2025 17:44:00 GMT"``

    Returns:
        Aware datetime in UTC, or None if the value is empty or malformed
    """
    if not isinstance(value, str):
        return None

    match = _HTTP_DATE_PATTERN.match(value.strip())
    if match is None:
        return None

    if match["weekday"] not in WEEKDAYS:
        return None
    if match["month"] not in MONTHS:
        return None
    if match["zone"] not in UTC_ZONE_NAMES:
        return None

    try:
        return datetime(
            int(match["year"]),
            MONTHS.index(match["month"]) + 1,
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"]),
            tzinfo=timezone.utc,
        )
    except ValueError:
        # Out-of-range fields such as "31 Feb" or "25:00:00".
        return None


def format_http_date(dt: datetime) -> str:
    """Format a datetime as an RFC 1123 ``Date`` header value.

    Args:
        dt: datetime object; naive values are treated as UTC

    Returns:
        Header value such as ``"Sun, 12 Jan 2025 17:44:00 GMT"``
    """
    dt = to_utc(dt)
    return "{weekday}, {day:02d} {month} {year:04d} {hh:02d}:{mm:02d}:{ss:02d} GMT".format(
        weekday=WEEKDAYS[dt.weekday()],
        day=dt.day,
        month=MONTHS[dt.month - 1],
        year=dt.year,
        hh=dt.hour,
        mm=dt.minute,
        ss=dt.second,
    )


def to_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime, treating naive values as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
