"""Service helpers for the Google Ads reporter."""

from __future__ import annotations

from datetime import datetime

from django.utils import timezone as dj_timezone
from django.utils.dateparse import parse_datetime


def format_offset_datetime(dt: datetime) -> str:
    """Return ``YYYY-MM-DD HH:MM:SS+HH:MM`` for an aware datetime."""

    base = dt.strftime("%Y-%m-%d %H:%M:%S")
    offset = dt.strftime("%z")
    if offset:
        offset = f"{offset[:3]}:{offset[3:]}"
    return f"{base}{offset}" if offset else base


def coerce_datetime(value: datetime | str | int | float) -> datetime:
    """Turn a conversion timestamp into an aware datetime.

    Strings are parsed as ISO 8601 / ``YYYY-MM-DD HH:MM:SS``, numbers as Unix
    timestamps. Naive values are placed in the default time zone; aware values
    keep their own offset.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=dj_timezone.get_default_timezone())
    else:
        dt = parse_datetime(str(value).strip())
        if dt is None:
            raise ValueError(f"Unparseable conversion timestamp: {value!r}")
    if dj_timezone.is_naive(dt):
        dt = dj_timezone.make_aware(dt, dj_timezone.get_default_timezone())
    return dt


def format_conversion_datetime(value: datetime | str | int | float) -> str:
    """Return the Google Ads formatted datetime (YYYY-MM-DD HH:MM:SS+HH:MM)."""

    return format_offset_datetime(coerce_datetime(value))


def to_float(value) -> float:
    """Lenient numeric coercion; anything unparseable counts as zero."""

    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
