# Overview: Canonical time handling shared by models, services and CSV/snapshot codecs.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

"""
Time semantics:
- All stored datetimes are UTC-naive (tzinfo=None).
- JSON output uses ISO-8601 with millisecond precision and a trailing 'Z'
  (the same shape the snapshot blobs carry, e.g. 2025-03-01T09:30:00.000Z).
- CSV output uses a plain "YYYY-MM-DD HH:MM:SS" UTC stamp.
"""


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into a UTC-naive datetime.

    None or blank input returns None. Naive input is taken as UTC; 'Z' and
    explicit offsets are converted. Raises ValueError on malformed input.
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"invalid ISO-8601 datetime: {value!r}")

    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_csv_stamp(dt: Optional[datetime]) -> str:
    if dt is None:
        return ""
    return dt.strftime("%Y-%m-%d %H:%M:%S")
