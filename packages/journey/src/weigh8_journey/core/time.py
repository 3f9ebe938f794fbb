from __future__ import annotations

import time
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

SAST_TZ = ZoneInfo("Africa/Johannesburg")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat().replace("+00:00", "Z")


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse an API timestamp into an aware UTC datetime.

    Accepts datetimes, dates and ISO-8601 strings (trailing "Z", offsets and
    date-only values included). Empty values give None; anything else that
    cannot be read raises ValueError.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        return as_utc(datetime.fromisoformat(s))
    raise ValueError(f"unsupported timestamp value: {value!r}")


def format_local(dt: datetime | None, *, fmt: str = "%Y-%m-%d %H:%M") -> str:
    if dt is None:
        return "N/A"
    return dt.astimezone(SAST_TZ).strftime(fmt)
