from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from nutribot.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(?:[01]?\d|2[0-3]):[0-5]\d$")
_DIGITS_RE = re.compile(r"\d+")


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every stored ``created_at`` uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_time_hhmm(text: str) -> Optional[Tuple[int, int]]:
    text = (text or "").strip()
    if not _TIME_RE.match(text):
        return None
    hh, mm = text.split(":")
    return int(hh), int(mm)


def parse_loose_time(text: str) -> Optional[Tuple[int, int]]:
    """Parse ``HH:MM`` or a looser form such as ``9``, ``9.30`` or ``saat 8 de``.

    The first run of digits is the hour, the second (if any) the minute.
    """
    strict = parse_time_hhmm(text)
    if strict:
        return strict
    runs = _DIGITS_RE.findall(text or "")
    if not runs:
        return None
    hour = int(runs[0])
    minute = int(runs[1]) if len(runs) > 1 else 0
    if hour >= 24 or minute >= 60:
        return None
    return hour, minute


def format_hhmm(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def normalize_hhmm(text: str) -> Optional[str]:
    parsed = parse_time_hhmm(text)
    return format_hhmm(*parsed) if parsed else None


def minutes_since_midnight(value: time) -> int:
    return value.hour * 60 + value.minute


def is_within_time_range(current: time, target: time, tolerance: timedelta) -> bool:
    """True when ``current`` is within ``tolerance`` of ``target``, wrapping at midnight."""
    diff = abs(minutes_since_midnight(current) - minutes_since_midnight(target))
    diff = min(diff, MINUTES_PER_DAY - diff)
    return diff <= tolerance.total_seconds() // 60


def is_silent_hours(hour: int, minute: int, start: str, end: str) -> bool:
    """Whether ``hour:minute`` falls inside the ``start``-``end`` window.

    The window may cross midnight (``23:00``-``07:00``). A malformed bound
    never blocks reminders.
    """
    start_t = parse_time_hhmm(start)
    end_t = parse_time_hhmm(end)
    if start_t is None or end_t is None:
        return False

    current = hour * 60 + minute
    start_m = start_t[0] * 60 + start_t[1]
    end_m = end_t[0] * 60 + end_t[1]

    if start_m < end_m:
        return start_m <= current < end_m
    return current >= start_m or current < end_m


def resolve_timezone(name: Optional[str]) -> Optional[str]:
    """Canonical IANA name for ``name`` (case-insensitive), or None if unknown."""
    if not name:
        return None
    zones = available_timezones()
    if name in zones:
        return name
    lowered = name.lower()
    for candidate in zones:
        if candidate.lower() == lowered:
            return candidate
    return None


def get_zone(name: Optional[str], user_id: Optional[str] = None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Invalid timezone %r for user=%s, falling back to %s",
            name, user_id, DEFAULT_TIMEZONE,
        )
        return ZoneInfo(DEFAULT_TIMEZONE)


def ensure_aware(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def to_naive_utc(now: Optional[datetime]) -> datetime:
    return ensure_aware(now).astimezone(timezone.utc).replace(tzinfo=None)


def local_now(tz_name: Optional[str], now: Optional[datetime] = None, user_id: Optional[str] = None) -> datetime:
    """The user's wall-clock time for the instant ``now`` (default: current instant)."""
    return ensure_aware(now).astimezone(get_zone(tz_name, user_id))


def utc_to_local(value: datetime, tz_name: Optional[str], user_id: Optional[str] = None) -> datetime:
    """Convert a stored naive-UTC timestamp to the user's wall clock."""
    return ensure_aware(value).astimezone(get_zone(tz_name, user_id))


def day_bounds_utc(day: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """Naive-UTC ``[start, end)`` of a local calendar day."""
    start_local = datetime.combine(day, time(0, 0), tzinfo=tz)
    end_local = datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=tz)
    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )
