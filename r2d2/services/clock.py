"""Time zone lookups and stardates."""

from __future__ import annotations

import functools
from datetime import UTC, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

TIME_HELP = (
    "'time <zone>' returns the current time in a time zone from the tz database, "
    "for example 'time America/New_York' or 'time UTC'. Without a zone, the bot's local time."
)

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


@functools.lru_cache(maxsize=1)
def _zones_by_lower_name() -> dict[str, str]:
    return {name.lower(): name for name in available_timezones()}


def resolve_zone(name: str) -> ZoneInfo | None:
    """Find a zone by exact name first, then case-insensitively."""
    candidates = [name, _zones_by_lower_name().get(name.lower())]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError):
            continue
    return None


def time_in(zone: str, now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    if not zone:
        return f"the local time is {now.astimezone().strftime(_TIME_FORMAT)}"
    tz = resolve_zone(zone)
    if tz is None:
        return f"unknown time zone '{zone}', try something like Europe/Paris"
    return f"the time in {tz.key} is {now.astimezone(tz).strftime(_TIME_FORMAT)}"


def stardate(now: datetime | None = None) -> str:
    """TNG style stardate: 1000 units per year, year 2323 is stardate 0."""
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    now = now.astimezone(UTC)
    start = datetime(now.year, 1, 1, tzinfo=UTC)
    end = datetime(now.year + 1, 1, 1, tzinfo=UTC)
    elapsed = (now - start) / (end - start)
    value = 1000 * (now.year - 2323) + 1000 * elapsed
    return f"Stardate {value:.2f}"
