"""
Timezone conversion helpers.

Every wall-clock time shown to a user is tenant-local; every persisted instant is UTC.
Zone rules (including daylight-saving transitions) come from the IANA database through
zoneinfo, so no offset arithmetic happens here.

DST caveats:
- An ambiguous local time (the repeated hour when clocks go back) resolves to its first
  occurrence (fold=0). ``is_ambiguous_local_time`` detects these.
- A nonexistent local time (the skipped hour when clocks go forward) has no UTC instant;
  converting it and back yields a different wall-clock time. ``is_nonexistent_local_time``
  detects these.
Both cases are non-invertible; round trips only hold outside them.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def get_zone(tz: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising ValueError for unknown names"""
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise ValueError(f"Unknown timezone: {tz}") from e


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the store, convert aware ones"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat_utc(value: datetime) -> str:
    """Serialize an instant as an ISO 8601 UTC string with a Z suffix"""
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def parse_instant(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO 8601 instant. Strings without an offset are taken as UTC.

    Raises:
        ValueError: If the string is not a valid ISO 8601 date-time
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value.strip()))


def to_utc(local_time: str, tz: str) -> str:
    """
    Interpret a naive ISO date-time string as wall-clock time in ``tz`` and return the
    UTC instant as an ISO string.

    Returns "" for malformed input or an unknown zone; callers check for the empty string.
    """
    try:
        zone = get_zone(tz)
        parsed = datetime.fromisoformat(local_time.strip())
    except (ValueError, AttributeError, TypeError):
        logger.debug(f"to_utc could not parse {local_time!r} in {tz!r}")
        return ""

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return isoformat_utc(parsed)


def to_tenant_time(utc_instant: Union[str, datetime], tz: str) -> datetime:
    """Convert a UTC instant (datetime or ISO string) to an aware datetime in ``tz``"""
    return parse_instant(utc_instant).astimezone(get_zone(tz))


def now_in_tenant_time(tz: str) -> datetime:
    """Current time in the tenant's zone"""
    return datetime.now(timezone.utc).astimezone(get_zone(tz))


def parse_time_on_date(time_string: str, on_date: date, tz: str) -> datetime:
    """
    Combine an "HH:MM" (or "HH:MM:SS") time of day with a calendar date in ``tz``.

    Used to materialize staff working hours into concrete instants for one day.
    "24:00" is accepted as the end of the day.
    """
    parts = [int(p) for p in time_string.strip().split(":")]
    hours, minutes = parts[0], parts[1] if len(parts) > 1 else 0
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise ValueError(f"Invalid time of day: {time_string}")

    zone = get_zone(tz)
    if hours == 24:
        return datetime.combine(on_date + timedelta(days=1), time(0, 0), tzinfo=zone)
    return datetime.combine(on_date, time(hours, minutes), tzinfo=zone)


def is_ambiguous_local_time(local: datetime, tz: str) -> bool:
    """True when a naive wall-clock time occurs twice in ``tz`` (clocks going back)"""
    zone = get_zone(tz)
    first = local.replace(tzinfo=zone, fold=0)
    second = local.replace(tzinfo=zone, fold=1)
    # Offsets also differ inside a gap, so rule that case out first
    return first.utcoffset() != second.utcoffset() and not is_nonexistent_local_time(local, tz)


def is_nonexistent_local_time(local: datetime, tz: str) -> bool:
    """True when a naive wall-clock time is skipped in ``tz`` (clocks going forward)"""
    zone = get_zone(tz)
    aware = local.replace(tzinfo=zone)
    round_trip = aware.astimezone(timezone.utc).astimezone(zone)
    return round_trip.replace(tzinfo=None) != local.replace(tzinfo=None)
