"""
Timestamp utilities for spanheat.

Handles timezone lookup, conversion between epoch seconds and local
wall-clock time, and the human-readable labels shown in cell tooltips.
Upstream timestamps are float epoch seconds in UTC.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from spanheat.errors import DateResolutionError, InputValidationError


def resolve_timezone(name: str) -> ZoneInfo:
    """
    Look up an IANA timezone by name.

    Raises:
        InputValidationError: if the name is not a known timezone
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise InputValidationError("Unsupported timezone", "invalid_timezone")


def to_local(ts: float, tz: ZoneInfo) -> datetime:
    """
    Convert epoch seconds to an aware datetime in tz.

    Fractional seconds are truncated toward zero.

    Raises:
        ValueError, OverflowError, OSError: if ts is not a representable instant
    """
    return datetime.fromtimestamp(int(ts), tz)


def local_timestamp(tz: ZoneInfo, day: date, hour: int, minute: int, second: int) -> int:
    """
    Epoch seconds of a local wall-clock time on day in tz.

    A wall-clock time inside a DST gap or overlap has two candidate offsets
    and is rejected rather than guessed.

    Raises:
        DateResolutionError: if the local time does not map to a single instant
    """
    naive = datetime(day.year, day.month, day.day, hour, minute, second)
    earlier = naive.replace(tzinfo=tz, fold=0)
    later = naive.replace(tzinfo=tz, fold=1)
    if earlier.utcoffset() != later.utcoffset():
        raise DateResolutionError(f"Invalid date/time: {naive.isoformat()} in {tz.key}")
    return int(earlier.timestamp())


def human_time(seconds: int) -> str:
    """
    Format a duration the way cell tooltips show it.

    Examples: "2h", "2h 5m", "45m", "3m 20s", "<1m"
    """
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if hours > 0:
        if minutes == 0:
            return f"{hours}h"
        return f"{hours}h {minutes}m"
    if minutes > 0:
        if secs == 0:
            return f"{minutes}m"
        return f"{minutes}m {secs}s"
    return "<1m"


def day_suffix(day: int) -> str:
    """Ordinal suffix for a day of month (1st, 2nd, 3rd, 11th, ...)."""
    if day % 10 == 1 and day != 11:
        return "st"
    if day % 10 == 2 and day != 12:
        return "nd"
    if day % 10 == 3 and day != 13:
        return "rd"
    return "th"


def format_cell_label(day: date, seconds: int) -> str:
    """Tooltip text for a cell, e.g. "1h 30m on March 3rd"."""
    date_str = f"{day.strftime('%B')} {day.day}{day_suffix(day.day)}"
    if seconds > 0:
        return f"{human_time(seconds)} on {date_str}"
    return f"No activity on {date_str}"
