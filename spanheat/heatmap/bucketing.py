"""
Span-to-day bucketing.

Converts upstream spans into seconds of activity per local calendar date.
Days are cut at local wall-clock midnight in the requested timezone, not at
UTC midnight, so DST days are 23 or 25 hours long.

A span's reported duration is what gets distributed. For a span crossing
midnight, each day except the last receives the wall-clock seconds it
covers (capped by what is left of the duration), and the last day receives
whatever remains, so rounding slack always lands on the last day.

Rounding uses Python's built-in round (half to even). Negative
contributions, which only arise from spans whose duration is shorter than
their interval or whose end precedes their start, are clamped to zero.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from spanheat.errors import DateResolutionError, InputValidationError
from spanheat.models.entities import Span
from spanheat.utils.timestamps import local_timestamp, to_local

logger = logging.getLogger("spanheat.bucketing")

DayBuckets = Dict[date, int]


def date_range(start: date, end: date) -> List[date]:
    """Every date in the closed range [start, end]."""
    days = (end - start).days
    return [start + timedelta(days=i) for i in range(days + 1)]


def resolve_date_range(
    tz: ZoneInfo,
    year: Optional[str],
    now: Optional[datetime] = None,
) -> Tuple[date, date]:
    """
    Resolve the rendered date range in tz.

    No year means the trailing 365 days ending today. "current" (any case)
    means the current local year; otherwise year must be an integer.

    Raises:
        InputValidationError: if year is not "current" or a valid year
    """
    if now is None:
        now = datetime.now(tz)
    now_local = now.astimezone(tz)
    today = now_local.date()

    if year is None:
        return (now_local - timedelta(days=365)).date(), today

    if year.strip().lower() == "current":
        selected = today.year
    else:
        # Plain ASCII digits only: no sign, whitespace or underscores.
        if not (year.isascii() and year.isdigit()):
            raise InputValidationError("Invalid year parameter", "invalid_year")
        selected = int(year)
        if not 1 <= selected <= 9999:
            raise InputValidationError("Invalid year parameter", "invalid_year")

    return date(selected, 1, 1), date(selected, 12, 31)


def range_bounds(tz: ZoneInfo, start: date, end: date) -> Tuple[int, int]:
    """Epoch seconds of local midnight on start and 23:59:59 on end."""
    try:
        start_ts = local_timestamp(tz, start, 0, 0, 0)
    except DateResolutionError as e:
        raise DateResolutionError(f"Invalid start date {start.isoformat()}: {e.message}",
                                  "invalid_start_date")
    try:
        end_ts = local_timestamp(tz, end, 23, 59, 59)
    except DateResolutionError as e:
        raise DateResolutionError(f"Invalid end date {end.isoformat()}: {e.message}",
                                  "invalid_end_date")
    return start_ts, end_ts


def span_qualifies(span: Span, start_ts: float, end_ts: float) -> bool:
    """True when the span overlaps [start_ts, end_ts]."""
    return span.end_time >= start_ts and span.start_time <= end_ts


def _add(buckets: DayBuckets, day: date, amount: float) -> None:
    buckets[day] = buckets.get(day, 0) + max(0, round(amount))


def add_span_to_buckets(span: Span, tz: ZoneInfo, buckets: DayBuckets) -> bool:
    """
    Distribute one span's duration over the local dates it touches.

    Returns False (and leaves buckets untouched) when the span's timestamps
    or duration cannot be converted.
    """
    if not math.isfinite(span.duration):
        logger.warning("Invalid span duration: %s", span.duration)
        return False
    try:
        start_local = to_local(span.start_time, tz)
    except (ValueError, OverflowError, OSError):
        logger.warning("Invalid start timestamp: %s", span.start_time)
        return False
    try:
        end_local = to_local(span.end_time, tz)
    except (ValueError, OverflowError, OSError):
        logger.warning("Invalid end timestamp: %s", span.end_time)
        return False

    start_date = start_local.date()
    end_date = end_local.date()

    if start_date == end_date:
        _add(buckets, start_date, span.duration)
    else:
        _split_across_days(span, start_local, end_date, tz, buckets)
    return True


def _split_across_days(
    span: Span,
    start_local: datetime,
    end_date: date,
    tz: ZoneInfo,
    buckets: DayBuckets,
) -> None:
    current = start_local
    current_ts = int(current.timestamp())
    remaining = span.duration

    while current.date() < end_date:
        try:
            day_end_ts = local_timestamp(tz, current.date(), 23, 59, 59)
        except DateResolutionError as e:
            logger.warning("Invalid next midnight date: %s", e.message)
            break

        # Inclusive of the current second
        seconds = day_end_ts - current_ts + 1
        if seconds <= 0:
            logger.warning("Non-advancing day boundary on %s", current.date())
            break
        _add(buckets, current.date(), min(seconds, remaining))
        remaining -= seconds
        current_ts = day_end_ts + 1
        current = datetime.fromtimestamp(current_ts, tz)

    _add(buckets, end_date, remaining)


def bucket_spans(
    spans: Iterable[Span],
    tz: ZoneInfo,
    start: date,
    end: date,
) -> DayBuckets:
    """
    Bucket every span overlapping [start, end] into local-date totals.

    Only dates inside the range are returned; dates without activity may be
    absent and count as zero. Spans that cannot be converted are skipped.

    Raises:
        DateResolutionError: if a range boundary does not exist in tz
    """
    start_ts, end_ts = range_bounds(tz, start, end)

    buckets: DayBuckets = {}
    skipped = 0
    for span in spans:
        if not span_qualifies(span, start_ts, end_ts):
            continue
        if not add_span_to_buckets(span, tz, buckets):
            skipped += 1

    if skipped:
        logger.info("Skipped %d unconvertible spans", skipped)

    return {day: seconds for day, seconds in buckets.items() if start <= day <= end}
