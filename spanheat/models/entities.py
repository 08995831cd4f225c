"""
Data structures (entities) for spanheat.

Uses dataclasses for clean, typed data structures.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List


@dataclass(frozen=True)
class Span:
    """One interval of recorded activity, as reported by the spans API.

    start_time and end_time are epoch seconds (UTC). duration is reported
    independently and is the quantity distributed across days; the interval
    only decides which days are touched.
    """
    start_time: float
    end_time: float
    duration: float


@dataclass
class DayActivity:
    """Activity for one rendered calendar cell."""
    day: date
    seconds: int = 0
    level: int = 0


@dataclass
class HeatmapGrid:
    """Bucketed activity for a closed date range, ready for rendering."""
    dates: List[date]
    buckets: Dict[date, int] = field(default_factory=dict)

    @property
    def max_seconds(self) -> int:
        """Largest bucket value among the rendered dates."""
        return max((self.buckets.get(d, 0) for d in self.dates), default=0)

    def seconds_on(self, day: date) -> int:
        """Bucket value for a date; absent dates count as zero."""
        return self.buckets.get(day, 0)
