"""Models package - span and grid entities."""

from .entities import Span, DayActivity, HeatmapGrid

__all__ = [
    "Span",
    "DayActivity",
    "HeatmapGrid",
]
