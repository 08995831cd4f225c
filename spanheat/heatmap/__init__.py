"""Heatmap package - span bucketing, intensity levels, and SVG rendering."""

from .bucketing import bucket_spans, add_span_to_buckets, date_range, resolve_date_range
from .levels import color_level, parse_ranges, get_palette, PALETTES
from .render import render_svg, embed_page

__all__ = [
    "bucket_spans",
    "add_span_to_buckets",
    "date_range",
    "resolve_date_range",
    "color_level",
    "parse_ranges",
    "get_palette",
    "PALETTES",
    "render_svg",
    "embed_page",
]
