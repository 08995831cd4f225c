"""
SVG rendering for the activity heatmap.

Cells are laid out column by column: cell i sits in column i // 7, row
i % 7. With labels enabled the grid is shifted right for weekday labels and
down for month labels, and a Less/More legend is drawn underneath.
"""

from functools import lru_cache
from html import escape
from pathlib import Path
from typing import List, Sequence

from spanheat.heatmap.levels import Palette, color_level, get_palette, to_hex
from spanheat.models.entities import DayActivity, HeatmapGrid
from spanheat.utils.timestamps import format_cell_label

ROWS = 7
COLS = 53
MONTH_LABEL_HEIGHT = 15
WEEKDAY_LABEL_WIDTH = 28
LEGEND_HEIGHT = 20

MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_LABELS = [(1, "Mon"), (3, "Wed"), (5, "Fri")]
FONT_FAMILY = ("-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Noto Sans', "
               "Helvetica, Arial, sans-serif")

TEMPLATE_PATH = Path(__file__).parent / "template.html"
SVG_PLACEHOLDER = "{{SVG_CONTENT}}"


def _num(value: float) -> str:
    return f"{value:g}"


def _text(label: str, x: float, y: float, fill: str) -> str:
    return (
        f'<text x="{_num(x)}" y="{_num(y)}" fill="{fill}" font-size="10px" '
        f'font-family="{FONT_FAMILY}">{escape(label)}</text>'
    )


def build_cells(grid: HeatmapGrid, thresholds: Sequence[int]) -> List[DayActivity]:
    """Seconds and level for every rendered date, in grid order."""
    max_seconds = grid.max_seconds
    cells = []
    for day in grid.dates:
        seconds = grid.seconds_on(day)
        cells.append(DayActivity(
            day=day,
            seconds=seconds,
            level=color_level(seconds, max_seconds, thresholds),
        ))
    return cells


def _month_labels(cells: List[DayActivity], fill: str, cell_size: int,
                  padding: int, weekday_width: int) -> str:
    parts = []
    last_month = None
    for i, cell in enumerate(cells):
        col, row = divmod(i, ROWS)
        if row != 0 or cell.day.month == last_month:
            continue
        last_month = cell.day.month
        x = weekday_width + col * (cell_size + padding)
        parts.append(_text(MONTH_LABELS[cell.day.month - 1], x, 10, fill))
    return "<g>" + "".join(parts) + "</g>"


def _weekday_labels(fill: str, cell_size: int, padding: int, month_height: int) -> str:
    parts = []
    for row, label in WEEKDAY_LABELS:
        y = month_height + row * (cell_size + padding) + cell_size
        parts.append(_text(label, 0, y, fill))
    return "<g>" + "".join(parts) + "</g>"


def _legend(palette: Palette, fill: str, cell_size: int, padding: int,
            weekday_width: int, month_height: int) -> str:
    legend_y = month_height + ROWS * (cell_size + padding) + 8
    start_x = weekday_width + COLS * (cell_size + padding) - 120
    box_x = start_x + 28

    parts = [_text("Less", start_x, legend_y + 9, fill)]
    for i, color in enumerate(palette.colors):
        parts.append(
            f'<rect x="{box_x + i * (cell_size + 2)}" y="{legend_y}" '
            f'width="{cell_size}" height="{cell_size}" fill="{to_hex(color)}" '
            f'rx="2" ry="2"/>'
        )
    parts.append(_text("More", box_x + 5 * (cell_size + 2) + 2, legend_y + 9, fill))
    return "<g>" + "".join(parts) + "</g>"


def render_svg(
    grid: HeatmapGrid,
    thresholds: Sequence[int],
    cell_size: int = 10,
    padding: int = 3,
    rounding: int = 20,
    theme: str = "dark",
    labels: bool = False,
) -> str:
    """Render the grid as a standalone SVG document string."""
    palette = get_palette(theme)
    text_fill = to_hex(palette.text_color)

    weekday_width = WEEKDAY_LABEL_WIDTH if labels else 0
    month_height = MONTH_LABEL_HEIGHT if labels else 0
    legend_height = LEGEND_HEIGHT if labels else 0

    width = weekday_width + COLS * (cell_size + padding) + (3 if labels else 0)
    height = month_height + ROWS * (cell_size + padding) + legend_height
    radius = _num(min(rounding, 100) / 200 * cell_size)

    cells = build_cells(grid, thresholds)

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    ]
    if labels:
        parts.append(_month_labels(cells, text_fill, cell_size, padding, weekday_width))
        parts.append(_weekday_labels(text_fill, cell_size, padding, month_height))

    for i, cell in enumerate(cells):
        col, row = divmod(i, ROWS)
        x = weekday_width + col * (cell_size + padding)
        y = month_height + row * (cell_size + padding)
        parts.append(
            f'<rect x="{x}" y="{y}" width="{cell_size}" height="{cell_size}" '
            f'fill="{to_hex(palette.color_for(cell.level))}" rx="{radius}" ry="{radius}">'
            f'<title>{escape(format_cell_label(cell.day, cell.seconds))}</title></rect>'
        )

    if labels:
        parts.append(_legend(palette, text_fill, cell_size, padding,
                             weekday_width, month_height))

    parts.append("</svg>")
    return "".join(parts)


@lru_cache(maxsize=1)
def load_template() -> str:
    """The bundled HTML page, read once per process."""
    return TEMPLATE_PATH.read_text(encoding="utf-8")


def embed_page(svg: str, standalone: bool) -> str:
    """Wrap the SVG in the bundled HTML page when standalone is set."""
    if not standalone:
        return svg
    return load_template().replace(SVG_PLACEHOLDER, svg)
