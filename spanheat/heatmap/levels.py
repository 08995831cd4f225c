"""
Intensity levels and color palettes.

A cell's level (0-4) comes from its seconds relative to the busiest day in
the rendered range, split by three descending percentage thresholds.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from spanheat.errors import InputValidationError

Color = Tuple[int, int, int]

# Anything under a minute is noise
MIN_ACTIVE_SECONDS = 60


def color_level(seconds: int, max_seconds: int, thresholds: Sequence[int]) -> int:
    """
    Map a day's seconds to a level in 0..4.

    Args:
        seconds: activity on the day
        max_seconds: largest day in the rendered range
        thresholds: three descending percentages, e.g. (70, 30, 10)
    """
    if seconds < MIN_ACTIVE_SECONDS or max_seconds == 0:
        return 0
    ratio = seconds / max_seconds
    if ratio >= thresholds[0] / 100:
        return 4
    if ratio >= thresholds[1] / 100:
        return 3
    if ratio >= thresholds[2] / 100:
        return 2
    return 1


def parse_ranges(text: str) -> Tuple[int, int, int]:
    """
    Parse the ranges query parameter, e.g. "70,30,10".

    Raises:
        InputValidationError: unless text is three comma-separated integers,
            strictly descending, each in (0, 100]
    """
    try:
        ranges = [int(part.strip()) for part in text.split(",")]
    except ValueError:
        ranges = []

    if len(ranges) != 3:
        raise InputValidationError(
            "Invalid ranges parameter, must be three comma-separated integers",
            "invalid_ranges",
        )
    if not (ranges[0] > ranges[1] > ranges[2] > 0):
        raise InputValidationError(
            "Invalid ranges parameter, must be three descending positive integers",
            "invalid_ranges",
        )
    if any(r > 100 for r in ranges):
        raise InputValidationError(
            "Invalid ranges parameter, values must be within 0 and 100",
            "invalid_ranges",
        )
    return ranges[0], ranges[1], ranges[2]


def to_hex(color: Color) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


@dataclass(frozen=True)
class Palette:
    """Five level colors (0 = no activity) plus a label color."""
    name: str
    colors: Tuple[Color, Color, Color, Color, Color]
    text_color: Color

    def color_for(self, level: int) -> Color:
        return self.colors[level]


PALETTES: Dict[str, Palette] = {
    # GitHub dark
    "dark": Palette(
        name="dark",
        colors=((22, 27, 34), (0, 92, 46), (0, 130, 60), (57, 166, 84), (112, 201, 133)),
        text_color=(201, 209, 217),
    ),
    # GitHub light
    "light": Palette(
        name="light",
        colors=((235, 237, 240), (155, 233, 168), (64, 196, 99), (48, 161, 78), (33, 110, 57)),
        text_color=(87, 96, 106),
    ),
    # Catppuccin Latte
    "catppuccin_light": Palette(
        name="catppuccin_light",
        colors=((204, 208, 218), (64, 160, 43), (223, 142, 29), (254, 100, 11), (210, 15, 57)),
        text_color=(76, 79, 105),
    ),
    # Catppuccin Mocha
    "catppuccin_dark": Palette(
        name="catppuccin_dark",
        colors=((49, 50, 68), (166, 227, 161), (249, 226, 175), (250, 179, 135), (243, 139, 168)),
        text_color=(205, 214, 244),
    ),
}

DEFAULT_PALETTE = "dark"


def get_palette(name: str) -> Palette:
    """Palette by name; unknown names fall back to the dark palette."""
    return PALETTES.get(name, PALETTES[DEFAULT_PALETTE])
