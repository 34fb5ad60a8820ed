"""Colour palettes used across hemibrain / FlyWire figures.

HEMIBRAIN_COLOURS is a colour-blind friendly dark palette;
HEMIBRAIN_BRIGHT_COLOURS is a brighter one inspired by the LaCroix palette
(https://github.com/johannesbjork/LaCroixColoR).
"""

from typing import Dict, List

from matplotlib.colors import LinearSegmentedColormap, to_hex

HEMIBRAIN_COLOURS: Dict[str, str] = {
    "red": "#A53600",
    "magenta": "#B32DB5",
    "midblue": "#0072B2",
    "darkgold": "#908827",
    "green": "#348E53",
    "blue": "#053CFF",
}

HEMIBRAIN_BRIGHT_COLOURS: Dict[str, str] = {
    "purple": "#C70E7B",
    "pink": "#FC6882",
    "blue": "#007BC3",
    "cyan": "#54BCD1",
    "darkorange": "#EF7C12",
    "paleorange": "#F4B95A",
    "darkgreen": "#009F3F",
    "green": "#8FDA04",
    "brown": "#AF6125",
    "palebrown": "#F4E3C7",
    "mauve": "#B25D91",
    "lightpink": "#EFC7E6",
    "orange": "#EF7C12",
    "midorange": "#F4B95A",
    "darkred": "#C23A4B",
    "darkyellow": "#FBBB48",
    "yellow": "#EFEF46",
    "palegreen": "#31D64D",
    "navy": "#132157",
    "cerise": "#EE4244",
    "red": "#D72000",
    "marine": "#1BB6AF",
}

HEMIBRAIN_COLORS = HEMIBRAIN_COLOURS
HEMIBRAIN_BRIGHT_COLORS = HEMIBRAIN_BRIGHT_COLOURS


def colour_ramp(palette, n: int) -> List[str]:
    """``n`` hex colours interpolated evenly through ``palette``.

    The first and last colours are the palette's own end points.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    if n == 0:
        return []
    colours = list(palette.values()) if isinstance(palette, dict) else list(palette)
    cmap = LinearSegmentedColormap.from_list("ramp", colours)
    if n == 1:
        return [to_hex(cmap(0.0))]
    return [to_hex(cmap(i / (n - 1))) for i in range(n)]


def hemibrain_colour_ramp(n: int) -> List[str]:
    return colour_ramp(HEMIBRAIN_COLOURS, n)


def hemibrain_bright_colour_ramp(n: int) -> List[str]:
    return colour_ramp(HEMIBRAIN_BRIGHT_COLOURS, n)


hemibrain_color_ramp = hemibrain_colour_ramp
hemibrain_bright_color_ramp = hemibrain_bright_colour_ramp
