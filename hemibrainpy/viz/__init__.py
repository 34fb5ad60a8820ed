"""viz — colour palettes for hemibrain and FlyWire figures."""

from .colours import (
    HEMIBRAIN_COLOURS,
    HEMIBRAIN_BRIGHT_COLOURS,
    HEMIBRAIN_COLORS,
    HEMIBRAIN_BRIGHT_COLORS,
    colour_ramp,
    hemibrain_colour_ramp,
    hemibrain_bright_colour_ramp,
)
