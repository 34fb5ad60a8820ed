"""Tests for the hemibrain palettes and colour ramps."""

import pytest

pytest.importorskip("matplotlib")

from hemibrainpy.viz import colours
from hemibrainpy.viz.colours import (
    HEMIBRAIN_BRIGHT_COLOURS,
    HEMIBRAIN_COLOURS,
    colour_ramp,
    hemibrain_bright_colour_ramp,
    hemibrain_colour_ramp,
)


class TestPalettes:
    def test_palette_sizes(self):
        assert len(HEMIBRAIN_COLOURS) == 6
        assert len(HEMIBRAIN_BRIGHT_COLOURS) == 22
        assert HEMIBRAIN_COLOURS["midblue"] == "#0072B2"

    def test_american_spelling(self):
        assert colours.HEMIBRAIN_COLORS is HEMIBRAIN_COLOURS
        assert colours.hemibrain_color_ramp is hemibrain_colour_ramp
        assert colours.hemibrain_bright_color_ramp is hemibrain_bright_colour_ramp


class TestColourRamp:
    def test_ends_are_palette_ends(self):
        ramp = hemibrain_colour_ramp(10)
        assert len(ramp) == 10
        assert ramp[0] == "#a53600"
        assert ramp[-1] == "#053cff"

    def test_two_colours_are_the_ends(self):
        assert hemibrain_bright_colour_ramp(2) == ["#c70e7b", "#1bb6af"]

    def test_single_colour(self):
        assert colour_ramp(["#000000", "#ffffff"], 1) == ["#000000"]

    def test_midpoint(self):
        assert colour_ramp(["#000000", "#ffffff"], 3)[1] in ("#7f7f7f", "#808080")

    def test_zero_and_negative(self):
        assert hemibrain_colour_ramp(0) == []
        with pytest.raises(ValueError):
            colour_ramp(HEMIBRAIN_COLOURS, -1)
