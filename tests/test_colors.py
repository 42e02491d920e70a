"""Tests for colour and length parsing."""

import pytest

from design_extract.colors import format_px, format_rem, normalize_color, parse_color, parse_length, to_hex


class TestParseColor:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("rgb(255, 0, 0)", (255, 0, 0, 1.0)),
            ("rgba(0, 0, 0, 0.5)", (0, 0, 0, 0.5)),
            ("rgb(37 99 235 / 0.25)", (37, 99, 235, 0.25)),
            ("rgb(100%, 0%, 0%)", (255, 0, 0, 1.0)),
            ("#f00", (255, 0, 0, 1.0)),
            ("#FF0000", (255, 0, 0, 1.0)),
            ("#ff000080", (255, 0, 0, 128 / 255.0)),
            ("white", (255, 255, 255, 1.0)),
        ],
    )
    def test_supported_notations(self, value, expected):
        assert parse_color(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "transparent", "currentColor", "none", "not-a-color", "rgb(1, 2)", "#12"])
    def test_unparseable_values_return_none(self, value):
        assert parse_color(value) is None


class TestNormalizeColor:
    def test_equivalent_notations_share_a_hex(self):
        assert normalize_color("#FF0000")[0] == normalize_color("rgb(255, 0, 0)")[0] == "#ff0000"
        assert normalize_color("red")[0] == "#ff0000"

    def test_alpha_is_kept_separately(self):
        assert normalize_color("rgba(255, 0, 0, 0.5)") == ("#ff0000", 0.5)

    def test_to_hex_pads_channels(self):
        assert to_hex((1, 2, 3, 1.0)) == "#010203"


class TestLengths:
    def test_px_and_bare_numbers(self):
        assert parse_length("12px") == 12.0
        assert parse_length("12") == 12.0

    def test_rem_uses_root_font_size(self):
        assert parse_length("1.5rem") == 24.0
        assert parse_length("1rem", root_font_size=10) == 10.0

    @pytest.mark.parametrize("value", ["auto", "normal", "", "12vh", "calc(1px + 2px)"])
    def test_unsupported_lengths(self, value):
        assert parse_length(value) is None

    def test_formatting(self):
        assert format_px(8.0) == "8px"
        assert format_px(0.5) == "0.5px"
        assert format_rem(8, 16) == "0.5rem"
        assert format_rem(16, 16) == "1rem"
