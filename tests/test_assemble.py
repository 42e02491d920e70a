"""Tests for result assembly and serialisation."""

import pytest

from design_extract.assemble import assemble_result
from design_extract.models import (
    ColorBundle,
    Confidence,
    PaletteEntry,
    ShadowEntry,
    SpacingBundle,
    SpacingValue,
)


@pytest.fixture
def colors():
    return ColorBundle(
        palette=(PaletteEntry(color="#2563eb", count=5, confidence=Confidence.HIGH, context="button"),),
        semantic={"primary": "#2563eb"},
    )


class TestAssemble:
    def test_empty_categories_are_omitted(self, colors):
        result = assemble_result(
            "https://example.com",
            {"colors": colors, "typography": None, "shadows": ()},
            extracted_at="2026-01-01T00:00:00",
        )
        data = result.to_dict()
        assert data == {
            "url": "https://example.com",
            "extractedAt": "2026-01-01T00:00:00",
            "colors": {
                "palette": [{"color": "#2563eb", "count": 5, "confidence": "high", "context": "button"}],
                "semantic": {"primary": "#2563eb"},
            },
        }

    def test_timestamp_defaults_to_now(self):
        assert assemble_result("https://example.com", {}).extracted_at

    def test_unknown_category_is_rejected(self):
        with pytest.raises(KeyError):
            assemble_result("https://example.com", {"gradients": object()})

    def test_camel_case_keys(self):
        spacing = SpacingBundle(common_values=(SpacingValue(px="8px", rem="0.5rem", count=3, confidence=Confidence.LOW),))
        shadows = (ShadowEntry(shadow="0 1px 2px #000", count=1, confidence=Confidence.MEDIUM),)
        data = assemble_result(
            "https://example.com",
            {"spacing": spacing, "shadows": shadows},
            extracted_at="now",
        ).to_dict()
        assert data["spacing"] == {"commonValues": [{"px": "8px", "rem": "0.5rem", "count": 3, "confidence": "low"}]}
        assert data["shadows"] == [{"shadow": "0 1px 2px #000", "count": 1, "confidence": "medium"}]

    def test_results_are_immutable(self, colors):
        result = assemble_result("https://example.com", {"colors": colors})
        with pytest.raises(AttributeError):
            result.colors = None
        with pytest.raises(TypeError):
            result.colors.semantic["primary"] = "#000000"
