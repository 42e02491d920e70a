"""Observation and result types.

All result types are frozen; an ExtractionResult is a fact about one run and is
never altered after assembly. ``to_dict`` renders the camelCase JSON shape that
display and export consumers read.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class Confidence(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    def __str__(self) -> str:
        return self.name.lower()


def _tier(confidence: Optional[Confidence]) -> Optional[str]:
    return str(confidence) if confidence is not None else None


@dataclass(frozen=True)
class Observation:
    """One raw signal from the page, optionally scored."""

    category: str
    value: str
    context: str
    count: int = 1
    prop: str = ""
    details: Mapping[str, Any] = field(default_factory=dict)
    confidence: Optional[Confidence] = None


@dataclass(frozen=True)
class PaletteEntry:
    color: str
    count: int
    confidence: Confidence
    context: str = ""
    alpha: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "color": self.color,
            "count": self.count,
            "confidence": _tier(self.confidence),
            "context": self.context,
        }
        if self.alpha is not None:
            data["alpha"] = self.alpha
        return data


@dataclass(frozen=True)
class ColorBundle:
    palette: Tuple[PaletteEntry, ...]
    semantic: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "semantic", MappingProxyType(dict(self.semantic)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "palette": [entry.to_dict() for entry in self.palette],
            "semantic": dict(self.semantic),
        }


@dataclass(frozen=True)
class TypographyStyle:
    family: str
    size: str
    weight: str
    line_height: str
    letter_spacing: str
    context: str
    count: int = 1
    confidence: Confidence = Confidence.LOW

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "size": self.size,
            "weight": self.weight,
            "lineHeight": self.line_height,
            "letterSpacing": self.letter_spacing,
            "context": self.context,
            "count": self.count,
            "confidence": _tier(self.confidence),
        }


@dataclass(frozen=True)
class FontFamily:
    family: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {"family": self.family, "count": self.count, "confidence": _tier(self.confidence)}


@dataclass(frozen=True)
class TypographyBundle:
    styles: Tuple[TypographyStyle, ...]
    families: Tuple[FontFamily, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "styles": [s.to_dict() for s in self.styles],
            "families": [f.to_dict() for f in self.families],
        }


@dataclass(frozen=True)
class SpacingValue:
    px: str
    rem: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {"px": self.px, "rem": self.rem, "count": self.count, "confidence": _tier(self.confidence)}


@dataclass(frozen=True)
class SpacingBundle:
    common_values: Tuple[SpacingValue, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"commonValues": [v.to_dict() for v in self.common_values]}


@dataclass(frozen=True)
class RadiusEntry:
    value: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "count": self.count, "confidence": _tier(self.confidence)}


@dataclass(frozen=True)
class BorderRadiusBundle:
    values: Tuple[RadiusEntry, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"values": [v.to_dict() for v in self.values]}


@dataclass(frozen=True)
class BorderWidth:
    width: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {"width": self.width, "count": self.count, "confidence": _tier(self.confidence)}


@dataclass(frozen=True)
class BorderColor:
    color: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {"color": self.color, "count": self.count, "confidence": _tier(self.confidence)}


@dataclass(frozen=True)
class BorderCombination:
    width: str
    style: str
    color: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "style": self.style,
            "color": self.color,
            "count": self.count,
            "confidence": _tier(self.confidence),
        }


@dataclass(frozen=True)
class BorderBundle:
    widths: Tuple[BorderWidth, ...]
    colors: Tuple[BorderColor, ...]
    combinations: Tuple[BorderCombination, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "widths": [w.to_dict() for w in self.widths],
            "colors": [c.to_dict() for c in self.colors],
            "combinations": [c.to_dict() for c in self.combinations],
        }


@dataclass(frozen=True)
class ShadowEntry:
    shadow: str
    count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {"shadow": self.shadow, "count": self.count, "confidence": _tier(self.confidence)}


@dataclass(frozen=True)
class Logo:
    source: str
    url: Optional[str]
    width: float
    height: float
    alt: str = ""
    confidence: Confidence = Confidence.LOW

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "source": self.source,
            "width": self.width,
            "height": self.height,
            "confidence": _tier(self.confidence),
        }
        if self.url:
            data["url"] = self.url
        if self.alt:
            data["alt"] = self.alt
        return data


@dataclass(frozen=True)
class ExtractionResult:
    url: str
    extracted_at: str
    logo: Optional[Logo] = None
    colors: Optional[ColorBundle] = None
    typography: Optional[TypographyBundle] = None
    spacing: Optional[SpacingBundle] = None
    border_radius: Optional[BorderRadiusBundle] = None
    borders: Optional[BorderBundle] = None
    shadows: Optional[Tuple[ShadowEntry, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url, "extractedAt": self.extracted_at}
        for key, value in (
            ("logo", self.logo),
            ("colors", self.colors),
            ("typography", self.typography),
            ("spacing", self.spacing),
            ("borderRadius", self.border_radius),
            ("borders", self.borders),
        ):
            if value is not None:
                data[key] = value.to_dict()
        if self.shadows is not None:
            data["shadows"] = [s.to_dict() for s in self.shadows]
        return data
