"""Colour and dimension parsing shared by the aggregators."""

import re
from typing import Optional, Tuple

RGBA = Tuple[int, int, int, float]

NAMED_COLORS = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "lime": "#00ff00",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "aqua": "#00ffff",
    "magenta": "#ff00ff",
    "fuchsia": "#ff00ff",
    "silver": "#c0c0c0",
    "gray": "#808080",
    "grey": "#808080",
    "maroon": "#800000",
    "olive": "#808000",
    "purple": "#800080",
    "teal": "#008080",
    "navy": "#000080",
    "orange": "#ffa500",
    "pink": "#ffc0cb",
    "gold": "#ffd700",
    "indigo": "#4b0082",
    "violet": "#ee82ee",
    "brown": "#a52a2a",
    "crimson": "#dc143c",
    "coral": "#ff7f50",
    "tomato": "#ff6347",
    "salmon": "#fa8072",
    "khaki": "#f0e68c",
    "beige": "#f5f5dc",
    "ivory": "#fffff0",
    "lavender": "#e6e6fa",
    "turquoise": "#40e0d0",
    "tan": "#d2b48c",
    "whitesmoke": "#f5f5f5",
    "gainsboro": "#dcdcdc",
    "lightgray": "#d3d3d3",
    "lightgrey": "#d3d3d3",
    "darkgray": "#a9a9a9",
    "darkgrey": "#a9a9a9",
    "dimgray": "#696969",
    "dimgrey": "#696969",
    "slategray": "#708090",
    "slategrey": "#708090",
    "darkblue": "#00008b",
    "royalblue": "#4169e1",
    "dodgerblue": "#1e90ff",
    "steelblue": "#4682b4",
    "skyblue": "#87ceeb",
    "darkgreen": "#006400",
    "forestgreen": "#228b22",
    "seagreen": "#2e8b57",
    "darkred": "#8b0000",
    "firebrick": "#b22222",
    "darkorange": "#ff8c00",
    "rebeccapurple": "#663399",
}

_FUNC_RE = re.compile(r"^rgba?\(([^)]*)\)$")
_HEX_RE = re.compile(r"^#([0-9a-f]{3,8})$")
_LENGTH_RE = re.compile(r"^(-?\d*\.?\d+)(px|rem|em)?$")


def _channel(token: str) -> int:
    token = token.strip()
    if token.endswith("%"):
        value = float(token[:-1]) * 255.0 / 100.0
    else:
        value = float(token)
    return max(0, min(255, int(round(value))))


def _alpha(token: str) -> float:
    token = token.strip()
    if token.endswith("%"):
        value = float(token[:-1]) / 100.0
    else:
        value = float(token)
    return max(0.0, min(1.0, value))


def parse_color(value: str) -> Optional[RGBA]:
    if not value:
        return None
    value = value.strip().lower()
    if value in {"transparent", "none", "currentcolor", "inherit", "initial"}:
        return None
    value = NAMED_COLORS.get(value, value)

    func_match = _FUNC_RE.match(value)
    if func_match:
        body = func_match.group(1).replace("/", " / ")
        if "," in body:
            parts = [p for p in (s.strip() for s in body.replace("/", ",").split(",")) if p]
        else:
            parts = [p for p in body.split() if p != "/"]
        if len(parts) < 3:
            return None
        try:
            r, g, b = (_channel(p) for p in parts[:3])
            a = _alpha(parts[3]) if len(parts) > 3 else 1.0
        except ValueError:
            return None
        return r, g, b, a

    hex_match = _HEX_RE.match(value)
    if hex_match:
        h = hex_match.group(1)
        if len(h) in {3, 4}:
            r = int(h[0] * 2, 16)
            g = int(h[1] * 2, 16)
            b = int(h[2] * 2, 16)
            a = int(h[3] * 2, 16) / 255.0 if len(h) == 4 else 1.0
            return r, g, b, a
        if len(h) in {6, 8}:
            r = int(h[0:2], 16)
            g = int(h[2:4], 16)
            b = int(h[4:6], 16)
            a = int(h[6:8], 16) / 255.0 if len(h) == 8 else 1.0
            return r, g, b, a
    return None


def to_hex(rgba: RGBA) -> str:
    r, g, b, _ = rgba
    return "#%02x%02x%02x" % (r, g, b)


def normalize_color(value: str) -> Optional[Tuple[str, float]]:
    """Return ``(hex, alpha)`` for any supported notation, or None."""
    rgba = parse_color(value)
    if rgba is None:
        return None
    return to_hex(rgba), round(rgba[3], 3)


def rgba_to_hsl(r: float, g: float, b: float) -> Tuple[float, float, float]:
    r /= 255.0
    g /= 255.0
    b /= 255.0
    maxc = max(r, g, b)
    minc = min(r, g, b)
    l = (minc + maxc) / 2.0
    if minc == maxc:
        return 0.0, 0.0, l
    if l <= 0.5:
        s = (maxc - minc) / (maxc + minc)
    else:
        s = (maxc - minc) / (2.0 - maxc - minc)
    rc = (maxc - r) / (maxc - minc)
    gc = (maxc - g) / (maxc - minc)
    bc = (maxc - b) / (maxc - minc)
    if r == maxc:
        h = bc - gc
    elif g == maxc:
        h = 2.0 + rc - bc
    else:
        h = 4.0 + gc - rc
    h = (h / 6.0) % 1.0
    return h * 360.0, s, l


def color_is_neutral(rgba: RGBA) -> bool:
    _, s, _ = rgba_to_hsl(rgba[0], rgba[1], rgba[2])
    return s < 0.18


def parse_length(value: str, root_font_size: float = 16.0) -> Optional[float]:
    if not value:
        return None
    value = value.strip().lower()
    if value in {"auto", "normal", "none"}:
        return None
    match = _LENGTH_RE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    unit = match.group(2) or "px"
    if unit in {"rem", "em"}:
        return number * root_font_size
    return number


def format_px(px: float) -> str:
    rounded = round(px, 2)
    if rounded == int(rounded):
        return f"{int(rounded)}px"
    return f"{rounded:g}px"


def format_rem(px: float, root_font_size: float = 16.0) -> str:
    if not root_font_size:
        root_font_size = 16.0
    rem = round(px / root_font_size, 3)
    return f"{rem:g}rem"
