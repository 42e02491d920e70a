"""Merge, rank and truncate scored observations into result bundles.

Merge rule: observations sharing an identity key sum their counts and keep the
highest confidence among them. Ranking is a stable sort by count, so ties keep
first-seen order. The confidence filter always runs before the top-N cap.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from design_extract.colors import color_is_neutral, format_px, format_rem, normalize_color, parse_color, parse_length
from design_extract.models import (
    BorderBundle,
    BorderColor,
    BorderCombination,
    BorderRadiusBundle,
    BorderWidth,
    ColorBundle,
    Confidence,
    FontFamily,
    Logo,
    Observation,
    PaletteEntry,
    RadiusEntry,
    ShadowEntry,
    SpacingBundle,
    SpacingValue,
    TypographyBundle,
    TypographyStyle,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryLimit:
    limit: int
    min_confidence: Optional[Confidence] = None


CATEGORY_LIMITS: Dict[str, CategoryLimit] = {
    "colors": CategoryLimit(30, Confidence.MEDIUM),
    "typography": CategoryLimit(10),
    "spacing": CategoryLimit(12),
    "borderRadius": CategoryLimit(6, Confidence.MEDIUM),
    "borders": CategoryLimit(10, Confidence.MEDIUM),
    "shadows": CategoryLimit(6, Confidence.MEDIUM),
}

SEMANTIC_ROLES = ("primary", "secondary", "accent", "background", "text", "link")

# Roles a grey can never win by element vote
CHROMATIC_ROLES = frozenset({"primary", "secondary", "accent", "link"})

VARIABLE_ROLE_HINTS: Dict[str, Tuple[str, ...]] = {
    "primary": ("primary", "brand"),
    "secondary": ("secondary",),
    "accent": ("accent",),
    "background": ("background", "bg", "surface"),
    "text": ("text", "foreground", "fg"),
    "link": ("link",),
}

# (context, css property) -> semantic role
ELEMENT_ROLES: Dict[Tuple[str, str], str] = {
    ("body", "background-color"): "background",
    ("body", "color"): "text",
    ("text", "color"): "text",
    ("link", "color"): "link",
    ("button", "background-color"): "primary",
}

LOGO_MIN_SIZE = 16
LOGO_MAX_WIDTH = 600
LOGO_MAX_HEIGHT = 300
LOGO_TOP_ZONE = 200


@dataclass
class Merged:
    key: Hashable
    count: int
    confidence: Confidence
    context: str
    lead: Observation
    order: int


def merge(observations: Iterable[Observation], key: Callable[[Observation], Optional[Hashable]]) -> List[Merged]:
    """Collapse observations with equal keys, in first-seen order.

    ``lead`` is the single occurrence with the highest count; attributes that
    are not part of the identity (alpha, original notation) come from it.
    Observations whose key is None are dropped.
    """
    groups: Dict[Hashable, Merged] = {}
    for obs in observations:
        if obs.confidence is None:
            raise ValueError(f"Observation {obs.value!r} has not been scored")
        k = key(obs)
        if k is None:
            continue
        group = groups.get(k)
        if group is None:
            groups[k] = Merged(
                key=k,
                count=obs.count,
                confidence=obs.confidence,
                context=obs.context,
                lead=obs,
                order=len(groups),
            )
            continue
        group.count += obs.count
        if obs.confidence > group.confidence:
            group.confidence = obs.confidence
            group.context = obs.context
        if obs.count > group.lead.count:
            group.lead = obs
    return list(groups.values())


def rank(items: Sequence[Any]) -> List[Any]:
    return sorted(items, key=lambda item: -item.count)


def select(ranked: Sequence[Any], limit: int, min_confidence: Optional[Confidence] = None) -> List[Any]:
    kept = [item for item in ranked if min_confidence is None or item.confidence >= min_confidence]
    return kept[:limit]


def _finalize(groups: List[Merged], category: str) -> List[Merged]:
    policy = CATEGORY_LIMITS[category]
    ranked = rank(groups)
    selected = select(ranked, policy.limit, policy.min_confidence)
    logger.debug("%s: %d merged, %d kept", category, len(ranked), len(selected))
    return selected


# ---------- Colors ----------

def _color_key(obs: Observation) -> Optional[str]:
    normalized = normalize_color(obs.value)
    if normalized is None or normalized[1] <= 0:
        return None
    return normalized[0]


def _variable_role(name: str) -> Optional[str]:
    tokens = set(re.split(r"[-_]+", name.lower().lstrip("-")))
    roles = [role for role, hints in VARIABLE_ROLE_HINTS.items() if tokens.intersection(hints)]
    if len(roles) == 1:
        return roles[0]
    return None


def semantic_colors(observations: Iterable[Observation]) -> Dict[str, str]:
    declared: Dict[str, str] = {}
    element_votes: Dict[str, Counter] = {}
    for obs in observations:
        hex_value = _color_key(obs)
        if hex_value is None:
            continue
        if obs.context == "css-variable":
            role = _variable_role(str(obs.details.get("name") or ""))
            if role and role not in declared:
                declared[role] = hex_value
            continue
        role = ELEMENT_ROLES.get((obs.context, obs.prop))
        if role in CHROMATIC_ROLES and color_is_neutral(parse_color(obs.value)):
            continue
        if role:
            element_votes.setdefault(role, Counter())[hex_value] += obs.count

    semantic: Dict[str, str] = {}
    for role in SEMANTIC_ROLES:
        if role in declared:
            semantic[role] = declared[role]
            continue
        votes = element_votes.get(role)
        if not votes:
            continue
        # most_common keeps insertion order among equal counts
        winner, count = votes.most_common(1)[0]
        if count * 2 > sum(votes.values()):
            semantic[role] = winner
    return semantic


def aggregate_colors(observations: Sequence[Observation]) -> Optional[ColorBundle]:
    groups = _finalize(merge(observations, _color_key), "colors")
    palette = []
    for group in groups:
        normalized = normalize_color(group.lead.value)
        alpha = normalized[1] if normalized and normalized[1] < 1 else None
        palette.append(
            PaletteEntry(
                color=group.key,
                count=group.count,
                confidence=group.confidence,
                context=group.context,
                alpha=alpha,
            )
        )
    semantic = semantic_colors(observations)
    if not palette and not semantic:
        return None
    return ColorBundle(palette=tuple(palette), semantic=semantic)


# ---------- Typography ----------

def clean_family(value: str) -> str:
    families = [part.strip().strip("\"'").strip() for part in (value or "").split(",")]
    return ", ".join(f for f in families if f)


def _style_key(obs: Observation) -> Optional[Tuple[str, ...]]:
    family = clean_family(obs.value)
    size = str(obs.details.get("size") or "").strip()
    if not family or not size:
        return None
    return (
        family,
        size,
        str(obs.details.get("weight") or "400").strip(),
        str(obs.details.get("lineHeight") or "normal").strip(),
        str(obs.details.get("letterSpacing") or "normal").strip(),
    )


def _family_key(obs: Observation) -> Optional[str]:
    family = clean_family(obs.value)
    if not family:
        return None
    return family.split(",")[0].strip()


def aggregate_typography(observations: Sequence[Observation]) -> Optional[TypographyBundle]:
    styles = [
        TypographyStyle(
            family=group.key[0],
            size=group.key[1],
            weight=group.key[2],
            line_height=group.key[3],
            letter_spacing=group.key[4],
            context=group.context,
            count=group.count,
            confidence=group.confidence,
        )
        for group in _finalize(merge(observations, _style_key), "typography")
    ]
    families = [
        FontFamily(family=group.key, count=group.count, confidence=group.confidence)
        for group in _finalize(merge(observations, _family_key), "typography")
    ]
    if not styles:
        return None
    return TypographyBundle(styles=tuple(styles), families=tuple(families))


# ---------- Spacing ----------

def _spacing_px(obs: Observation) -> Optional[float]:
    root = float(obs.details.get("rootFontSize") or 16.0)
    px = parse_length(obs.value, root)
    if px is None or px <= 0:
        return None
    return px


def aggregate_spacing(observations: Sequence[Observation]) -> Optional[SpacingBundle]:
    def key(obs: Observation) -> Optional[str]:
        px = _spacing_px(obs)
        return format_px(px) if px is not None else None

    values = []
    for group in _finalize(merge(observations, key), "spacing"):
        px = _spacing_px(group.lead)
        root = float(group.lead.details.get("rootFontSize") or 16.0)
        values.append(
            SpacingValue(
                px=group.key,
                rem=format_rem(px, root),
                count=group.count,
                confidence=group.confidence,
            )
        )
    if not values:
        return None
    return SpacingBundle(common_values=tuple(values))


# ---------- Border radius ----------

def normalize_radius(value: str) -> Optional[str]:
    parts = (value or "").split()
    if not parts or all(p in {"0", "0px", "0%"} for p in parts):
        return None
    if len(set(parts)) == 1:
        return parts[0]
    return " ".join(parts)


def aggregate_radius(observations: Sequence[Observation]) -> Optional[BorderRadiusBundle]:
    entries = [
        RadiusEntry(value=group.key, count=group.count, confidence=group.confidence)
        for group in _finalize(merge(observations, lambda o: normalize_radius(o.value)), "borderRadius")
    ]
    if not entries:
        return None
    return BorderRadiusBundle(values=tuple(entries))


# ---------- Borders ----------

def _border_color(obs: Observation) -> Optional[str]:
    normalized = normalize_color(str(obs.details.get("color") or ""))
    if normalized is None or normalized[1] <= 0:
        return None
    return normalized[0]


def _border_width(obs: Observation) -> Optional[str]:
    px = parse_length(obs.value)
    if px is None or px <= 0:
        return None
    return format_px(px)


def _combination_key(obs: Observation) -> Optional[Tuple[str, str, str]]:
    width = _border_width(obs)
    color = _border_color(obs)
    style = str(obs.details.get("style") or "").strip().lower()
    if width is None or color is None or style in {"", "none", "hidden"}:
        return None
    return width, style, color


def aggregate_borders(observations: Sequence[Observation]) -> Optional[BorderBundle]:
    combinations = [
        BorderCombination(
            width=group.key[0],
            style=group.key[1],
            color=group.key[2],
            count=group.count,
            confidence=group.confidence,
        )
        for group in _finalize(merge(observations, _combination_key), "borders")
    ]
    if not combinations:
        return None
    visible = [obs for obs in observations if _combination_key(obs) is not None]
    widths = [
        BorderWidth(width=group.key, count=group.count, confidence=group.confidence)
        for group in _finalize(merge(visible, _border_width), "borders")
    ]
    colors = [
        BorderColor(color=group.key, count=group.count, confidence=group.confidence)
        for group in _finalize(merge(visible, _border_color), "borders")
    ]
    return BorderBundle(widths=tuple(widths), colors=tuple(colors), combinations=tuple(combinations))


# ---------- Shadows ----------

def normalize_shadow(value: str) -> Optional[str]:
    text = " ".join((value or "").split())
    if not text or text == "none":
        return None
    return text


def aggregate_shadows(observations: Sequence[Observation]) -> Optional[Tuple[ShadowEntry, ...]]:
    entries = tuple(
        ShadowEntry(shadow=group.key, count=group.count, confidence=group.confidence)
        for group in _finalize(merge(observations, lambda o: normalize_shadow(o.value)), "shadows")
    )
    return entries or None


# ---------- Logo ----------

def score_logo_candidate(candidate: Dict[str, Any], viewport_width: float) -> int:
    rect = candidate.get("rect") or {}
    width = float(rect.get("width") or 0)
    height = float(rect.get("height") or 0)
    if width < LOGO_MIN_SIZE or height < LOGO_MIN_SIZE:
        return 0
    if width > LOGO_MAX_WIDTH or height > LOGO_MAX_HEIGHT:
        return 0
    score = 0
    if candidate.get("hasLogoHint"):
        score += 3
    if candidate.get("inHeader"):
        score += 2
    if candidate.get("linksHome"):
        score += 2
    if float(rect.get("y") or 0) < LOGO_TOP_ZONE:
        score += 1
    if float(rect.get("x") or 0) < viewport_width / 2:
        score += 1
    return score


def logo_confidence(score: int) -> Optional[Confidence]:
    if score >= 7:
        return Confidence.HIGH
    if score >= 5:
        return Confidence.MEDIUM
    if score >= 3:
        return Confidence.LOW
    return None


def pick_logo(candidates: Sequence[Dict[str, Any]], viewport_width: float = 1440) -> Optional[Logo]:
    best: Optional[Dict[str, Any]] = None
    best_score = 0
    for candidate in candidates:
        score = score_logo_candidate(candidate, viewport_width)
        if score > best_score:
            best, best_score = candidate, score
    confidence = logo_confidence(best_score)
    if best is None or confidence is None:
        return None
    rect = best.get("rect") or {}
    return Logo(
        source="svg" if best.get("tag") == "svg" else "img",
        url=best.get("src") or None,
        width=round(float(rect.get("width") or 0), 1),
        height=round(float(rect.get("height") or 0), 1),
        alt=(best.get("alt") or "").strip(),
        confidence=confidence,
    )
