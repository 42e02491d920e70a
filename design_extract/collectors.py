"""In-page signal collectors.

Each collector is a read-only JavaScript function evaluated in the page plus a
parser that turns its JSON payload into observations. Collectors never touch
the DOM: colour normalisation goes through a detached canvas and nothing is
appended, focused or scrolled.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from design_extract.errors import EvaluationError, NavigationError, is_navigation_failure
from design_extract.models import Observation

logger = logging.getLogger(__name__)


PAGE_HELPERS = r"""
    const classOf = (node) => (node.getAttribute && node.getAttribute('class')) || '';
    const hintOf = (node) => [
        node.id || '',
        classOf(node),
        (node.getAttribute && node.getAttribute('aria-label')) || '',
        (node.getAttribute && node.getAttribute('alt')) || '',
    ].join(' ').toLowerCase();
    const isVisible = (el, style) => {
        if (style.display === 'none' || style.visibility === 'hidden') return false;
        if (parseFloat(style.opacity || '1') === 0) return false;
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0;
    };
    const roleOf = (el) => {
        let node = el;
        for (let depth = 0; node && node.nodeType === 1 && depth < 3; depth += 1) {
            const hint = hintOf(node);
            if (hint.includes('logo')) return 'logo';
            if (hint.includes('brand')) return 'brand';
            node = node.parentElement;
        }
        const tag = el.tagName.toLowerCase();
        const role = ((el.getAttribute && el.getAttribute('role')) || '').toLowerCase();
        const hint = hintOf(el);
        if (tag === 'button' || role === 'button' || /\bbtn\b|button|\bcta\b/.test(hint)) return 'button';
        if (/^h[1-6]$/.test(tag)) return 'heading';
        if (tag === 'a' || role === 'link') return 'link';
        if (['input', 'select', 'textarea'].includes(tag)) return 'input';
        if (tag === 'label') return 'label';
        if (tag === 'nav' || role === 'navigation') return 'nav';
        if (tag === 'header' || role === 'banner') return 'header';
        if (tag === 'footer' || role === 'contentinfo') return 'footer';
        if (tag === 'body' || tag === 'html') return 'body';
        if (/card/.test(hint)) return 'card';
        if (['p', 'span', 'li', 'small', 'strong', 'em', 'blockquote'].includes(tag)) return 'text';
        return tag;
    };
    const hasDirectText = (el) => Array.from(el.childNodes).some(
        (n) => n.nodeType === 3 && n.textContent.trim().length > 0
    );
    const visibleElements = (limit) => {
        const out = [];
        const all = document.querySelectorAll('body, body *');
        for (const el of all) {
            if (out.length >= limit) break;
            const style = window.getComputedStyle(el);
            if (!isVisible(el, style)) continue;
            out.push([el, style]);
        }
        return out;
    };
    const makeTally = () => {
        const map = new Map();
        return {
            add(key, record) {
                const entry = map.get(key);
                if (entry) { entry.count += 1; } else { map.set(key, Object.assign({count: 1}, record)); }
            },
            values() { return Array.from(map.values()); },
        };
    };
"""


def _page_function(body: str) -> str:
    return "(limit) => {" + PAGE_HELPERS + body + "}"


COLORS_SCRIPT = _page_function(r"""
    const canvas = document.createElement('canvas').getContext('2d');
    const toColor = (value) => {
        if (!canvas || !value) return null;
        canvas.fillStyle = '#000000';
        canvas.fillStyle = value;
        const first = canvas.fillStyle;
        canvas.fillStyle = '#ffffff';
        canvas.fillStyle = value;
        return first === canvas.fillStyle ? first : null;
    };
    const tally = makeTally();
    const add = (value, property, context, name) => {
        const v = (value || '').trim();
        if (!v || v === 'transparent' || v === 'none' || v === 'rgba(0, 0, 0, 0)') return;
        tally.add([v, property, context, name || ''].join('|'), {value: v, property, context, name: name || null});
    };

    const names = new Set();
    for (const sheet of Array.from(document.styleSheets)) {
        let rules;
        try { rules = sheet.cssRules; } catch (e) { continue; }
        for (const rule of Array.from(rules || [])) {
            if (!rule.style || !/(^|,)\s*(:root|html)\s*(,|$)/.test(rule.selectorText || '')) continue;
            for (const prop of Array.from(rule.style)) {
                if (prop.startsWith('--')) names.add(prop);
            }
        }
    }
    const rootStyle = window.getComputedStyle(document.documentElement);
    for (const name of names) {
        const color = toColor(rootStyle.getPropertyValue(name).trim());
        if (color) add(color, 'custom-property', 'css-variable', name);
    }

    for (const [el, style] of visibleElements(limit)) {
        const context = roleOf(el);
        if (hasDirectText(el)) add(style.color, 'color', context);
        add(style.backgroundColor, 'background-color', context);
        if (parseFloat(style.borderTopWidth) > 0 && style.borderTopStyle !== 'none') {
            add(style.borderTopColor, 'border-color', context);
        }
        if (el instanceof SVGElement && style.fill && style.fill !== 'none') {
            add(style.fill, 'fill', context);
        }
    }
    const bodyStyle = document.body ? window.getComputedStyle(document.body) : null;
    if (bodyStyle && !hasDirectText(document.body)) add(bodyStyle.color, 'color', 'body');
    const bodyBg = bodyStyle ? bodyStyle.backgroundColor : '';
    if (!bodyBg || bodyBg === 'transparent' || bodyBg === 'rgba(0, 0, 0, 0)') {
        add(rootStyle.backgroundColor, 'background-color', 'body');
    }
    return {colors: tally.values()};
""")

TYPOGRAPHY_SCRIPT = _page_function(r"""
    const tally = makeTally();
    const selector = 'body, h1, h2, h3, h4, h5, h6, p, a, button, label, li, span, small, [role="button"]';
    const contextOf = (el) => {
        const tag = el.tagName.toLowerCase();
        if (/^h[1-6]$/.test(tag)) return 'heading-' + tag.slice(1);
        const role = roleOf(el);
        if (role === 'button' || role === 'link' || role === 'label' || role === 'body') return role;
        if (tag === 'p') return 'body';
        return 'text';
    };
    let seen = 0;
    for (const el of document.querySelectorAll(selector)) {
        if (seen >= limit) break;
        const style = window.getComputedStyle(el);
        if (!isVisible(el, style)) continue;
        if (el.tagName.toLowerCase() !== 'body' && !hasDirectText(el)) continue;
        seen += 1;
        const record = {
            family: style.fontFamily,
            size: style.fontSize,
            weight: style.fontWeight,
            lineHeight: style.lineHeight,
            letterSpacing: style.letterSpacing,
            context: contextOf(el),
        };
        tally.add([record.family, record.size, record.weight, record.lineHeight, record.letterSpacing, record.context].join('|'), record);
    }
    const rootFontSize = parseFloat(window.getComputedStyle(document.documentElement).fontSize) || 16;
    return {styles: tally.values(), rootFontSize};
""")

SPACING_SCRIPT = _page_function(r"""
    const tally = makeTally();
    const props = [
        'padding-top', 'padding-right', 'padding-bottom', 'padding-left',
        'margin-top', 'margin-right', 'margin-bottom', 'margin-left',
        'row-gap', 'column-gap',
    ];
    for (const [el, style] of visibleElements(limit)) {
        const context = roleOf(el);
        for (const prop of props) {
            const value = style.getPropertyValue(prop);
            if (!value || !value.endsWith('px') || parseFloat(value) <= 0) continue;
            tally.add([value, context].join('|'), {value, property: prop, context});
        }
    }
    const rootFontSize = parseFloat(window.getComputedStyle(document.documentElement).fontSize) || 16;
    return {values: tally.values(), rootFontSize};
""")

RADIUS_SCRIPT = _page_function(r"""
    const tally = makeTally();
    for (const [el, style] of visibleElements(limit)) {
        const value = style.borderRadius;
        if (!value || /^(0px\s*)+$/.test(value.trim())) continue;
        const context = roleOf(el);
        tally.add([value, context].join('|'), {value, context});
    }
    return {values: tally.values()};
""")

BORDERS_SCRIPT = _page_function(r"""
    const tally = makeTally();
    const sides = ['top', 'right', 'bottom', 'left'];
    for (const [el, style] of visibleElements(limit)) {
        const context = roleOf(el);
        const seenHere = new Set();
        for (const side of sides) {
            const width = style.getPropertyValue('border-' + side + '-width');
            const lineStyle = style.getPropertyValue('border-' + side + '-style');
            const color = style.getPropertyValue('border-' + side + '-color');
            if (!width || parseFloat(width) <= 0 || lineStyle === 'none' || lineStyle === 'hidden') continue;
            const key = [width, lineStyle, color, context].join('|');
            if (seenHere.has(key)) continue;
            seenHere.add(key);
            tally.add(key, {width, style: lineStyle, color, context});
        }
    }
    return {borders: tally.values()};
""")

SHADOWS_SCRIPT = _page_function(r"""
    const tally = makeTally();
    for (const [el, style] of visibleElements(limit)) {
        const value = style.boxShadow;
        if (!value || value === 'none') continue;
        const context = roleOf(el);
        tally.add([value, context].join('|'), {value, context});
    }
    return {shadows: tally.values()};
""")

LOGO_SCRIPT = _page_function(r"""
    const selector = [
        'img', 'svg', '[class*="logo" i]', '[id*="logo" i]', '[aria-label*="logo" i]',
        'header a', 'nav a', '[role="banner"] a',
    ].join(', ');
    const candidates = [];
    const bgUrl = (style) => {
        const match = /url\(["']?([^"')]+)["']?\)/.exec(style.backgroundImage || '');
        return match ? match[1] : null;
    };
    for (const el of document.querySelectorAll(selector)) {
        if (candidates.length >= 60) break;
        if (el.closest('svg') && el.closest('svg') !== el) continue;
        const style = window.getComputedStyle(el);
        if (!isVisible(el, style)) continue;
        const tag = el.tagName.toLowerCase();
        let src = null;
        if (tag === 'img') src = el.currentSrc || el.src || null;
        else if (tag !== 'svg') src = bgUrl(style);
        if (tag !== 'img' && tag !== 'svg' && !src) continue;
        const link = el.closest('a');
        let linksHome = false;
        if (link && link.href) {
            try {
                const target = new URL(link.href, location.href);
                linksHome = target.origin === location.origin && (target.pathname === '/' || target.pathname === '');
            } catch (e) { linksHome = false; }
        }
        let hinted = false;
        for (let node = el, depth = 0; node && node.nodeType === 1 && depth < 3; depth += 1, node = node.parentElement) {
            if (hintOf(node).includes('logo')) { hinted = true; break; }
        }
        if (!hinted && src && /logo/i.test(src)) hinted = true;
        let absolute = null;
        if (src) {
            try { absolute = new URL(src, location.href).href; } catch (e) { absolute = src; }
        }
        const rect = el.getBoundingClientRect();
        candidates.push({
            tag: tag === 'svg' ? 'svg' : 'img',
            src: absolute,
            alt: el.getAttribute('alt') || el.getAttribute('aria-label') || '',
            hasLogoHint: hinted,
            inHeader: !!el.closest('header, nav, [role="banner"]'),
            linksHome,
            rect: {x: rect.x, y: rect.y + window.scrollY, width: rect.width, height: rect.height},
        });
    }
    return {candidates, viewport: {width: window.innerWidth, height: window.innerHeight}};
""")


# ---------- Payload parsers ----------

def _records(payload: Any, key: str) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        raise ValueError(f"Expected an object payload, got {type(payload).__name__}")
    records = payload.get(key)
    if records is None:
        return []
    if not isinstance(records, list):
        raise ValueError(f"Expected '{key}' to be a list")
    return [r for r in records if isinstance(r, dict)]


def _count(record: Dict[str, Any]) -> int:
    try:
        return max(1, int(record.get("count") or 1))
    except (TypeError, ValueError):
        return 1


def parse_colors(payload: Any) -> List[Observation]:
    return [
        Observation(
            category="colors",
            value=str(r.get("value") or ""),
            context=str(r.get("context") or ""),
            count=_count(r),
            prop=str(r.get("property") or ""),
            details={"name": r.get("name")} if r.get("name") else {},
        )
        for r in _records(payload, "colors")
        if r.get("value")
    ]


def parse_typography(payload: Any) -> List[Observation]:
    root = payload.get("rootFontSize") if isinstance(payload, dict) else None
    return [
        Observation(
            category="typography",
            value=str(r.get("family") or ""),
            context=str(r.get("context") or ""),
            count=_count(r),
            details={
                "size": r.get("size"),
                "weight": r.get("weight"),
                "lineHeight": r.get("lineHeight"),
                "letterSpacing": r.get("letterSpacing"),
                "rootFontSize": root,
            },
        )
        for r in _records(payload, "styles")
        if r.get("family")
    ]


def parse_spacing(payload: Any) -> List[Observation]:
    root = payload.get("rootFontSize") if isinstance(payload, dict) else None
    return [
        Observation(
            category="spacing",
            value=str(r.get("value") or ""),
            context=str(r.get("context") or ""),
            count=_count(r),
            prop=str(r.get("property") or ""),
            details={"rootFontSize": root},
        )
        for r in _records(payload, "values")
        if r.get("value")
    ]


def parse_radius(payload: Any) -> List[Observation]:
    return [
        Observation(
            category="borderRadius",
            value=str(r.get("value") or ""),
            context=str(r.get("context") or ""),
            count=_count(r),
        )
        for r in _records(payload, "values")
        if r.get("value")
    ]


def parse_borders(payload: Any) -> List[Observation]:
    return [
        Observation(
            category="borders",
            value=str(r.get("width") or ""),
            context=str(r.get("context") or ""),
            count=_count(r),
            details={"style": r.get("style"), "color": r.get("color")},
        )
        for r in _records(payload, "borders")
        if r.get("width")
    ]


def parse_shadows(payload: Any) -> List[Observation]:
    return [
        Observation(
            category="shadows",
            value=str(r.get("value") or ""),
            context=str(r.get("context") or ""),
            count=_count(r),
        )
        for r in _records(payload, "shadows")
        if r.get("value")
    ]


def parse_logo(payload: Any) -> Dict[str, Any]:
    candidates = _records(payload, "candidates")
    viewport = payload.get("viewport") or {}
    return {"candidates": candidates, "viewport_width": float(viewport.get("width") or 1440)}


@dataclass(frozen=True)
class Collector:
    name: str
    script: str
    parse: Callable[[Any], Any]


COLLECTORS: Sequence[Collector] = (
    Collector("colors", COLORS_SCRIPT, parse_colors),
    Collector("typography", TYPOGRAPHY_SCRIPT, parse_typography),
    Collector("spacing", SPACING_SCRIPT, parse_spacing),
    Collector("borderRadius", RADIUS_SCRIPT, parse_radius),
    Collector("borders", BORDERS_SCRIPT, parse_borders),
    Collector("shadows", SHADOWS_SCRIPT, parse_shadows),
    Collector("logo", LOGO_SCRIPT, parse_logo),
)


@dataclass(frozen=True)
class CategoryOutcome:
    category: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_collector(driver, handle, collector: Collector, arg: Any = None) -> CategoryOutcome:
    try:
        payload = await driver.evaluate(handle, collector.script, arg)
    except NavigationError:
        raise
    except EvaluationError as exc:
        return CategoryOutcome(
            collector.name,
            error=EvaluationError(exc.message, category=collector.name, url=exc.url, mode=exc.mode),
        )
    except Exception as exc:
        if is_navigation_failure(exc):
            raise NavigationError(str(exc)) from exc
        return CategoryOutcome(collector.name, error=EvaluationError(str(exc), category=collector.name))
    try:
        return CategoryOutcome(collector.name, value=collector.parse(payload))
    except (TypeError, ValueError, AttributeError) as exc:
        return CategoryOutcome(
            collector.name,
            error=EvaluationError(f"Malformed payload: {exc}", category=collector.name),
        )


async def run_collectors(
    driver,
    handle,
    collectors: Sequence[Collector],
    arg: Any = None,
    timeout: Optional[float] = None,
) -> Dict[str, CategoryOutcome]:
    """Run every collector against the same page and wait for all to settle.

    A navigation-class failure in any collector is raised only after the
    siblings have finished; every other failure stays in its own outcome.
    When the whole fan-out outlives ``timeout`` seconds the pending
    evaluations are cancelled and a NavigationError is raised.
    """
    gathered = asyncio.gather(
        *(run_collector(driver, handle, c, arg) for c in collectors),
        return_exceptions=True,
    )
    try:
        settled = await asyncio.wait_for(gathered, timeout)
    except asyncio.TimeoutError:
        raise NavigationError(f"Collectors did not settle within {timeout:g}s") from None
    outcomes: Dict[str, CategoryOutcome] = {}
    navigation_failure: Optional[BaseException] = None
    for collector, result in zip(collectors, settled):
        if isinstance(result, BaseException):
            if navigation_failure is None:
                navigation_failure = result
            continue
        outcomes[collector.name] = result
        if not result.ok:
            logger.warning("Collector '%s' failed: %s", collector.name, result.error)
    if navigation_failure is not None:
        raise navigation_failure
    return outcomes
