"""Shared fixtures: a fake browser driver and representative page payloads."""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pytest

from design_extract.collectors import COLLECTORS
from design_extract.models import Confidence, Observation
from design_extract.scoring import ConfidenceScorer


@dataclass
class FakeHandle:
    mode: str
    serial: int


class FakeDriver:
    """Implements the driver boundary without a browser.

    ``navigate_errors`` is consumed one entry per navigation (None succeeds).
    ``evaluate_errors`` maps a collector name to an exception raised once.
    ``launch_errors`` maps a browser mode to an exception raised by launch.
    Evaluations in a mode listed in ``hang_modes`` never return.
    """

    def __init__(
        self,
        payloads: Optional[Dict[str, Any]] = None,
        navigate_errors: Sequence[Optional[BaseException]] = (),
        evaluate_errors: Optional[Dict[str, BaseException]] = None,
        launch_errors: Optional[Dict[str, BaseException]] = None,
        hang_modes: Sequence[str] = (),
    ):
        self.payloads = payloads or {}
        self.navigate_errors = list(navigate_errors)
        self.evaluate_errors = dict(evaluate_errors or {})
        self.launch_errors = dict(launch_errors or {})
        self.hang_modes = set(hang_modes)
        self.events: List[tuple] = []
        self.launch_configs = []
        self.open_handles = 0
        self._names = {collector.script: collector.name for collector in COLLECTORS}

    async def launch(self, config):
        assert self.open_handles == 0, "a browser is already running"
        if config.mode in self.launch_errors:
            self.events.append(("launch_failed", config.mode))
            raise self.launch_errors[config.mode]
        self.open_handles += 1
        self.launch_configs.append(config)
        self.events.append(("launch", config.mode))
        return FakeHandle(mode=config.mode, serial=len(self.launch_configs))

    async def navigate(self, handle, url, timeout_ms, wait_until="domcontentloaded"):
        self.events.append(("navigate", handle.mode, timeout_ms))
        if self.navigate_errors:
            error = self.navigate_errors.pop(0)
            if error is not None:
                raise error

    async def wait_for_load(self, handle, timeout_ms):
        self.events.append(("wait_for_load", timeout_ms))

    async def wait(self, handle, ms):
        self.events.append(("wait", ms))

    async def evaluate(self, handle, script, arg=None):
        name = self._names[script]
        self.events.append(("evaluate", name))
        if handle.mode in self.hang_modes:
            await asyncio.sleep(3600)
        if name in self.evaluate_errors:
            raise self.evaluate_errors.pop(name)
        return self.payloads.get(name, {})

    async def close(self, handle):
        if handle is None:
            self.events.append(("close", None))
            return
        self.open_handles -= 1
        self.events.append(("close", handle.mode))

    def count(self, kind: str) -> int:
        return sum(1 for event in self.events if event[0] == kind)


@pytest.fixture
def page_payloads() -> Dict[str, Any]:
    return {
        "colors": {
            "colors": [
                {"value": "rgb(255, 255, 255)", "property": "background-color", "context": "body", "count": 1},
                {"value": "rgb(17, 24, 39)", "property": "color", "context": "body", "count": 1},
                {"value": "rgb(37, 99, 235)", "property": "background-color", "context": "button", "count": 4},
                {
                    "value": "#2563eb",
                    "property": "custom-property",
                    "context": "css-variable",
                    "name": "--color-primary",
                    "count": 1,
                },
                {"value": "rgb(243, 244, 246)", "property": "background-color", "context": "div", "count": 40},
                {"value": "rgba(0, 0, 0, 0.5)", "property": "background-color", "context": "div", "count": 1},
            ]
        },
        "typography": {
            "styles": [
                {
                    "family": '"Inter", sans-serif',
                    "size": "16px",
                    "weight": "400",
                    "lineHeight": "24px",
                    "letterSpacing": "normal",
                    "context": "body",
                    "count": 12,
                },
                {
                    "family": "Inter, sans-serif",
                    "size": "48px",
                    "weight": "700",
                    "lineHeight": "56px",
                    "letterSpacing": "-0.96px",
                    "context": "heading-1",
                    "count": 1,
                },
            ],
            "rootFontSize": 16,
        },
        "spacing": {
            "values": [
                {"value": "16px", "property": "padding-top", "context": "div", "count": 30},
                {"value": "8px", "property": "padding-left", "context": "button", "count": 6},
            ],
            "rootFontSize": 16,
        },
        "borderRadius": {
            "values": [
                {"value": "8px", "context": "button", "count": 4},
                {"value": "4px", "context": "div", "count": 2},
            ]
        },
        "borders": {
            "borders": [
                {"width": "1px", "style": "solid", "color": "rgb(229, 231, 235)", "context": "input", "count": 3},
            ]
        },
        "shadows": {
            "shadows": [
                {"value": "rgba(0, 0, 0, 0.1) 0px 1px 3px 0px", "context": "card", "count": 5},
            ]
        },
        "logo": {
            "candidates": [
                {
                    "tag": "svg",
                    "src": None,
                    "alt": "Acme",
                    "hasLogoHint": True,
                    "inHeader": True,
                    "linksHome": True,
                    "rect": {"x": 24, "y": 16, "width": 120, "height": 32},
                }
            ],
            "viewport": {"width": 1440, "height": 900},
        },
    }


@pytest.fixture
def fake_driver(page_payloads) -> FakeDriver:
    return FakeDriver(payloads=page_payloads)


def scored(category: str, value: str, context: str, count: int = 1, **kwargs) -> Observation:
    """Build an observation scored with the default policy."""
    return ConfidenceScorer().score(Observation(category=category, value=value, context=context, count=count, **kwargs))


def with_confidence(category: str, value: str, confidence: Confidence, count: int = 1, **kwargs) -> Observation:
    return Observation(
        category=category,
        value=value,
        context=kwargs.pop("context", "div"),
        count=count,
        confidence=confidence,
        **kwargs,
    )
