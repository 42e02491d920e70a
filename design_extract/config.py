"""Extraction options and the constants they scale."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from design_extract.errors import ConfigurationError
from design_extract.scoring import ConfidencePolicy

DEFAULT_NAVIGATION_TIMEOUT_MS = 90000
NETWORK_IDLE_TIMEOUT_MS = 15000
HYDRATION_WAIT_MS = 3000
STABILIZATION_WAIT_MS = 1000
SLOW_MULTIPLIER = 3
DEFAULT_MAX_ELEMENTS = 5000

VIEWPORTS = {
    "desktop": {"width": 1440, "height": 900},
    "mobile": {"width": 390, "height": 844},
}

USER_AGENTS = {
    "desktop": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "mobile": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
}

LAUNCH_ARGS = ["--disable-blink-features=AutomationControlled"]
NO_SANDBOX_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


@dataclass(frozen=True)
class LaunchConfig:
    headless: bool
    viewport: Dict[str, int] = field(default_factory=lambda: dict(VIEWPORTS["desktop"]))
    user_agent: str = USER_AGENTS["desktop"]
    color_scheme: str = "light"
    is_mobile: bool = False
    args: List[str] = field(default_factory=lambda: list(LAUNCH_ARGS))

    @property
    def mode(self) -> str:
        return "headless" if self.headless else "visible"


@dataclass(frozen=True)
class ExtractionOptions:
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    dark_mode: bool = False
    mobile: bool = False
    slow: bool = False
    sandbox_disabled: bool = False
    max_elements: int = DEFAULT_MAX_ELEMENTS
    confidence_policy: ConfidencePolicy = field(default_factory=ConfidencePolicy)

    @property
    def multiplier(self) -> int:
        return SLOW_MULTIPLIER if self.slow else 1

    def scaled(self, ms: int) -> int:
        return int(ms * self.multiplier)

    @property
    def navigation_timeout(self) -> int:
        return self.scaled(self.navigation_timeout_ms)

    def validate(self) -> None:
        if not isinstance(self.navigation_timeout_ms, int) or self.navigation_timeout_ms <= 0:
            raise ConfigurationError(
                f"navigation_timeout_ms must be a positive integer (got {self.navigation_timeout_ms!r})"
            )
        if not isinstance(self.max_elements, int) or self.max_elements <= 0:
            raise ConfigurationError(f"max_elements must be a positive integer (got {self.max_elements!r})")

    def launch_config(self, headless: bool) -> LaunchConfig:
        profile = "mobile" if self.mobile else "desktop"
        args = list(LAUNCH_ARGS)
        if self.sandbox_disabled:
            args.extend(NO_SANDBOX_ARGS)
        return LaunchConfig(
            headless=headless,
            viewport=dict(VIEWPORTS[profile]),
            user_agent=USER_AGENTS[profile],
            color_scheme="dark" if self.dark_mode else "light",
            is_mobile=self.mobile,
            args=args,
        )


def normalize_url(raw: Optional[str]) -> str:
    url = (raw or "").strip()
    if not url:
        raise ConfigurationError("A target URL is required")
    if "://" not in url:
        url = "https://" + url
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        raise ConfigurationError(f"Unsupported URL scheme '{parsed.scheme}'", url=url)
    if not parsed.hostname or " " in parsed.netloc:
        raise ConfigurationError("URL has no host", url=url)
    return url


def load_confidence_policy(path: str) -> ConfidencePolicy:
    policy_path = Path(path)
    try:
        data: Any = json.loads(policy_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read confidence table {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Confidence table {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Confidence table {path} must be a JSON object")
    return ConfidencePolicy.from_mapping(data)
