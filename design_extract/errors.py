"""Error taxonomy for design token extraction."""

import asyncio
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


NAVIGATION_MARKERS = ("Timeout", "net::ERR_")


class ExtractionError(Exception):
    """Base error. Carries the target URL and the last browser mode attempted."""

    def __init__(self, message: str, url: Optional[str] = None, mode: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.mode = mode

    def __str__(self) -> str:
        parts = [self.message]
        if self.url:
            parts.append(f"url={self.url}")
        if self.mode:
            parts.append(f"mode={self.mode}")
        return " | ".join(parts)


class NavigationError(ExtractionError):
    """Timeout or network-level failure while reaching or sampling the target."""


class EvaluationError(ExtractionError):
    """A single category's in-page collection failed."""

    def __init__(
        self,
        message: str,
        category: Optional[str] = None,
        url: Optional[str] = None,
        mode: Optional[str] = None,
    ):
        super().__init__(message, url=url, mode=mode)
        self.category = category

    def __str__(self) -> str:
        base = super().__str__()
        if self.category:
            return f"[{self.category}] {base}"
        return base


class ConfigurationError(ExtractionError):
    """Invalid URL or unsupported option combination."""


def is_navigation_failure(exc: BaseException) -> bool:
    if isinstance(exc, NavigationError):
        return True
    if isinstance(exc, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return True
    if isinstance(exc, ExtractionError):
        return False
    message = str(exc)
    return any(marker in message for marker in NAVIGATION_MARKERS)
