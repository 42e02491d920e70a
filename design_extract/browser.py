"""Playwright-backed browser driver.

The orchestrator only talks to a driver through ``launch``, ``navigate``,
``wait_for_load``, ``wait``, ``evaluate`` and ``close``; tests substitute a
fake with the same methods.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from design_extract.config import LaunchConfig
from design_extract.errors import EvaluationError, NavigationError, is_navigation_failure

logger = logging.getLogger(__name__)


@dataclass
class BrowserHandle:
    playwright: Playwright
    browser: Browser
    context: BrowserContext
    page: Page
    mode: str
    closed: bool = False


class PlaywrightDriver:
    async def launch(self, config: LaunchConfig) -> BrowserHandle:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=config.headless, args=config.args)
            context = await browser.new_context(
                viewport=config.viewport,
                device_scale_factor=1,
                user_agent=config.user_agent,
                color_scheme=config.color_scheme,
                is_mobile=config.is_mobile,
                has_touch=config.is_mobile,
            )
            page = await context.new_page()
        except BaseException:
            await playwright.stop()
            raise
        logger.info("Launched Chromium (%s mode)", config.mode)
        return BrowserHandle(playwright=playwright, browser=browser, context=context, page=page, mode=config.mode)

    async def navigate(
        self,
        handle: BrowserHandle,
        url: str,
        timeout_ms: int,
        wait_until: str = "domcontentloaded",
    ) -> None:
        try:
            await handle.page.goto(url, wait_until=wait_until, timeout=timeout_ms)
            await handle.page.wait_for_selector("body", state="attached", timeout=timeout_ms)
        except PlaywrightError as exc:
            if is_navigation_failure(exc):
                raise NavigationError(exc.message, url=url, mode=handle.mode) from exc
            raise

    async def wait_for_load(self, handle: BrowserHandle, timeout_ms: int) -> None:
        """Best-effort network idle; pages with long-polling never get there."""
        try:
            await handle.page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Network did not go idle within %d ms; continuing", timeout_ms)

    async def wait(self, handle: BrowserHandle, ms: int) -> None:
        await handle.page.wait_for_timeout(ms)

    async def evaluate(self, handle: BrowserHandle, script: str, arg: Any = None) -> Any:
        try:
            return await handle.page.evaluate(script, arg)
        except PlaywrightError as exc:
            if is_navigation_failure(exc):
                raise NavigationError(exc.message, url=handle.page.url, mode=handle.mode) from exc
            raise EvaluationError(exc.message, url=handle.page.url, mode=handle.mode) from exc

    async def close(self, handle: Optional[BrowserHandle]) -> None:
        if handle is None or handle.closed:
            return
        handle.closed = True
        try:
            await handle.context.close()
            await handle.browser.close()
        finally:
            await handle.playwright.stop()
        logger.debug("Closed browser (%s mode)", handle.mode)
