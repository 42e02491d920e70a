"""Extraction orchestrator.

Drives one browser per attempt: navigate, wait for hydration and
stabilisation, fan out every collector against the loaded page, then score,
aggregate and assemble. Attempts follow a two-state machine; a navigation-class
failure in headless mode moves to a single visible-browser attempt, and
anything else propagates.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from design_extract.aggregate import (
    aggregate_borders,
    aggregate_colors,
    aggregate_radius,
    aggregate_shadows,
    aggregate_spacing,
    aggregate_typography,
    pick_logo,
)
from design_extract.assemble import assemble_result
from design_extract.browser import PlaywrightDriver
from design_extract.collectors import COLLECTORS, CategoryOutcome, Collector, run_collectors
from design_extract.config import (
    HYDRATION_WAIT_MS,
    NETWORK_IDLE_TIMEOUT_MS,
    STABILIZATION_WAIT_MS,
    ExtractionOptions,
    normalize_url,
)
from design_extract.errors import EvaluationError, ExtractionError, NavigationError
from design_extract.models import ExtractionResult
from design_extract.scoring import ConfidenceScorer

logger = logging.getLogger(__name__)


class BrowserMode(Enum):
    HEADLESS = "headless"
    VISIBLE = "visible"


# The only allowed transition. VISIBLE has no successor, so its failure is terminal.
TRANSITIONS: Dict[BrowserMode, BrowserMode] = {BrowserMode.HEADLESS: BrowserMode.VISIBLE}

AGGREGATORS: Dict[str, Callable[[Sequence[Any]], Any]] = {
    "colors": aggregate_colors,
    "typography": aggregate_typography,
    "spacing": aggregate_spacing,
    "borderRadius": aggregate_radius,
    "borders": aggregate_borders,
    "shadows": aggregate_shadows,
}


class TokenExtractor:
    def __init__(
        self,
        url: str,
        options: Optional[ExtractionOptions] = None,
        driver=None,
        collectors: Sequence[Collector] = COLLECTORS,
    ):
        self.options = options or ExtractionOptions()
        self.options.validate()
        self.url = normalize_url(url)
        self.driver = driver or PlaywrightDriver()
        self.collectors = collectors
        self.scorer = ConfidenceScorer(self.options.confidence_policy)
        self.attempts: List[BrowserMode] = []
        self.failures: Dict[str, EvaluationError] = {}

    async def extract(self) -> ExtractionResult:
        mode = BrowserMode.HEADLESS
        while True:
            self.attempts.append(mode)
            launch = self.options.launch_config(headless=mode is BrowserMode.HEADLESS)
            handle = None
            try:
                handle = await self.driver.launch(launch)
                return await self.extract_page(handle, mode)
            except NavigationError as exc:
                exc.url = exc.url or self.url
                exc.mode = mode.value
                next_mode = TRANSITIONS.get(mode)
                if next_mode is None:
                    logger.error("Extraction failed in %s mode: %s", mode.value, exc)
                    raise
                logger.warning("Bot detection suspected, retrying with %s browser: %s", next_mode.value, exc)
                mode = next_mode
            except ExtractionError as exc:
                exc.url = exc.url or self.url
                exc.mode = exc.mode or mode.value
                raise
            except Exception as exc:
                raise ExtractionError(str(exc), url=self.url, mode=mode.value) from exc
            finally:
                await self.driver.close(handle)

    async def extract_page(self, handle, mode: BrowserMode) -> ExtractionResult:
        opts = self.options
        self.failures = {}

        logger.info("Navigating to %s (%s)", self.url, mode.value)
        await self.driver.navigate(handle, self.url, opts.navigation_timeout)
        await self.driver.wait(handle, opts.scaled(HYDRATION_WAIT_MS))
        await self.driver.wait_for_load(handle, opts.scaled(NETWORK_IDLE_TIMEOUT_MS))
        await self.driver.wait(handle, opts.scaled(STABILIZATION_WAIT_MS))

        outcomes = await run_collectors(
            self.driver,
            handle,
            self.collectors,
            opts.max_elements,
            timeout=opts.navigation_timeout / 1000,
        )
        categories = self.build_categories(outcomes)
        result = assemble_result(self.url, categories)
        logger.info(
            "Extracted %d of %d categories from %s",
            sum(1 for v in result.to_dict() if v not in {"url", "extractedAt"}),
            len(self.collectors),
            self.url,
        )
        return result

    def build_categories(self, outcomes: Dict[str, CategoryOutcome]) -> Dict[str, Any]:
        categories: Dict[str, Any] = {}
        for name, outcome in outcomes.items():
            if not outcome.ok:
                self.failures[name] = outcome.error
                continue
            try:
                categories[name] = self.reduce(name, outcome.value)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Could not aggregate '%s': %s", name, exc)
                self.failures[name] = EvaluationError(str(exc), category=name, url=self.url)
        return categories

    def reduce(self, name: str, value: Any) -> Any:
        if name == "logo":
            return pick_logo(value["candidates"], value["viewport_width"])
        return AGGREGATORS[name](self.scorer.score_all(value))


async def extract_tokens(url: str, options: Optional[ExtractionOptions] = None, driver=None) -> ExtractionResult:
    return await TokenExtractor(url, options=options, driver=driver).extract()
