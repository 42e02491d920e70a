"""Tests for the extraction orchestrator and its headless -> visible retry."""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from design_extract import extract_tokens
from design_extract.config import ExtractionOptions
from design_extract.errors import ConfigurationError, EvaluationError, ExtractionError, NavigationError
from design_extract.extractor import BrowserMode, TokenExtractor
from design_extract.models import Confidence

from tests.conftest import FakeDriver

URL = "https://example.com"


def timeout():
    return NavigationError("Timeout 90000ms exceeded")


class TestSuccessfulExtraction:
    @pytest.mark.asyncio
    async def test_full_result(self, fake_driver):
        result = await extract_tokens("example.com", driver=fake_driver)

        assert result.url == URL
        assert [e.color for e in result.colors.palette] == ["#2563eb", "#ffffff", "#111827"]
        assert result.colors.palette[0].count == 5
        assert result.colors.palette[0].confidence is Confidence.HIGH
        assert dict(result.colors.semantic) == {
            "primary": "#2563eb",
            "background": "#ffffff",
            "text": "#111827",
        }
        assert [s.size for s in result.typography.styles] == ["16px", "48px"]
        assert [f.family for f in result.typography.families] == ["Inter"]
        assert [v.px for v in result.spacing.common_values] == ["16px", "8px"]
        assert [v.value for v in result.border_radius.values] == ["8px"]
        assert result.borders.combinations[0].color == "#e5e7eb"
        assert result.shadows[0].confidence is Confidence.MEDIUM
        assert result.logo.source == "svg"
        assert result.logo.confidence is Confidence.HIGH

    @pytest.mark.asyncio
    async def test_page_lifecycle(self, fake_driver):
        await TokenExtractor(URL, driver=fake_driver).extract()

        assert fake_driver.events[:5] == [
            ("launch", "headless"),
            ("navigate", "headless", 90000),
            ("wait", 3000),
            ("wait_for_load", 15000),
            ("wait", 1000),
        ]
        assert fake_driver.count("evaluate") == 7
        assert fake_driver.events[-1] == ("close", "headless")

    @pytest.mark.asyncio
    async def test_slow_mode_scales_timeouts_and_waits(self, fake_driver):
        await TokenExtractor(URL, ExtractionOptions(slow=True), driver=fake_driver).extract()
        assert fake_driver.events[1:5] == [
            ("navigate", "headless", 270000),
            ("wait", 9000),
            ("wait_for_load", 45000),
            ("wait", 3000),
        ]

    @pytest.mark.asyncio
    async def test_dark_mode_is_applied_at_launch(self, fake_driver):
        await TokenExtractor(URL, ExtractionOptions(dark_mode=True), driver=fake_driver).extract()
        assert fake_driver.launch_configs[0].color_scheme == "dark"

    @pytest.mark.asyncio
    async def test_empty_page_yields_only_url_and_timestamp(self):
        result = await TokenExtractor(URL, driver=FakeDriver()).extract()
        assert set(result.to_dict()) == {"url", "extractedAt"}


class TestRetry:
    @pytest.mark.asyncio
    async def test_navigation_timeout_retries_visible_once(self, page_payloads):
        driver = FakeDriver(payloads=page_payloads, navigate_errors=[timeout(), None])
        extractor = TokenExtractor(URL, driver=driver)

        result = await extractor.extract()

        assert result.colors is not None
        assert extractor.attempts == [BrowserMode.HEADLESS, BrowserMode.VISIBLE]
        assert [c.headless for c in driver.launch_configs] == [True, False]
        assert driver.events[:4] == [
            ("launch", "headless"),
            ("navigate", "headless", 90000),
            ("close", "headless"),
            ("launch", "visible"),
        ]
        assert driver.count("launch") == driver.count("close") == 2

    @pytest.mark.asyncio
    async def test_visible_failure_is_terminal(self):
        driver = FakeDriver(navigate_errors=[timeout(), timeout()])
        with pytest.raises(NavigationError) as excinfo:
            await TokenExtractor(URL, driver=driver).extract()

        assert excinfo.value.mode == "visible"
        assert excinfo.value.url == URL
        assert driver.count("launch") == driver.count("close") == 2

    @pytest.mark.asyncio
    async def test_collector_timeout_triggers_retry(self, page_payloads):
        driver = FakeDriver(payloads=page_payloads, evaluate_errors={"colors": timeout()})
        extractor = TokenExtractor(URL, driver=driver)

        result = await extractor.extract()

        assert extractor.attempts == [BrowserMode.HEADLESS, BrowserMode.VISIBLE]
        first_close = driver.events.index(("close", "headless"))
        assert sum(1 for e in driver.events[:first_close] if e[0] == "evaluate") == 7
        assert result.colors is not None

    @pytest.mark.asyncio
    async def test_failed_visible_launch_reports_url_and_mode(self):
        driver = FakeDriver(
            navigate_errors=[timeout()],
            launch_errors={
                "visible": PlaywrightError("Looks like you launched a headed browser without having a XServer running.")
            },
        )
        with pytest.raises(ExtractionError) as excinfo:
            await TokenExtractor(URL, driver=driver).extract()

        assert excinfo.value.url == URL
        assert excinfo.value.mode == "visible"
        assert isinstance(excinfo.value.__cause__, PlaywrightError)
        assert driver.open_handles == 0
        assert driver.events[-2:] == [("launch_failed", "visible"), ("close", None)]

    @pytest.mark.asyncio
    async def test_stalled_collectors_trigger_retry(self, page_payloads):
        driver = FakeDriver(payloads=page_payloads, hang_modes={"headless"})
        extractor = TokenExtractor(URL, ExtractionOptions(navigation_timeout_ms=100), driver=driver)

        result = await asyncio.wait_for(extractor.extract(), 10)

        assert extractor.attempts == [BrowserMode.HEADLESS, BrowserMode.VISIBLE]
        assert result.colors is not None
        assert driver.open_handles == 0

    @pytest.mark.asyncio
    async def test_stalled_collectors_in_both_modes_fail(self):
        driver = FakeDriver(hang_modes={"headless", "visible"})
        with pytest.raises(NavigationError) as excinfo:
            await asyncio.wait_for(
                TokenExtractor(URL, ExtractionOptions(navigation_timeout_ms=100), driver=driver).extract(),
                10,
            )

        assert excinfo.value.mode == "visible"
        assert driver.count("launch") == driver.count("close") == 2

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self):
        driver = FakeDriver(navigate_errors=[RuntimeError("boom")])
        with pytest.raises(ExtractionError) as excinfo:
            await TokenExtractor(URL, driver=driver).extract()

        assert not isinstance(excinfo.value, NavigationError)
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert excinfo.value.mode == "headless"
        assert driver.count("launch") == driver.count("close") == 1

    @pytest.mark.asyncio
    async def test_configuration_errors_never_launch(self, fake_driver):
        with pytest.raises(ConfigurationError):
            TokenExtractor("ftp://example.com", driver=fake_driver)
        assert fake_driver.events == []


class TestPartialResults:
    @pytest.mark.asyncio
    async def test_failed_category_is_omitted(self, page_payloads):
        driver = FakeDriver(payloads=page_payloads, evaluate_errors={"typography": EvaluationError("boom")})
        extractor = TokenExtractor(URL, driver=driver)

        result = await extractor.extract()

        assert result.typography is None
        assert "typography" not in result.to_dict()
        assert result.colors is not None
        assert result.spacing is not None
        assert set(extractor.failures) == {"typography"}
        assert extractor.attempts == [BrowserMode.HEADLESS]

    @pytest.mark.asyncio
    async def test_malformed_logo_payload_is_a_category_failure(self, page_payloads):
        page_payloads["logo"] = {"candidates": [{"rect": "oops"}], "viewport": {"width": 1440}}
        extractor = TokenExtractor(URL, driver=FakeDriver(payloads=page_payloads))

        result = await extractor.extract()

        assert result.logo is None
        assert "logo" in extractor.failures
        assert result.colors is not None
