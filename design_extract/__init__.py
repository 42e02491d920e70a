"""
Design token extraction from live websites.

Drives a headless Chromium through Playwright, samples computed styles in the
page and reduces them to confidence-scored palettes, type scales, spacing,
radius, border and shadow sets plus a logo candidate.

Quick start::

    import asyncio
    from design_extract import extract_tokens

    result = asyncio.run(extract_tokens("example.com"))
    result.to_dict()
"""

__version__ = "0.4.0"

from design_extract.config import ExtractionOptions
from design_extract.errors import (
    ConfigurationError,
    EvaluationError,
    ExtractionError,
    NavigationError,
)
from design_extract.extractor import BrowserMode, TokenExtractor, extract_tokens
from design_extract.models import Confidence, ExtractionResult
from design_extract.scoring import ConfidencePolicy

__all__ = [
    "extract_tokens",
    "TokenExtractor",
    "BrowserMode",
    "ExtractionOptions",
    "ConfidencePolicy",
    "Confidence",
    "ExtractionResult",
    "ExtractionError",
    "NavigationError",
    "EvaluationError",
    "ConfigurationError",
    "__version__",
]
