#!/usr/bin/env python3
"""
Design Token Extraction - command line entry point.
Extracts confidence-scored design tokens from a website and prints them as JSON.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from design_extract.config import DEFAULT_NAVIGATION_TIMEOUT_MS, ExtractionOptions, load_confidence_policy
from design_extract.errors import ExtractionError
from design_extract.extractor import TokenExtractor
from design_extract.scoring import ConfidencePolicy


def build_options(args: argparse.Namespace) -> ExtractionOptions:
    policy = load_confidence_policy(args.confidence_table) if args.confidence_table else ConfidencePolicy()
    return ExtractionOptions(
        navigation_timeout_ms=args.timeout,
        dark_mode=args.dark_mode,
        mobile=args.mobile,
        slow=args.slow,
        sandbox_disabled=args.no_sandbox,
        confidence_policy=policy,
    )


async def main_async(args: argparse.Namespace) -> int:
    try:
        extractor = TokenExtractor(args.url, options=build_options(args))
        result = await extractor.extract()
    except ExtractionError as exc:
        print("✗ Extraction failed", file=sys.stderr)
        print(f"  Error: {exc.message}", file=sys.stderr)
        print(f"  URL: {exc.url or args.url}", file=sys.stderr)
        if exc.mode:
            print(f"  Mode: {exc.mode}", file=sys.stderr)
        return 1

    for category, error in extractor.failures.items():
        print(f"⚠ {category} skipped: {error.message}", file=sys.stderr)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract design tokens from a website")
    parser.add_argument("url", help="Target website URL (https:// is assumed when omitted)")
    parser.add_argument("--dark-mode", action="store_true", help="Emulate prefers-color-scheme: dark")
    parser.add_argument("--mobile", action="store_true", help="Extract from a mobile viewport")
    parser.add_argument("--slow", action="store_true", help="3x longer waits and timeouts for slow-loading sites")
    parser.add_argument("--no-sandbox", action="store_true", help="Disable the browser sandbox (Docker/CI)")
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_NAVIGATION_TIMEOUT_MS,
        help="Navigation timeout in milliseconds",
    )
    parser.add_argument(
        "--confidence-table",
        help="Path to a JSON confidence policy (context weights and thresholds)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
