"""Run one market scan from the command line and print the result."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Make the project root importable when run as a plain script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import env  # noqa: E402,F401
from datahub.errors import ScannerError  # noqa: E402
from engine.report import render_snapshot  # noqa: E402
from engine.snapshot import analyze_market  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan the NSE universe for trade candidates.")
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        snapshot = asyncio.run(analyze_market())
    except ScannerError as exc:
        logger.error("Market scan failed: %s", exc)
        return 1

    if args.format == "json":
        print(json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(render_snapshot(snapshot))
    return 0


if __name__ == "__main__":
    sys.exit(main())
