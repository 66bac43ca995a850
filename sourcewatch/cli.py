"""
Command-line entry point.

Usage:
    sourcewatch [URL]

URL defaults to https://example.com.  Settings come from
``SOURCEWATCH_*`` environment variables or a ``.env`` file.
Exit code is 0 after a clean interrupt, 1 when the browser
session cannot be established.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

import dotenv

from sourcewatch import config
from sourcewatch.monitor import orchestrator
from sourcewatch.utils import logger

log = logger.create_logger("CLI")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (one optional positional URL)."""
    parser = argparse.ArgumentParser(
        prog="sourcewatch",
        description="Monitor a browser session's traffic and track reuse of captured sources values.",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=config.DEFAULT_TARGET_URL,
        help=f"Address to navigate to (default: {config.DEFAULT_TARGET_URL})",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run one monitoring session, and return its exit code."""
    dotenv.load_dotenv()
    args = build_parser().parse_args(argv)
    settings = config.get_settings()
    logger.set_debug(settings.debug)
    log.info("Target", {"url": args.url, "scope": settings.scope_label()})
    return asyncio.run(orchestrator.Orchestrator(args.url, settings).run())


if __name__ == "__main__":
    sys.exit(main())
