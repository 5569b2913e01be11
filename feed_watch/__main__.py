"""Command-line entry point for checking feeds for new entries."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, load_config
from .digest import Digest, run, write_digest
from .state import StateError

LOGGER = logging.getLogger("feed_watch")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Check RSS/Atom feeds for entries published since the last run")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--feeds", type=Path, help="Override the YAML feed list path")
    parser.add_argument("--state", type=Path, help="Override the watermark state file path")
    parser.add_argument("--output", type=Path, help="Override the new-items JSON output path")
    parser.add_argument("--digest", type=Path, help="Also write a markdown digest of new items to this path")
    notify = parser.add_mutually_exclusive_group()
    notify.add_argument("--notify", dest="notify", action="store_true", default=None, help="Email the digest")
    notify.add_argument("--no-notify", dest="notify", action="store_false", help="Do not email the digest")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = load_config()
        if args.feeds:
            config = replace(config, feeds_file=args.feeds)
        if args.state:
            config = replace(config, state_file=args.state)
        if args.output:
            config = replace(config, output_file=args.output)
        if args.notify is not None:
            config = replace(config, notify=args.notify)
        result = run(config)
    except (ConfigError, StateError) as exc:
        LOGGER.error("Run aborted: %s", exc)
        return 1

    if args.digest and result.items:
        write_digest(Digest(created_at=datetime.now(timezone.utc), items=result.items), args.digest)
    print(f"{len(result.items)} new items")
    return 0


if __name__ == "__main__":
    sys.exit(main())
