#!/usr/bin/env python3
"""Run one deadline sweep, e.g. from cron once a day."""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from clubevents.config import get_settings
from clubevents.context import build_context
from clubevents.errors import StorageFailure
from clubevents.logging_setup import configure_logging, get_logger
from clubevents.services.sweep_service import run_sweep


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="deadline date to sweep (YYYY-MM-DD, default: today)",
    )
    return parser.parse_args(argv)


async def sweep_once(sweep_date: date) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger("run_sweep")

    ctx = build_context(settings, logger)
    try:
        result = await run_sweep(ctx, sweep_date)
    except StorageFailure:
        logger.error("sweep_aborted", sweep_date=sweep_date.isoformat())
        return 1
    finally:
        await ctx.close()

    return 1 if result.events_failed else 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    return asyncio.run(sweep_once(args.date or date.today()))


if __name__ == "__main__":
    sys.exit(main())
