#!/usr/bin/env python3
"""Create the first administrator account."""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from clubevents.config import get_settings
from clubevents.context import build_context
from clubevents.db.enums import UserRole
from clubevents.errors import DuplicateUsername
from clubevents.identity import Identity
from clubevents.logging_setup import configure_logging, get_logger
from clubevents.schemas import UserCreate
from clubevents.services.user_service import create_user

BOOTSTRAP_IDENTITY = Identity(username="bootstrap", role=UserRole.ADMIN)


async def create_admin(username: str, email: str | None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger("create_admin")

    ctx = build_context(settings, logger)
    try:
        await create_user(
            ctx,
            BOOTSTRAP_IDENTITY,
            UserCreate(username=username, email=email, role=UserRole.ADMIN),
        )
    except DuplicateUsername:
        logger.error("admin_already_exists", username=username)
        return 1
    finally:
        await ctx.close()

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default=None)
    args = parser.parse_args()
    return asyncio.run(create_admin(args.username, args.email))


if __name__ == "__main__":
    sys.exit(main())
