#!/usr/bin/env python3
"""CLI for DayZero API management tasks.

Usage:
    python -m cli <command>

Commands:
    migrate         Run database migrations
    create-tables   Create missing tables straight from the models (local dev)
    sweep-lapses    Break every ACTIVE streak that missed a day, then exit
"""

import argparse
import asyncio
import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def cmd_migrate() -> int:
    """Run database migrations."""
    from alembic import command
    from alembic.config import Config

    logger.info("Running database migrations...")
    command.upgrade(Config("alembic.ini"), "head")
    logger.info("Migrations complete")
    return 0


def cmd_create_tables() -> int:
    """Create database tables from the SQLAlchemy models."""
    from core.database import create_all_tables, create_engine, dispose_engine

    async def _run() -> None:
        engine = create_engine()
        try:
            await create_all_tables(engine)
        finally:
            await dispose_engine(engine)

    logger.info("Creating database tables...")
    asyncio.run(_run())
    logger.info("Tables created")
    return 0


def cmd_sweep_lapses() -> int:
    """Run one lapse sweep across all users."""
    from core.database import create_engine, create_session_maker, dispose_engine
    from services.lapse_validator import sweep_all_users

    async def _run() -> int:
        engine = create_engine()
        try:
            return await sweep_all_users(create_session_maker(engine))
        finally:
            await dispose_engine(engine)

    broken = asyncio.run(_run())
    logger.info(f"Lapse sweep complete: {broken} streak(s) broken")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="DayZero API CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("migrate", help="Run database migrations")
    subparsers.add_parser(
        "create-tables",
        help="Create missing tables from the models (local dev)",
    )
    subparsers.add_parser(
        "sweep-lapses",
        help="Break every ACTIVE streak that missed a day",
    )

    args = parser.parse_args(argv)

    if args.command == "migrate":
        return cmd_migrate()
    elif args.command == "create-tables":
        return cmd_create_tables()
    elif args.command == "sweep-lapses":
        return cmd_sweep_lapses()
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
