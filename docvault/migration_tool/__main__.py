"""Run the legacy document migration, then verify it.

Usage:
    python -m docvault.migration_tool [--legacy-db URL] [--legacy-uploads DIR] [--skip-verify]

Exits 0 when verification passes (or is skipped after a clean run), 1 otherwise.
"""

import argparse
import asyncio
import logging
import sys

from docvault.config import settings
from docvault.database import async_session_factory, init_db
from docvault.migration_tool.legacy_source import LegacyDocumentSource
from docvault.migration_tool.service import MigrationStatus, MigrationTool

logger = logging.getLogger("docvault.migration")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate documents from the legacy store")
    parser.add_argument("--legacy-db", default=settings.legacy_database_url)
    parser.add_argument("--legacy-uploads", default=settings.legacy_upload_dir)
    parser.add_argument("--skip-verify", action="store_true")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    await init_db()
    legacy = LegacyDocumentSource(args.legacy_db, args.legacy_uploads)
    tool = MigrationTool(settings, legacy, async_session_factory)
    try:
        result = await tool.migrate()
        logger.info(
            "Migration result: total=%d success=%d failed=%d skipped=%d",
            result.total,
            result.success,
            result.failed,
            result.skipped,
        )
        if args.skip_verify:
            return 0 if result.status == MigrationStatus.COMPLETED else 1

        verification = await tool.verify()
        logger.info("Migration verified: %s", verification.ok)
        return 0 if verification.ok else 1
    finally:
        await legacy.close()


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    )
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
