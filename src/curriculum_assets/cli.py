"""Command line entry point: ``curriculum-assets {init-db,migrate,drift}``."""

import argparse
import asyncio
from typing import List, Optional

from curriculum_assets.config.settings import get_settings
from curriculum_assets.exceptions import AssetError, ConfigurationError
from curriculum_assets.logging_config import configure_logging, logger
from curriculum_assets.models.database import async_session_maker, init_db
from curriculum_assets.services.asset_store import get_asset_store
from curriculum_assets.services.migration import AssetMigrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="curriculum-assets",
        description="Maintain curriculum asset records and folders",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create database tables")

    migrate = sub.add_parser("migrate", help="Create records for existing asset folders")
    migrate.add_argument(
        "--replace",
        action="store_true",
        help="Replace records that already exist instead of skipping them",
    )

    sub.add_parser("drift", help="Report disagreement between records and folders")
    return parser


async def _init_db() -> int:
    await init_db()
    logger.info(f"Database initialized: {get_settings().database_url}")
    return 0


async def _migrate(replace: bool) -> int:
    await init_db()
    async with async_session_maker() as session:
        report = await AssetMigrator(get_asset_store(session)).migrate(replace=replace)
    print(
        f"migrated={len(report.migrated)} skipped={len(report.skipped)} failed={len(report.failed)}"
    )
    for key, reason in report.failed:
        print(f"  FAILED {key}: {reason}")
    return 0 if report.ok else 1


async def _drift() -> int:
    async with async_session_maker() as session:
        report = await AssetMigrator(get_asset_store(session)).scan_drift()
    for asset_id, relative in report.missing_files:
        print(f"missing file  {asset_id}  {relative}")
    for folder in report.orphan_folders:
        print(f"orphan folder {folder}")
    for asset_id in report.missing_folders:
        print(f"missing folder {asset_id}")
    if report.clean:
        print("no drift")
    return 0 if report.clean else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level)

    try:
        if args.command == "init-db":
            return asyncio.run(_init_db())
        if args.command == "migrate":
            return asyncio.run(_migrate(args.replace))
        return asyncio.run(_drift())
    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    except AssetError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
