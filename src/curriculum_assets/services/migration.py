"""Rebuild records from asset folders and report database/disk drift."""

from dataclasses import dataclass, field
from typing import List, Tuple

from curriculum_assets.exceptions import AssetError
from curriculum_assets.logging_config import logger
from curriculum_assets.services.asset_store import AssetStore


@dataclass
class MigrationReport:
    migrated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class DriftReport:
    # (asset id, relative path) pairs recorded in the database but absent on disk
    missing_files: List[Tuple[str, str]] = field(default_factory=list)
    # "curriculum/month" folders with no record
    orphan_folders: List[str] = field(default_factory=list)
    # asset ids whose folder is gone
    missing_folders: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.missing_files or self.orphan_folders or self.missing_folders)


class AssetMigrator:
    """Walks ``asset/{curriculum}/{month}`` folders and reconciles them with the store."""

    def __init__(self, store: AssetStore):
        self.store = store
        self.storage = store.storage

    async def migrate(self, replace: bool = False) -> MigrationReport:
        """Register every asset folder that has a ``data.json``.

        Folders that already have a record are skipped unless ``replace`` is
        set. A failing folder is recorded and the walk continues.
        """
        report = MigrationReport()
        known = {(a.curriculum, a.month) for a in await self.store.list()}

        for curriculum, month, _path in self.storage.iter_asset_dirs():
            key = f"{curriculum}/{month}"
            if (curriculum, month) in known and not replace:
                logger.info(f"Skipping {key}: record already exists")
                report.skipped.append(key)
                continue
            try:
                await self.store.register_existing(curriculum, month, replace=replace)
            except AssetError as e:
                logger.error(f"Failed to migrate {key}: {e}")
                report.failed.append((key, str(e)))
                continue
            report.migrated.append(key)

        logger.info(
            f"Migration completed: {len(report.migrated)} migrated, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )
        return report

    async def scan_drift(self) -> DriftReport:
        """Compare every record with the folder tree without changing either."""
        report = DriftReport()
        assets = await self.store.list()
        recorded = {(a.curriculum, a.month) for a in assets}

        for asset in assets:
            if not self.storage.asset_dir(asset.curriculum, asset.month).is_dir():
                report.missing_folders.append(asset.id)
                continue
            for relative in asset.referenced_files():
                if not self.storage.resolve_relative(asset.curriculum, asset.month, relative).is_file():
                    report.missing_files.append((asset.id, relative))

        for curriculum, month, _path in self.storage.iter_asset_dirs():
            if (curriculum, month) not in recorded:
                report.orphan_folders.append(f"{curriculum}/{month}")

        if not report.clean:
            logger.warning(
                f"drift: {len(report.missing_files)} missing files, "
                f"{len(report.orphan_folders)} orphan folders, "
                f"{len(report.missing_folders)} missing folders"
            )
        return report
