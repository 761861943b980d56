"""Asset folder layout on the local file system."""

import shutil
from enum import Enum
from pathlib import Path

from curriculum_assets.config.settings import get_settings
from curriculum_assets.exceptions import IOFailure
from curriculum_assets.logging_config import logger

DATA_JSON = "data.json"
SUBTITLE_JSON = "subtitle.json"
YOUTUBE_LINKS_JSON = "youtube_links.json"


class AssetCategory(str, Enum):
    """Per-asset media sub-folders."""
    COVER = "cover"
    SUBTITLE = "subtitle"
    THUMBNAIL = "thumbnail"
    YOUTUBE = "youtube"


class StorageService:
    """Service for resolving and managing asset folders."""

    def __init__(self, asset_root: str | Path, staging_dir: str = "uploads"):
        """Initialize storage service with the asset root.

        Args:
            asset_root: Directory holding ``{curriculum}/{month}`` folders
            staging_dir: Upload staging directory name under ``asset_root``
        """
        self.asset_root = Path(asset_root)
        self.staging_dir_name = staging_dir
        self.asset_root.mkdir(parents=True, exist_ok=True)
        self.staging_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"StorageService initialized with asset_root: {self.asset_root}")

    @property
    def staging_path(self) -> Path:
        return self.asset_root / self.staging_dir_name

    def asset_dir(self, curriculum: str, month: str) -> Path:
        return self.asset_root / curriculum / month

    def category_dir(self, curriculum: str, month: str, category: AssetCategory) -> Path:
        return self.asset_dir(curriculum, month) / AssetCategory(category).value

    def data_json_path(self, curriculum: str, month: str) -> Path:
        return self.asset_dir(curriculum, month) / DATA_JSON

    def subtitle_json_path(self, curriculum: str, month: str) -> Path:
        return self.asset_dir(curriculum, month) / SUBTITLE_JSON

    def youtube_links_json_path(self, curriculum: str, month: str) -> Path:
        return self.category_dir(curriculum, month, AssetCategory.YOUTUBE) / YOUTUBE_LINKS_JSON

    def resolve_relative(self, curriculum: str, month: str, relative_path: str) -> Path:
        """Absolute location of a path stored on an asset record."""
        return self.asset_dir(curriculum, month) / relative_path

    def create_asset_folders(self, curriculum: str, month: str) -> Path:
        """Create the asset folder and every category sub-folder.

        Existing folders are left as they are.

        Raises:
            IOFailure: If a directory cannot be created
        """
        base = self.asset_dir(curriculum, month)
        try:
            for category in AssetCategory:
                self.category_dir(curriculum, month, category).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Failed to create folders for {base}: {e}") from e
        logger.debug(f"Created folder structure for: {base}")
        return base

    def remove_asset_folder(self, curriculum: str, month: str) -> bool:
        """Delete the whole asset folder subtree.

        Returns:
            True if a folder was removed, False if there was none

        Raises:
            IOFailure: If the folder exists but cannot be removed
        """
        base = self.asset_dir(curriculum, month)
        if not base.is_dir():
            logger.warning(f"Folder not found for deletion: {base}")
            return False
        try:
            shutil.rmtree(base)
        except OSError as e:
            raise IOFailure(f"Failed to delete folder {base}: {e}") from e
        logger.info(f"Deleted folder: {base}")
        return True

    def iter_asset_dirs(self):
        """Yield ``(curriculum, month, path)`` for every asset folder on disk."""
        if not self.asset_root.is_dir():
            return
        for curriculum_dir in sorted(self.asset_root.iterdir()):
            if not curriculum_dir.is_dir() or curriculum_dir.name == self.staging_dir_name:
                continue
            for month_dir in sorted(curriculum_dir.iterdir()):
                if month_dir.is_dir():
                    yield curriculum_dir.name, month_dir.name, month_dir


def get_storage_service() -> StorageService:
    """Factory function to get storage service instance.

    Returns:
        StorageService instance configured from settings
    """
    settings = get_settings()
    return StorageService(asset_root=settings.asset_root, staging_dir=settings.staging_dir)
