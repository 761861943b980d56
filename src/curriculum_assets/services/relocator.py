"""Move staged uploads into their permanent asset folder.

``relocate`` consumes a staged path and hands back the relative path now
owned by the asset folder; the staged copy is gone once it returns.
"""

import os
import shutil
from enum import Enum
from pathlib import Path

from curriculum_assets.exceptions import FileNotFound, IOFailure, ValidationFailure
from curriculum_assets.logging_config import logger
from curriculum_assets.services.file_utils import is_within, next_free_path, sanitize_filename
from curriculum_assets.services.storage import AssetCategory, StorageService


class CollisionPolicy(str, Enum):
    """What to do when the destination name is already taken."""
    RENAME = "rename"
    OVERWRITE = "overwrite"


class FileRelocator:
    """Relocates staged files into ``asset/{curriculum}/{month}/{category}/``."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    def relocate(
        self,
        staged_path: str | Path,
        curriculum: str,
        month: str,
        category: AssetCategory | str,
        policy: CollisionPolicy = CollisionPolicy.RENAME,
    ) -> str:
        """Move one staged file into the asset folder.

        With ``RENAME`` an existing destination is kept and the new file gets
        a ``-N`` suffix; with ``OVERWRITE`` the existing file is replaced.

        Args:
            staged_path: File inside the staging area
            curriculum: Asset curriculum
            month: Asset month
            category: Target sub-folder
            policy: Collision handling

        Returns:
            Path relative to the asset folder, e.g. ``cover/1700000000_cover.png``

        Raises:
            ValidationFailure: If the file is not inside the staging area
            FileNotFound: If the staged file does not exist
            IOFailure: If the directory or move operation fails
        """
        category = AssetCategory(category)
        staged = Path(staged_path)

        if not is_within(staged, self.storage.staging_path):
            raise ValidationFailure(f"File is not in the staging area: {staged}")
        if not staged.is_file():
            raise FileNotFound(f"Staged file not found: {staged}")

        target_dir = self.storage.category_dir(curriculum, month, category)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Failed to create {target_dir}: {e}") from e

        target = target_dir / sanitize_filename(staged.name)
        if policy == CollisionPolicy.RENAME:
            target = next_free_path(target)

        try:
            if target.exists():
                self._replace(staged, target)
                logger.info(f"Replaced existing file: {target}")
            else:
                shutil.move(str(staged), str(target))
        except FileNotFoundError as e:
            raise FileNotFound(f"Staged file vanished during move: {staged}") from e
        except OSError as e:
            raise IOFailure(f"Failed to move {staged} to {target}: {e}") from e

        relative = f"{category.value}/{target.name}"
        logger.info(f"Moved file from {staged} to {target}")
        return relative

    @staticmethod
    def _replace(staged: Path, target: Path) -> None:
        """Swap ``staged`` in over ``target``; ``target`` is untouched on failure."""
        incoming = next_free_path(target.with_name(f".{target.name}.incoming"))
        shutil.move(str(staged), str(incoming))
        try:
            os.replace(incoming, target)
        except OSError:
            shutil.move(str(incoming), str(staged))
            raise
