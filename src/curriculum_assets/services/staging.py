"""Upload staging area: ``asset/uploads/<timestamp>_<sanitized-filename>``."""

import time
from dataclasses import dataclass
from pathlib import Path

from curriculum_assets.exceptions import IOFailure, ValidationFailure
from curriculum_assets.logging_config import logger
from curriculum_assets.services.file_utils import next_free_path, sanitize_filename
from curriculum_assets.services.storage import StorageService

ALLOWED_IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".webp")


@dataclass(frozen=True)
class StagedFile:
    path: Path
    reference: str
    original_filename: str
    size: int


class StagingArea:
    """Owns uploaded files until they are relocated into an asset folder."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    @property
    def root(self) -> Path:
        return self.storage.staging_path

    def stage(self, filename: str, content: bytes, images_only: bool = True) -> StagedFile:
        """Write an uploaded file into the staging area.

        Args:
            filename: Client supplied file name
            content: File bytes
            images_only: Reject anything that is not a jpg, png or webp image

        Returns:
            StagedFile with the absolute path and the reference to put in requests

        Raises:
            ValidationFailure: If the file type is not allowed
            IOFailure: If the file cannot be written
        """
        safe_name = sanitize_filename(filename)
        if images_only and Path(safe_name).suffix.lower() not in ALLOWED_IMAGE_SUFFIXES:
            raise ValidationFailure(f"File type not allowed: {filename}")

        target = next_free_path(self.root / f"{int(time.time())}_{safe_name}")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            raise IOFailure(f"Failed to stage {filename}: {e}") from e

        logger.info(f"File saved to: {target} ({len(content)} bytes)")
        return StagedFile(
            path=target,
            reference=f"/asset/{self.storage.staging_dir_name}/{target.name}",
            original_filename=filename,
            size=len(content),
        )

    def is_staged_reference(self, reference: str) -> bool:
        return self._strip_prefix(reference) is not None

    def path_for(self, reference: str) -> Path:
        """Map a staging reference to its absolute path.

        Raises:
            ValidationFailure: If ``reference`` does not point into the staging area
        """
        name = self._strip_prefix(reference)
        if not name:
            raise ValidationFailure(f"Not a staging reference: {reference}")
        return self.root / name

    def discard(self, reference: str) -> bool:
        """Remove a staged file that will not be used."""
        path = self.path_for(reference)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise IOFailure(f"Failed to discard staged file {path}: {e}") from e
        logger.info(f"Discarded staged file: {path}")
        return True

    def _strip_prefix(self, reference: str) -> str | None:
        staging = self.storage.staging_dir_name
        prefixes = (f"/asset/{staging}/", f"asset/{staging}/", f"{staging}/")
        for prefix in prefixes:
            if reference.startswith(prefix):
                name = reference[len(prefix):]
                if name and "/" not in name and name not in (".", ".."):
                    return name
                return None
        return None
