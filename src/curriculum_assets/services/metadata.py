"""Descriptor files mirrored next to the asset media.

``data.json`` and ``subtitle.json`` live in the asset folder and
``youtube_links.json`` in its ``youtube`` sub-folder. The database is the
source of truth; these files are a convenience copy.
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from curriculum_assets.exceptions import FileNotFound, IOFailure
from curriculum_assets.logging_config import logger
from curriculum_assets.schemas import Asset, SubtitleEntry, YouTubeLink
from curriculum_assets.services.storage import StorageService


@dataclass
class AssetDescriptor:
    """Asset fields as read back from the descriptor files."""

    curriculum: str
    month: str
    covers: List[str] = field(default_factory=list)
    subtitles: List[SubtitleEntry] = field(default_factory=list)
    youtube_links: List[YouTubeLink] = field(default_factory=list)


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    serialized = json.dumps(payload, ensure_ascii=False, indent=2)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(serialized)
        Path(tmp_name).replace(path)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _parse_subtitle(item: Dict[str, Any]) -> SubtitleEntry | None:
    page = item.get("page_num", item.get("pageNum"))
    sentence = item.get("sentence_num", item.get("sentenceNum"))
    text = item.get("text")
    if page is None or sentence is None or text is None:
        return None
    try:
        return SubtitleEntry(page_num=page, sentence_num=sentence, text=text)
    except ValidationError:
        return None


class MetadataWriter:
    """Writes and reads the per-asset descriptor files."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    def write_metadata(self, asset: Asset) -> None:
        """Serialize ``asset`` into its descriptor files, replacing old ones.

        Raises:
            IOFailure: If any descriptor cannot be written
        """
        subtitles = [s.model_dump() for s in asset.subtitles]
        data = {
            "project": asset.curriculum,
            "month": asset.month,
            "book_id": asset.book_id,
            "cover": list(asset.covers),
            "subtitle": subtitles,
        }
        youtube_links = [link.model_dump() for link in asset.youtube_links]

        try:
            _write_json(self.storage.data_json_path(asset.curriculum, asset.month), data)
            _write_json(self.storage.subtitle_json_path(asset.curriculum, asset.month), subtitles)
            _write_json(
                self.storage.youtube_links_json_path(asset.curriculum, asset.month),
                youtube_links,
            )
        except OSError as e:
            raise IOFailure(
                f"Failed to write metadata for {asset.curriculum} - {asset.month}: {e}"
            ) from e

        logger.info(f"Wrote asset files for: {asset.curriculum} - {asset.month}")

    def read_metadata(self, curriculum: str, month: str) -> AssetDescriptor:
        """Parse the descriptor files of one asset folder.

        Subtitles come from ``subtitle.json`` when present, otherwise from the
        ``subtitle`` list in ``data.json``. Malformed subtitle items are skipped.

        Raises:
            FileNotFound: If ``data.json`` is missing
            IOFailure: If a descriptor cannot be read or parsed
        """
        data_path = self.storage.data_json_path(curriculum, month)
        if not data_path.is_file():
            raise FileNotFound(f"data.json not found: {data_path}")

        subtitle_path = self.storage.subtitle_json_path(curriculum, month)
        youtube_path = self.storage.youtube_links_json_path(curriculum, month)
        try:
            data = _read_json(data_path)
            if not isinstance(data, dict):
                raise ValueError("data.json must contain an object")
            raw_subtitles = (
                _read_json(subtitle_path) if subtitle_path.is_file() else data.get("subtitle", [])
            )
            raw_links = _read_json(youtube_path) if youtube_path.is_file() else []
        except (OSError, ValueError) as e:
            raise IOFailure(f"Failed to read metadata for {curriculum} - {month}: {e}") from e
        if not isinstance(raw_subtitles, list):
            raw_subtitles = []
        if not isinstance(raw_links, list):
            raw_links = []

        subtitles = []
        for item in raw_subtitles or []:
            entry = _parse_subtitle(item) if isinstance(item, dict) else None
            if entry is None:
                logger.warning(f"Skipping malformed subtitle in {curriculum} - {month}: {item}")
                continue
            subtitles.append(entry)

        youtube_links = []
        for item in raw_links or []:
            if not isinstance(item, dict) or not item.get("thumbnail_file") or not item.get("youtube_url"):
                logger.warning(f"Skipping malformed YouTube link in {curriculum} - {month}: {item}")
                continue
            youtube_links.append(YouTubeLink(
                thumbnail_file=item["thumbnail_file"],
                youtube_url=item["youtube_url"],
                title=item.get("title"),
            ))

        return AssetDescriptor(
            curriculum=curriculum,
            month=month,
            covers=[c for c in data.get("cover") or [] if isinstance(c, str)],
            subtitles=subtitles,
            youtube_links=youtube_links,
        )
