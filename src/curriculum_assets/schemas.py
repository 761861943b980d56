"""Request and result models exchanged with the asset store."""

from datetime import datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from curriculum_assets.exceptions import ValidationFailure
from curriculum_assets.models.asset import AssetRecord, as_utc

SORTABLE_FIELDS = ("created_at", "updated_at", "curriculum", "month", "book_id")


def _check_path_segment(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    if value in (".", "..") or value.startswith("."):
        raise ValueError("must not start with a dot")
    if "/" in value or "\\" in value or "\x00" in value:
        raise ValueError("must not contain path separators")
    return value


class SubtitleEntry(BaseModel):
    """One subtitle sentence on one page."""

    page_num: int = Field(ge=1)
    sentence_num: int = Field(ge=1)
    text: str


class YouTubeLink(BaseModel):
    """A video link with its thumbnail image."""

    thumbnail_file: str = Field(min_length=1)
    youtube_url: str = Field(min_length=1)
    title: Optional[str] = None


def _check_unique_subtitles(subtitles: Optional[List[SubtitleEntry]]) -> None:
    if not subtitles:
        return
    seen = set()
    for entry in subtitles:
        key = (entry.page_num, entry.sentence_num)
        if key in seen:
            raise ValueError(
                f"duplicate subtitle for page {entry.page_num}, sentence {entry.sentence_num}"
            )
        seen.add(key)


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")

    @classmethod
    def parse(cls, data: Mapping[str, Any]):
        """Build the request, reporting schema problems as ValidationFailure."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ValidationFailure(f"Invalid {cls.__name__}: {e}") from e


class CreateAssetRequest(_Request):
    """Validated payload for creating an asset.

    ``covers`` and ``youtube_links[].thumbnail_file`` hold staging
    references (``/asset/uploads/<name>``) returned by the staging area.
    """

    curriculum: str
    month: str
    covers: List[str] = Field(default_factory=list)
    subtitles: List[SubtitleEntry] = Field(default_factory=list)
    youtube_links: List[YouTubeLink] = Field(default_factory=list)

    @field_validator("curriculum", "month")
    @classmethod
    def validate_segment(cls, v: str) -> str:
        return _check_path_segment(v)

    @model_validator(mode="after")
    def validate_subtitles(self) -> "CreateAssetRequest":
        _check_unique_subtitles(self.subtitles)
        return self


class UpdateAssetRequest(_Request):
    """Partial update. Omitted fields are left untouched; lists replace wholesale.

    ``curriculum``, ``month``, ``book_id`` and ``created_at`` are not fields
    here, so supplying them is rejected.
    """

    covers: Optional[List[str]] = None
    subtitles: Optional[List[SubtitleEntry]] = None
    youtube_links: Optional[List[YouTubeLink]] = None

    @model_validator(mode="after")
    def validate_subtitles(self) -> "UpdateAssetRequest":
        _check_unique_subtitles(self.subtitles)
        return self

    def supplied(self) -> set[str]:
        """Names of fields the caller actually supplied with a value."""
        return {name for name in self.model_fields_set if getattr(self, name) is not None}


class Asset(BaseModel):
    """Snapshot of a persisted asset."""

    id: str
    curriculum: str
    month: str
    book_id: str
    covers: List[str] = Field(default_factory=list)
    subtitles: List[SubtitleEntry] = Field(default_factory=list)
    youtube_links: List[YouTubeLink] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: AssetRecord) -> "Asset":
        return cls(
            id=record.id,
            curriculum=record.curriculum,
            month=record.month,
            book_id=record.book_id,
            covers=list(record.covers or []),
            subtitles=[SubtitleEntry(**s) for s in record.subtitles or []],
            youtube_links=[YouTubeLink(**y) for y in record.youtube_links or []],
            created_at=as_utc(record.created_at),
            updated_at=as_utc(record.updated_at),
        )

    def referenced_files(self) -> List[str]:
        """Relative paths this asset expects to find in its folder."""
        return list(self.covers) + [link.thumbnail_file for link in self.youtube_links]


class AssetListResult(BaseModel):
    assets: List[Asset]
    total_count: int


class FilteredAssetResult(BaseModel):
    curriculum: Optional[str] = None
    month: Optional[str] = None
    book_id: Optional[str] = None
    assets: List[Asset]
    total_found: int
