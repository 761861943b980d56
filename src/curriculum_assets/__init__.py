"""Curriculum asset persistence and file synchronization."""

from curriculum_assets.exceptions import (
    AssetError,
    ConfigurationError,
    DatabaseFailure,
    DuplicateAsset,
    FileNotFound,
    IOFailure,
    MappingNotFound,
    NotFound,
    ValidationFailure,
)
from curriculum_assets.schemas import (
    Asset,
    AssetListResult,
    CreateAssetRequest,
    FilteredAssetResult,
    SubtitleEntry,
    UpdateAssetRequest,
    YouTubeLink,
)

__version__ = "0.1.0"

__all__ = [
    "Asset",
    "AssetError",
    "AssetListResult",
    "ConfigurationError",
    "CreateAssetRequest",
    "DatabaseFailure",
    "DuplicateAsset",
    "FileNotFound",
    "FilteredAssetResult",
    "IOFailure",
    "MappingNotFound",
    "NotFound",
    "SubtitleEntry",
    "UpdateAssetRequest",
    "ValidationFailure",
    "YouTubeLink",
]
