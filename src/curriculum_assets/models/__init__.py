"""Database models for Curriculum Assets."""

from .asset import AssetRecord, as_utc, new_asset_id, utcnow
from .database import (
    Base,
    async_session_maker,
    build_engine,
    build_session_maker,
    init_db,
)

__all__ = [
    "AssetRecord",
    "as_utc",
    "new_asset_id",
    "utcnow",
    "Base",
    "async_session_maker",
    "build_engine",
    "build_session_maker",
    "init_db",
]
