"""Shared builders for asset store tests."""

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from curriculum_assets.models.database import build_engine, build_session_maker, init_db
from curriculum_assets.services.asset_store import AssetStore
from curriculum_assets.services.mapping import MappingResolver
from curriculum_assets.services.storage import StorageService

MAPPING = {
    "jelly": {"month_01": "J1R", "month_02": "J2R", "month_03": "J3R"},
    "juice": {"month_01": "U1R", "month_02": "U2R"},
    "stage_1_1": {"month_01": "A4R"},
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@asynccontextmanager
async def open_store(
    root: Path,
    db_timeout_sec: float = 5.0,
    fs_timeout_sec: float = 5.0,
) -> AsyncIterator[Tuple[AssetStore, async_sessionmaker[AsyncSession]]]:
    """Asset store over a fresh SQLite file and asset root under ``root``."""
    storage = StorageService(root / "asset")
    engine = build_engine(f"sqlite+aiosqlite:///{root / 'test.db'}")
    await init_db(engine)
    session_maker = build_session_maker(engine)
    try:
        async with session_maker() as session:
            store = AssetStore(
                session=session,
                resolver=MappingResolver(MAPPING),
                storage=storage,
                db_timeout_sec=db_timeout_sec,
                fs_timeout_sec=fs_timeout_sec,
            )
            yield store, session_maker
    finally:
        await engine.dispose()


def write_legacy_folder(storage, curriculum, month, covers=("cover/1_cover.png",), present=True):
    """Lay out an asset folder the way the old file-only tooling left it."""
    base = storage.create_asset_folders(curriculum, month)
    if present:
        for relative in covers:
            (base / relative).write_bytes(PNG_BYTES)
    storage.data_json_path(curriculum, month).write_text(json.dumps({
        "project": curriculum,
        "month": month,
        "cover": list(covers),
        "subtitle": [{"pageNum": 1, "sentenceNum": 1, "text": "Hello"}],
    }), encoding="utf-8")
    return base
