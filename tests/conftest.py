"""Shared test fixtures for Curriculum Assets tests."""

from collections.abc import AsyncGenerator

import pytest
from loguru import logger

from curriculum_assets.services.asset_store import AssetStore
from curriculum_assets.services.staging import StagingArea

from helpers import PNG_BYTES, open_store


@pytest.fixture
async def store_and_sessions(tmp_path) -> AsyncGenerator:
    async with open_store(tmp_path) as pair:
        yield pair


@pytest.fixture
def store(store_and_sessions) -> AssetStore:
    return store_and_sessions[0]


@pytest.fixture
def session_maker(store_and_sessions):
    return store_and_sessions[1]


@pytest.fixture
def storage(store):
    return store.storage


@pytest.fixture
def staging(storage) -> StagingArea:
    return StagingArea(storage)


@pytest.fixture
def stage(staging):
    """Stage an image and return its staging reference."""
    def _stage(filename: str = "cover.png", content: bytes = PNG_BYTES) -> str:
        return staging.stage(filename, content).reference
    return _stage


@pytest.fixture
def log_messages():
    """Capture loguru WARNING and above as plain strings."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
