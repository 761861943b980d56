"""Property-based tests for asset persistence and file synchronization.

Each example builds its own SQLite database and asset root, so these run the
store synchronously through ``asyncio.run``.
"""

import asyncio
import re
import tempfile
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from curriculum_assets.exceptions import DuplicateAsset, NotFound
from curriculum_assets.services.file_utils import sanitize_filename
from curriculum_assets.services.staging import StagingArea

from helpers import PNG_BYTES, open_store

PAIRS = [
    ("jelly", "Jan"),
    ("jelly", "Feb"),
    ("jelly", "Mar"),
    ("juice", "Jan"),
    ("juice", "Feb"),
    ("stage_1_1", "Jan"),
]

PROPERTY_SETTINGS = settings(
    max_examples=15,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

pair_lists = st.lists(st.sampled_from(PAIRS), min_size=1, max_size=len(PAIRS), unique=True)

image_names = st.builds(
    lambda stem, suffix: stem + suffix,
    st.text(alphabet=st.characters(blacklist_characters="/\\."), min_size=1, max_size=20),
    st.sampled_from([".png", ".jpg", ".jpeg", ".webp"]),
)


def run_with_store(scenario):
    """Run ``scenario(store)`` against a fresh store in a temporary directory."""
    async def _run():
        with tempfile.TemporaryDirectory() as tmp:
            async with open_store(Path(tmp)) as (store, _sessions):
                return await scenario(store)
    return asyncio.run(_run())


class TestFileNameProperties:
    """Sanitized names are plain, safe file names."""

    @settings(max_examples=200)
    @given(raw=st.text(max_size=60))
    @pytest.mark.property
    def test_sanitized_names_are_safe(self, raw):
        name = sanitize_filename(raw)

        assert name
        assert re.fullmatch(r"[\w.\-]+", name)
        assert not name.startswith(".")
        assert "/" not in name and "\\" not in name

    @settings(max_examples=200)
    @given(raw=st.text(max_size=60))
    @pytest.mark.property
    def test_sanitize_is_idempotent(self, raw):
        once = sanitize_filename(raw)
        assert sanitize_filename(once) == once


class TestStoreProperties:
    """Invariants of the asset store under arbitrary create sequences."""

    @PROPERTY_SETTINGS
    @given(pairs=pair_lists)
    @pytest.mark.property
    def test_unfiltered_filter_equals_list(self, pairs):
        """For any set of created assets, filter() with no predicates equals list()."""
        async def scenario(store):
            for curriculum, month in pairs:
                await store.create({"curriculum": curriculum, "month": month})
            return await store.filter(), await store.list()

        filtered, listed = run_with_store(scenario)

        assert filtered == listed
        assert len(listed) == len(pairs)

    @PROPERTY_SETTINGS
    @given(pairs=pair_lists, probe=st.sampled_from(PAIRS))
    @pytest.mark.property
    def test_filter_returns_only_exact_matches(self, pairs, probe):
        async def scenario(store):
            for curriculum, month in pairs:
                await store.create({"curriculum": curriculum, "month": month})
            return await store.filter(curriculum=probe[0], month=probe[1])

        found = run_with_store(scenario)

        assert [(a.curriculum, a.month) for a in found] == ([probe] if probe in pairs else [])

    @PROPERTY_SETTINGS
    @given(pair=st.sampled_from(PAIRS))
    @pytest.mark.property
    def test_second_create_is_duplicate(self, pair):
        """For any pair, a second create fails and the first record is untouched."""
        async def scenario(store):
            first = await store.create({"curriculum": pair[0], "month": pair[1]})
            with pytest.raises(DuplicateAsset):
                await store.create({"curriculum": pair[0], "month": pair[1], "subtitles": [
                    {"page_num": 1, "sentence_num": 1, "text": "other"}
                ]})
            return first, await store.list()

        first, listed = run_with_store(scenario)

        assert listed == [first]

    @PROPERTY_SETTINGS
    @given(names=st.lists(image_names, min_size=1, max_size=4))
    @pytest.mark.property
    def test_every_referenced_file_exists_after_create(self, names):
        async def scenario(store):
            staging = StagingArea(store.storage)
            covers = [staging.stage(name, PNG_BYTES).reference for name in names]
            thumbs = [staging.stage(name, PNG_BYTES).reference for name in names]
            asset = await store.create({
                "curriculum": "jelly",
                "month": "Jan",
                "covers": covers,
                "youtube_links": [
                    {"thumbnail_file": ref, "youtube_url": f"https://youtu.be/{i}"}
                    for i, ref in enumerate(thumbs)
                ],
            })
            base = store.storage.asset_dir("jelly", "Jan")
            return asset, [(base / rel).is_file() for rel in asset.referenced_files()]

        asset, present = run_with_store(scenario)

        assert len(asset.covers) == len(names)
        assert len(set(asset.covers)) == len(names)
        assert all(present)

    @PROPERTY_SETTINGS
    @given(texts=st.lists(st.text(max_size=30), max_size=5))
    @pytest.mark.property
    def test_repeated_update_only_moves_updated_at(self, texts):
        payload = {
            "subtitles": [
                {"page_num": 1, "sentence_num": i + 1, "text": text} for i, text in enumerate(texts)
            ]
        }

        async def scenario(store):
            created = await store.create({"curriculum": "juice", "month": "Feb"})
            first = await store.update(created.id, payload)
            second = await store.update(created.id, payload)
            return first, second

        first, second = run_with_store(scenario)

        assert first.model_dump(exclude={"updated_at"}) == second.model_dump(exclude={"updated_at"})
        assert second.updated_at > first.updated_at

    @PROPERTY_SETTINGS
    @given(pairs=pair_lists, data=st.data())
    @pytest.mark.property
    def test_deleted_ids_never_come_back(self, pairs, data):
        victim = data.draw(st.sampled_from(pairs))

        async def scenario(store):
            created = {}
            for curriculum, month in pairs:
                created[(curriculum, month)] = await store.create({"curriculum": curriculum, "month": month})
            asset_id = created[victim].id
            await store.delete(asset_id)

            with pytest.raises(NotFound):
                await store.update(asset_id, {"subtitles": []})
            with pytest.raises(NotFound):
                await store.delete(asset_id)
            listed = await store.list()
            filtered = await store.filter(curriculum=victim[0])
            return asset_id, listed, filtered

        asset_id, listed, filtered = run_with_store(scenario)

        assert asset_id not in {a.id for a in listed}
        assert asset_id not in {a.id for a in filtered}
        assert len(listed) == len(pairs) - 1
