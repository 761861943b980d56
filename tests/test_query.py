"""Tests for the read-side query service."""

import pytest

from curriculum_assets.exceptions import NotFound, ValidationFailure
from curriculum_assets.services.query import QueryService


@pytest.fixture
def query(store) -> QueryService:
    return QueryService(store)


async def test_list_assets_on_empty_store(query):
    result = await query.list_assets()

    assert result.assets == []
    assert result.total_count == 0


async def test_list_assets_counts(store, query):
    await store.create({"curriculum": "jelly", "month": "Jan"})
    await store.create({"curriculum": "juice", "month": "Feb"})

    result = await query.list_assets(sort_by="curriculum", descending=True)

    assert result.total_count == 2
    assert [a.curriculum for a in result.assets] == ["juice", "jelly"]


async def test_filter_echoes_predicates(store, query):
    jan = await store.create({"curriculum": "jelly", "month": "Jan"})
    await store.create({"curriculum": "jelly", "month": "Feb"})

    result = await query.filter_assets(curriculum="jelly", month="Jan")

    assert result.curriculum == "jelly"
    assert result.month == "Jan"
    assert result.book_id is None
    assert result.total_found == 1
    assert result.assets[0].id == jan.id


async def test_filter_without_predicates_returns_everything(store, query):
    await store.create({"curriculum": "jelly", "month": "Jan"})
    await store.create({"curriculum": "stage_1_1", "month": "Jan"})

    result = await query.filter_assets()

    assert result.total_found == 2


async def test_filter_by_book_id(store, query):
    await store.create({"curriculum": "stage_1_1", "month": "Jan"})

    result = await query.filter_assets(book_id="A4R")

    assert [(a.curriculum, a.month) for a in result.assets] == [("stage_1_1", "Jan")]


async def test_filter_rejects_bad_sort(query):
    with pytest.raises(ValidationFailure):
        await query.filter_assets(sort_by="subtitles")


async def test_get_asset(store, query):
    created = await store.create({"curriculum": "jelly", "month": "Jan"})

    assert (await query.get_asset(created.id)).id == created.id
    with pytest.raises(NotFound):
        await query.get_asset("f" * 32)
