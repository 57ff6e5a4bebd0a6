# backend/tests/unit/test_compatibility.py

import pytest
from unittest.mock import AsyncMock, MagicMock

from search_gateway.models.query import CanonicalQuery
from search_gateway.models.search import CompatibilityArgs
from search_gateway.services.compatibility import compatibility_key, to_compatibility_args

CATEGORY_TREE = [
    {
        "id": 1, "name": "Shoes", "url": "https://store.example.com/shoes",
        "children": [
            {"id": 2, "name": "Running", "url": "https://store.example.com/shoes/running", "children": []},
        ],
    },
    {"id": 3, "name": "Bags", "url": "https://store.example.com/bags", "children": []},
]

PAGE_TYPES = {
    "nike": {"id": "2000001", "pageType": "Brand", "name": "Nike"},
    "sneakers": {"id": None, "pageType": "FullText", "name": "sneakers"},
    "red": {"id": None, "pageType": "FullText", "name": "red"},
    "nowhere": {"id": None, "pageType": "NotFound", "name": None},
}


@pytest.fixture
def catalog():
    search = MagicMock()
    search.categories = AsyncMock(return_value=CATEGORY_TREE)
    search.page_type = AsyncMock(side_effect=lambda path, query="": PAGE_TYPES.get(path, {"pageType": "NotFound"}))
    return search


@pytest.mark.asyncio
async def test_categories_and_brand_resolve(fake_store, catalog):
    result = await to_compatibility_args(fake_store, catalog, CanonicalQuery("/shoes/running/nike"))
    assert result == CompatibilityArgs(query="shoes/running/nike", map="c,c,b")
    catalog.categories.assert_awaited_once_with(3)


@pytest.mark.asyncio
async def test_miss_is_persisted_and_hit_skips_backend(fake_store, catalog):
    first = await to_compatibility_args(fake_store, catalog, CanonicalQuery("shoes/nike"))
    assert fake_store.data[compatibility_key("shoes/nike")] == {"query": "shoes/nike", "map": "c,b"}

    catalog.categories.reset_mock()
    catalog.page_type.reset_mock()
    second = await to_compatibility_args(fake_store, catalog, CanonicalQuery("shoes/nike"))

    assert second == first
    assert second.model_dump_json() == first.model_dump_json()
    catalog.categories.assert_not_awaited()
    catalog.page_type.assert_not_awaited()
    assert fake_store.writes == 1


@pytest.mark.asyncio
async def test_stored_entry_is_returned_as_written(fake_store, catalog):
    fake_store.data[compatibility_key("promo")] = {"query": "137", "map": "productClusterIds"}
    result = await to_compatibility_args(fake_store, catalog, CanonicalQuery("promo"))
    assert result == CompatibilityArgs(query="137", map="productClusterIds")


@pytest.mark.asyncio
async def test_full_text_term_as_first_segment(fake_store, catalog):
    result = await to_compatibility_args(fake_store, catalog, CanonicalQuery("sneakers"))
    assert result == CompatibilityArgs(query="sneakers", map="ft")


@pytest.mark.asyncio
async def test_full_text_after_category_stops_resolution(fake_store, catalog):
    result = await to_compatibility_args(fake_store, catalog, CanonicalQuery("shoes/red/nike"))
    assert result == CompatibilityArgs(query="shoes", map="c")


@pytest.mark.asyncio
async def test_unresolvable_path_yields_empty_pair_and_is_not_stored(fake_store, catalog):
    result = await to_compatibility_args(fake_store, catalog, CanonicalQuery("nowhere/else"))
    assert result == CompatibilityArgs(query="", map="")
    assert fake_store.writes == 0


@pytest.mark.asyncio
async def test_category_match_is_case_insensitive(fake_store, catalog):
    result = await to_compatibility_args(fake_store, catalog, CanonicalQuery("Bags"))
    assert result == CompatibilityArgs(query="Bags", map="c")


@pytest.mark.asyncio
async def test_store_failure_propagates(catalog):
    store = MagicMock()
    store.get_json = AsyncMock(side_effect=ConnectionError("redis down"))
    with pytest.raises(ConnectionError):
        await to_compatibility_args(store, catalog, CanonicalQuery("shoes"))
    catalog.categories.assert_not_awaited()
