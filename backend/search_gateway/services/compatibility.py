# /search_gateway/services/compatibility.py

"""
Canonical-to-legacy query translation.

The catalog backend only understands the positional query/map encoding.
Canonical paths (e.g. ``/shoes/running/nike``) are mapped onto that
encoding once, by walking the backend's category tree and page-type
metadata, and the result is persisted so later requests for the same path
are a single store read.

Concurrent misses for the same path may both hit the backend and both write
the entry; the writes are identical, so the race is harmless.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import unquote, urlparse

from search_gateway.config.settings import settings
from search_gateway.models.query import CanonicalQuery, FacetSegment, LegacyQuery
from search_gateway.models.search import CompatibilityArgs
from search_gateway.services.facet_filter import CATEGORY_TAG, FULL_TEXT_TAG
from search_gateway.utils.metrics import compatibility_resolutions_counter

logger = logging.getLogger(__name__)

COMPAT_KEY_PREFIX = "search:compat:"
BRAND_TAG = "b"

# Page types a non-category segment may resolve to
PAGE_TYPE_TAGS = {
    "Brand": BRAND_TAG,
    "FullText": FULL_TEXT_TAG,
    "Search": FULL_TEXT_TAG,
}


class MappingStore(Protocol):
    async def get_json(self, key: str) -> Optional[Any]: ...

    async def set_json(self, key: str, value: Any, ttl: int = ...) -> None: ...


class CatalogMetadata(Protocol):
    async def categories(self, tree_level: int) -> List[Dict]: ...

    async def page_type(self, path: str, query: str = "") -> Dict: ...


def compatibility_key(query: str) -> str:
    return f"{COMPAT_KEY_PREFIX}{query}"


async def to_compatibility_args(store: MappingStore, search: CatalogMetadata, canonical: CanonicalQuery) -> CompatibilityArgs:
    """
    Resolves a canonical path to a legacy query/map pair.

    Store hits are returned as written. On a miss the pair is derived from
    backend metadata and persisted. A path that resolves to nothing yields
    an empty pair, which is not persisted; callers treat it as bad input.
    """
    query = canonical.path
    key = compatibility_key(query)

    cached = await store.get_json(key)
    if cached:
        compatibility_resolutions_counter.labels(outcome="hit").inc()
        logger.debug(f"Compatibility mapping hit for '{query}'")
        return CompatibilityArgs(**cached)

    resolved = await resolve_from_backend(search, canonical)
    if resolved.is_empty():
        compatibility_resolutions_counter.labels(outcome="unresolved").inc()
        logger.warning(f"Could not resolve canonical query '{query}' to any facet chain")
        return CompatibilityArgs()

    compat_args = resolved.to_args()
    await store.set_json(key, compat_args.model_dump(), ttl=settings.compatibility_cache_ttl)
    compatibility_resolutions_counter.labels(outcome="resolved").inc()
    logger.info(f"Resolved canonical query '{query}' to query='{compat_args.query}' map='{compat_args.map}'")
    return compat_args


async def resolve_from_backend(search: CatalogMetadata, canonical: CanonicalQuery) -> LegacyQuery:
    """
    Leading segments are matched against the category tree (tag ``c``).
    Each following segment is looked up by page type: brands become ``b``,
    and a full-text term is only accepted as the very first segment.
    Resolution stops at the first segment that cannot be placed.
    """
    segments = canonical.segments
    if not segments:
        return LegacyQuery()

    resolved: List[FacetSegment] = []
    children = await search.categories(len(segments))
    for segment in segments:
        category = _find_category(children, segment)
        if category is None:
            break
        resolved.append(FacetSegment(segment, CATEGORY_TAG))
        children = category.get("children") or []

    for segment in segments[len(resolved):]:
        page = await search.page_type(segment)
        tag = PAGE_TYPE_TAGS.get((page or {}).get("pageType"))
        if tag is None or (tag == FULL_TEXT_TAG and resolved):
            logger.debug(f"Stopping resolution at segment '{segment}' (page type {page and page.get('pageType')})")
            break
        resolved.append(FacetSegment(segment, tag))

    return LegacyQuery(tuple(resolved))


def _category_slug(category: Dict) -> str:
    url = category.get("url") or ""
    return unquote(urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]).lower()


def _find_category(categories: List[Dict], segment: str) -> Optional[Dict]:
    wanted = unquote(segment).lower()
    return next((c for c in categories if _category_slug(c) == wanted), None)
