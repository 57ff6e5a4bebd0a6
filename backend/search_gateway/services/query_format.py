# /search_gateway/services/query_format.py

from typing import Optional, Sequence

from search_gateway.models.query import (
    MAP_VALUES_SEP,
    QUERY_SEGMENT_SEP,
    CanonicalQuery,
    LegacyQuery,
    SearchQuery,
)

# Distinguishes the legacy query/map dialect from canonical paths. There is
# no explicit version marker on incoming queries, so this is a heuristic:
# legacy callers always send a map with one tag per path segment.

SPEC_FILTER = "specificationFilter"


def is_legacy_search_format(query: str, map_: Optional[str], path_segments: Sequence[str]) -> bool:
    """
    True when the query carries a specification-filter clause, or when an
    explicit map has exactly as many tags as the query has path segments.

    A canonical query whose segment count happens to equal its map's tag
    count is reported as legacy too; callers depend on that behaviour.
    """
    if SPEC_FILTER in query:
        return True
    return bool(map_) and len(map_.split(MAP_VALUES_SEP)) == len(path_segments)


def classify_query(query: str, map_: Optional[str]) -> SearchQuery:
    """Tags a raw query/map pair as either a LegacyQuery or a CanonicalQuery."""
    if is_legacy_search_format(query, map_, query.split(QUERY_SEGMENT_SEP)):
        return LegacyQuery.from_pair(query, map_ or "")
    return CanonicalQuery(path=query, map=map_)
