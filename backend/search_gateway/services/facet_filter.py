# /search_gateway/services/facet_filter.py

from search_gateway.models.query import LegacyQuery
from search_gateway.models.search import FacetsArgs

# Static landing pages may only expose stable facets in their canonical path.

CATEGORY_TAG = "c"
FULL_TEXT_TAG = "ft"
STATIC_FACET_TAGS = frozenset({CATEGORY_TAG, FULL_TEXT_TAG})


def keep_static_segments(query: LegacyQuery) -> LegacyQuery:
    """
    Keeps the first segment unconditionally, then only category and
    full-text segments, in their original order.
    """
    if query.is_empty():
        return query
    head, *tail = query.segments
    return LegacyQuery((head, *(segment for segment in tail if segment.tag in STATIC_FACET_TAGS)))


def filter_specification_filters(args: FacetsArgs) -> FacetsArgs:
    """Applies keep_static_segments to the query/map of a facets request."""
    filtered = keep_static_segments(LegacyQuery.from_pair(args.query or "", args.map or ""))
    return args.model_copy(update={"query": filtered.query, "map": filtered.map})
