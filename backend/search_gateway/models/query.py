# /search_gateway/models/query.py

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from search_gateway.models.search import CompatibilityArgs

# The two URL dialects a search query can arrive in. A query is tagged once,
# at the edge, and the rest of the code works with these types.

QUERY_SEGMENT_SEP = "/"
MAP_VALUES_SEP = ","


@dataclass(frozen=True)
class FacetSegment:
    """One query path segment together with its facet-type tag."""
    value: str
    tag: str


@dataclass(frozen=True)
class LegacyQuery:
    segments: Tuple[FacetSegment, ...] = ()

    @classmethod
    def from_pair(cls, query: str, map_: str) -> "LegacyQuery":
        # Pairs positionally; extra segments or tags without a partner are dropped.
        values = query.split(QUERY_SEGMENT_SEP)
        tags = map_.split(MAP_VALUES_SEP)
        return cls(tuple(FacetSegment(value, tag) for value, tag in zip(values, tags)))

    @property
    def query(self) -> str:
        return QUERY_SEGMENT_SEP.join(segment.value for segment in self.segments)

    @property
    def map(self) -> str:
        return MAP_VALUES_SEP.join(segment.tag for segment in self.segments)

    def is_empty(self) -> bool:
        return not self.segments

    def to_args(self) -> CompatibilityArgs:
        return CompatibilityArgs(query=self.query, map=self.map)


@dataclass(frozen=True)
class CanonicalQuery:
    path: str
    map: Optional[str] = None

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(s for s in self.path.strip(QUERY_SEGMENT_SEP).split(QUERY_SEGMENT_SEP) if s)


SearchQuery = Union[LegacyQuery, CanonicalQuery]
