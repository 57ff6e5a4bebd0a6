# backend/tests/unit/test_query_format.py

import pytest

from search_gateway.models.query import CanonicalQuery, FacetSegment, LegacyQuery
from search_gateway.services.query_format import classify_query, is_legacy_search_format


class TestIsLegacySearchFormat:

    @pytest.mark.parametrize("query, map_", [
        ("shoes", "c"),
        ("shoes/running", "c,c"),
        ("shoes/running/nike", "c,c,b"),
        ("a/b/c/d", "x,y,z,w"),
    ])
    def test_matching_cardinality_is_legacy(self, query, map_):
        assert is_legacy_search_format(query, map_, query.split("/")) is True

    @pytest.mark.parametrize("map_", [None, "", "c", "c,c,c,c"])
    def test_specification_filter_marker_is_legacy_regardless_of_map(self, map_):
        query = "shoes/specificationFilter_10:red"
        assert is_legacy_search_format(query, map_, query.split("/")) is True

    def test_missing_map_is_canonical(self):
        assert is_legacy_search_format("shoes/running", None, ["shoes", "running"]) is False

    def test_empty_map_is_canonical(self):
        assert is_legacy_search_format("shoes", "", ["shoes"]) is False

    def test_mismatched_cardinality_is_canonical(self):
        assert is_legacy_search_format("shoes/running/nike", "c", ["shoes", "running", "nike"]) is False

    def test_counts_against_the_given_segments(self):
        # The segment list is taken as given, not re-derived from the query
        assert is_legacy_search_format("shoes/running", "c", ["shoes"]) is True


class TestClassifyQuery:

    def test_legacy_pair_becomes_ordered_segments(self):
        result = classify_query("shoes/nike", "c,b")
        assert isinstance(result, LegacyQuery)
        assert result.segments == (FacetSegment("shoes", "c"), FacetSegment("nike", "b"))
        assert result.query == "shoes/nike"
        assert result.map == "c,b"

    def test_canonical_path_keeps_its_map(self):
        result = classify_query("/shoes/running/", "c")
        assert isinstance(result, CanonicalQuery)
        assert result.segments == ("shoes", "running")
        assert result.map == "c"

    def test_canonical_with_coincidental_count_is_classified_legacy(self):
        # Known ambiguity: equal cardinality always reads as legacy
        assert isinstance(classify_query("shoes/running", "x,y"), LegacyQuery)
