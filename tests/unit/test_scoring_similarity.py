"""
Unit tests for text similarity and hotspot geometry helpers.
"""

import pytest

from quizcore.errors import MalformedAnswerError
from quizcore.scoring.similarity import (
    as_point,
    normalize_text,
    point_in_hotspot,
    text_similarity,
    tokenize,
)


class TestTextHelpers:
    def test_tokenize_lowercases_and_drops_punctuation(self):
        assert tokenize("Hello, World!  TCP/IP") == ["hello", "world", "tcp", "ip"]

    def test_normalize_text_collapses_whitespace(self):
        assert normalize_text("  Paris\t FRANCE ") == "paris france"

    def test_identical_token_streams_are_fully_similar(self):
        assert text_similarity("The  quick fox.", "the quick fox") == 1.0

    def test_empty_side_has_zero_similarity(self):
        assert text_similarity("", "anything") == 0.0
        assert text_similarity("anything", "   ") == 0.0

    def test_similarity_is_between_zero_and_one(self):
        value = text_similarity("membrain", "membrane")
        assert 0.7 < value < 1.0


class TestHotspotGeometry:
    def test_point_formats(self):
        assert as_point({"x": 1, "y": 2}) == (1.0, 2.0)
        assert as_point([3, 4]) == (3.0, 4.0)

    @pytest.mark.parametrize("value", [{"x": 1}, [1, 2, 3], "12", None])
    def test_invalid_point_raises(self, value):
        with pytest.raises(MalformedAnswerError):
            as_point(value)

    def test_click_inside_radius(self):
        spot = {"x": 10, "y": 10, "radius": 5}
        assert point_in_hotspot({"x": 12, "y": 12}, spot) is True

    def test_click_outside_radius(self):
        spot = {"x": 10, "y": 10, "radius": 5}
        assert point_in_hotspot({"x": 20, "y": 20}, spot) is False

    def test_click_on_boundary_counts(self):
        spot = {"x": 0, "y": 0, "radius": 5}
        assert point_in_hotspot([3, 4], spot) is True

    def test_hotspot_without_radius_raises(self):
        with pytest.raises(MalformedAnswerError):
            point_in_hotspot([0, 0], {"x": 0, "y": 0})
