"""
Tests for merging adjacent same-speaker segments.
"""

import pytest

from echo_diarization.audio.models import Segment
from echo_diarization.alignment.merger import AdjacentSegmentMerger, merge_adjacent_segments


@pytest.fixture
def merger():
    """Create a merger with the turn-driven 1.5s gap."""
    return AdjacentSegmentMerger(max_merge_gap=1.5)


class TestAdjacentSegmentMerger:
    """Test segment merging."""

    def test_short_gap_merges(self, merger):
        """Same speaker with a 1.0s gap becomes one segment."""
        segments = [Segment("good morning", 0.0, 2.0, 0), Segment("everyone", 3.0, 4.0, 0)]
        merged = merger.merge(segments)

        assert merged == [Segment("good morning everyone", 0.0, 4.0, 0)]

    def test_long_gap_stays(self, merger):
        """A 2.0s gap keeps segments apart."""
        segments = [Segment("one", 0.0, 2.0, 0), Segment("two", 4.0, 5.0, 0)]
        assert merger.merge(segments) == segments

    def test_gap_equal_to_threshold_stays(self, merger):
        """Only gaps strictly below the threshold merge."""
        segments = [Segment("one", 0.0, 1.0, 0), Segment("two", 2.5, 3.0, 0)]
        assert len(merger.merge(segments)) == 2

    def test_different_speakers_stay(self, merger):
        """Speaker changes are never merged."""
        segments = [Segment("hi", 0.0, 1.0, 0), Segment("hello", 1.1, 2.0, 1)]
        assert merger.merge(segments) == segments

    def test_transitive(self, merger):
        """A merged segment can absorb the next one too."""
        segments = [
            Segment("a", 0.0, 1.0, 1),
            Segment("b", 1.5, 2.0, 1),
            Segment("c", 2.5, 3.0, 1),
            Segment("d", 3.2, 4.0, 0),
        ]
        merged = merger.merge(segments)

        assert merged == [Segment("a b c", 0.0, 3.0, 1), Segment("d", 3.2, 4.0, 0)]

    def test_overlapping_keeps_latest_end(self, merger):
        """Merged end is the later of the two ends."""
        segments = [Segment("long", 0.0, 5.0, 0), Segment("inner", 1.0, 2.0, 0)]
        assert merger.merge(segments)[0].end_time == 5.0

    def test_input_not_modified(self, merger):
        """The input list is left alone."""
        segments = [Segment("a", 0.0, 1.0, 0), Segment("b", 1.2, 2.0, 0)]
        merger.merge(segments)
        assert len(segments) == 2

    def test_empty_and_single(self, merger):
        """Nothing to merge."""
        assert merger.merge([]) == []
        assert merger.merge([Segment("x", 0.0, 1.0, 0)]) == [Segment("x", 0.0, 1.0, 0)]

    def test_module_function(self):
        """merge_adjacent_segments uses the given gap."""
        segments = [Segment("a", 0.0, 1.0, 0), Segment("b", 2.8, 3.0, 0)]
        assert len(merge_adjacent_segments(segments, 2.0)) == 1
        assert len(merge_adjacent_segments(segments, 1.5)) == 2

    def test_negative_gap_rejected(self):
        """Merge gap must be non-negative."""
        with pytest.raises(ValueError):
            AdjacentSegmentMerger(-0.5)
