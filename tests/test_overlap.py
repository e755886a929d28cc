"""
Tests for speaker maps and overlap-based segment labelling.
"""

from echo_diarization.audio.models import Segment
from echo_diarization.alignment.overlap import (
    build_speaker_map,
    dominant_speaker,
    label_segments_by_overlap,
    overlap_duration,
    speaker_count,
)

from conftest import make_turns


class TestSpeakerMap:
    """Test speaker id mapping."""

    def test_first_seen_order(self):
        """Indices follow first appearance."""
        turns = make_turns([("zed", 0, 1), ("amy", 1, 2), ("zed", 2, 3), ("bob", 3, 4)])
        assert build_speaker_map(turns) == {'zed': 0, 'amy': 1, 'bob': 2}

    def test_speaker_count(self):
        """Distinct ids are counted once."""
        turns = make_turns([("A", 0, 1), ("B", 1, 2), ("A", 2, 3)])
        assert speaker_count(turns) == 2
        assert speaker_count([]) == 0


class TestOverlap:
    """Test overlap computation."""

    def test_overlap_duration(self):
        """Intersection length, zero when disjoint."""
        assert overlap_duration(0.0, 5.0, 3.0, 8.0) == 2.0
        assert overlap_duration(0.0, 1.0, 2.0, 3.0) == 0.0

    def test_dominant_speaker(self):
        """Overlap is summed over all turns of a speaker."""
        turns = make_turns([("A", 0.0, 2.0), ("B", 2.0, 3.0), ("A", 3.0, 4.0)])
        speaker_map = build_speaker_map(turns)
        assert dominant_speaker(1.4, 4.0, turns, speaker_map) == 0
        assert dominant_speaker(1.8, 3.5, turns, speaker_map) == 1

    def test_tie_goes_to_lower_index(self):
        """Equal overlaps resolve to the lower speaker index."""
        turns = make_turns([("B", 5.0, 10.0), ("A", 0.0, 5.0)])
        speaker_map = {'A': 0, 'B': 1}
        assert dominant_speaker(4.0, 6.0, turns, speaker_map) == 0

    def test_no_overlap(self):
        """-1 when no turn overlaps."""
        turns = make_turns([("A", 0.0, 1.0)])
        assert dominant_speaker(5.0, 6.0, turns, build_speaker_map(turns)) == -1


class TestLabelSegmentsByOverlap:
    """Test labelling of recognizer segments."""

    def test_labels(self):
        """Each segment gets its dominant speaker, text untouched."""
        turns = make_turns([("A", 0.0, 5.0), ("B", 5.0, 10.0)])
        segments = [Segment("first", 0.5, 4.0), Segment("second", 4.5, 9.0), Segment("late", 12.0, 13.0)]
        labelled = label_segments_by_overlap(segments, turns)

        assert [seg.speaker_index for seg in labelled] == [0, 1, -1]
        assert [seg.text for seg in labelled] == ["first", "second", "late"]
        assert segments[0].speaker_index == -1

    def test_no_turns(self):
        """Without turns every segment is unassigned."""
        labelled = label_segments_by_overlap([Segment("x", 0.0, 1.0, 3)], [])
        assert labelled[0].speaker_index == -1
