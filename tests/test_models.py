"""
Tests for the shared value types and input validation.
"""

import math

import pytest

from echo_diarization.audio.models import (
    AlignmentInputError,
    DiarizationTurn,
    Segment,
    WordSpan,
    WordTiming,
    join_tokens,
    turns_from_dicts,
    validate_turns,
    validate_words,
    words_from_dicts,
)

from conftest import make_words


class TestSegment:
    """Test the Segment record."""

    def test_duration_and_speaker(self):
        """Duration is end minus start, unknown speaker is -1."""
        seg = Segment("hello world", 1.0, 2.5)
        assert seg.duration == pytest.approx(1.5)
        assert seg.speaker_index == -1
        assert not seg.has_speaker
        assert seg.word_count == 2

    def test_to_dict(self):
        """Serializes to plain keys."""
        seg = Segment("hi", 0.0, 0.5, 1)
        assert seg.to_dict() == {'text': 'hi', 'start': 0.0, 'end': 0.5, 'speaker_index': 1}

    def test_immutable(self):
        """Segments cannot be edited in place."""
        seg = Segment("hi", 0.0, 0.5, 0)
        with pytest.raises(AttributeError):
            seg.text = "changed"


class TestWordSpan:
    """Test index-based word spans."""

    def test_to_segment_joins_tokens(self):
        """Text is the tokens joined by single spaces, timed by first and last word."""
        words = make_words([("Good", 0.0, 0.3), (" morning ", 0.4, 0.8), ("all", 1.0, 1.2)])
        seg = WordSpan(0, 3, speaker_index=2).to_segment(words)

        assert seg.text == "Good morning all"
        assert seg.start_time == 0.0
        assert seg.end_time == 1.2
        assert seg.speaker_index == 2

    def test_length(self):
        """Length is the number of words covered."""
        assert len(WordSpan(3, 7)) == 4


class TestJoinTokens:
    """Test token joining."""

    def test_drops_blank_tokens(self):
        """Empty and whitespace tokens are skipped."""
        assert join_tokens(["a", "", "  ", "b "]) == "a b"


class TestValidateWords:
    """Test word timing validation."""

    def test_valid_words(self):
        """Ordered, finite words pass."""
        validate_words(make_words([("a", 0.0, 0.2), ("b", 0.2, 0.5), ("c", 0.2, 0.6)]))

    def test_end_before_start(self):
        """A word ending before it starts is rejected with its index."""
        words = make_words([("a", 0.0, 0.2), ("b", 1.0, 0.5)])
        with pytest.raises(AlignmentInputError) as exc_info:
            validate_words(words)
        assert exc_info.value.index == 1
        assert exc_info.value.record == words[1]

    def test_out_of_order(self):
        """Words must be ordered by start time."""
        words = make_words([("a", 1.0, 1.2), ("b", 0.5, 0.7)])
        with pytest.raises(AlignmentInputError, match="chronological"):
            validate_words(words)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -0.1])
    def test_bad_times(self, bad):
        """Non-finite and negative times are rejected."""
        with pytest.raises(AlignmentInputError):
            validate_words([WordTiming("a", bad, 1.0)])

    def test_is_value_error(self):
        """Input errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            validate_words([WordTiming("a", 2.0, 1.0)])


class TestValidateTurns:
    """Test diarization turn validation."""

    def test_turn_end_before_start(self):
        """Inverted turns are rejected."""
        with pytest.raises(AlignmentInputError):
            validate_turns([DiarizationTurn("S1", 5.0, 4.0)])

    def test_unordered_turns_allowed(self):
        """Turns need not be sorted."""
        validate_turns([DiarizationTurn("S2", 5.0, 6.0), DiarizationTurn("S1", 0.0, 5.0)])


class TestFromDicts:
    """Test construction from recognizer and backend dictionaries."""

    def test_words_from_dicts(self):
        """Accepts word/start/end keys."""
        words = words_from_dicts([{'word': 'hi', 'start': 0.1, 'end': 0.4}])
        assert words == [WordTiming('hi', 0.1, 0.4)]

    def test_turns_from_dicts(self):
        """Accepts speaker/start/end keys and stringifies ids."""
        turns = turns_from_dicts([{'speaker': 3, 'start': 0, 'end': 2}])
        assert turns == [DiarizationTurn('3', 0.0, 2.0)]
