"""
Value types shared by the diarization engine and the aligner.

Word timings come from the speech recognizer, diarization turns from an
external diarization backend. Segments are the output handed to formatters.
All records are immutable; splitting and merging always build new ones.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

# Layout of a spectral feature vector
FEATURE_NAMES = (
    'rms',
    'spectral_centroid',
    'spectral_bandwidth',
    'spectral_rolloff',
    'zero_crossing_rate',
    'dominant_pitch',
)
FEATURE_DIM = len(FEATURE_NAMES)


class AlignmentInputError(ValueError):
    """
    Raised when an input record is malformed.

    Attributes:
        index: Position of the offending record in its input list
        record: The offending record itself
    """

    def __init__(self, message: str, index: int, record: Any):
        super().__init__(message)
        self.index = index
        self.record = record


@dataclass(frozen=True)
class WordTiming:
    """A recognized word with its time span in seconds."""
    token: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class DiarizationTurn:
    """A speaker turn produced by an external diarization backend."""
    speaker_id: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class Segment:
    """
    Speaker-homogeneous piece of transcript.

    Attributes:
        text: Words joined with single spaces
        start_time: Start of the first word (seconds)
        end_time: End of the last word (seconds)
        speaker_index: Stable speaker number, -1 when unknown
    """
    text: str
    start_time: float
    end_time: float
    speaker_index: int = -1

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def has_speaker(self) -> bool:
        return self.speaker_index >= 0

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'start': self.start_time,
            'end': self.end_time,
            'speaker_index': self.speaker_index,
        }


@dataclass(frozen=True)
class WordSpan:
    """
    Half-open range [start, end) of word indices owned by one speaker.

    Spans index into the caller's word list instead of copying it, so
    splitting and merging long recordings never re-slices the words.
    """
    start: int
    end: int
    speaker_index: int = -1

    def __len__(self) -> int:
        return self.end - self.start

    def start_time(self, words: Sequence[WordTiming]) -> float:
        return words[self.start].start_time

    def end_time(self, words: Sequence[WordTiming]) -> float:
        return words[self.end - 1].end_time

    def duration(self, words: Sequence[WordTiming]) -> float:
        return self.end_time(words) - self.start_time(words)

    def to_segment(self, words: Sequence[WordTiming]) -> Segment:
        """Materialize the span as a Segment."""
        return Segment(
            text=join_tokens([words[i].token for i in range(self.start, self.end)]),
            start_time=self.start_time(words),
            end_time=self.end_time(words),
            speaker_index=self.speaker_index,
        )


def join_tokens(tokens: Sequence[str]) -> str:
    """Join tokens with single spaces, dropping blanks."""
    return ' '.join(t.strip() for t in tokens if t and t.strip())


def _check_time(value: float, label: str, index: int, record: Any, kind: str):
    if value is None or not math.isfinite(value):
        raise AlignmentInputError(
            f"{kind} {index} ({record!r}) has a non-finite {label}: {value}",
            index, record
        )
    if value < 0:
        raise AlignmentInputError(
            f"{kind} {index} ({record!r}) has a negative {label}: {value}",
            index, record
        )


def validate_words(words: Sequence[WordTiming]) -> None:
    """
    Check word timings before any alignment work.

    Raises:
        AlignmentInputError: On non-finite or negative times, a word that
            ends before it starts, or a word that starts before its
            predecessor.
    """
    previous_start = None
    for index, word in enumerate(words):
        _check_time(word.start_time, 'start_time', index, word, 'Word')
        _check_time(word.end_time, 'end_time', index, word, 'Word')
        if word.end_time < word.start_time:
            raise AlignmentInputError(
                f"Word {index} ({word.token!r}) ends at {word.end_time} "
                f"before it starts at {word.start_time}",
                index, word
            )
        if previous_start is not None and word.start_time < previous_start:
            raise AlignmentInputError(
                f"Word {index} ({word.token!r}) starts at {word.start_time}, "
                f"before the previous word ({previous_start}); words must be "
                f"in chronological order",
                index, word
            )
        previous_start = word.start_time


def validate_turns(turns: Sequence[DiarizationTurn]) -> None:
    """
    Check diarization turns before alignment.

    Raises:
        AlignmentInputError: On non-finite or negative times or a turn that
            ends before it starts.
    """
    for index, turn in enumerate(turns):
        _check_time(turn.start_time, 'start_time', index, turn, 'Turn')
        _check_time(turn.end_time, 'end_time', index, turn, 'Turn')
        if turn.end_time < turn.start_time:
            raise AlignmentInputError(
                f"Turn {index} (speaker {turn.speaker_id!r}) ends at "
                f"{turn.end_time} before it starts at {turn.start_time}",
                index, turn
            )


def words_from_dicts(items: Sequence[Dict[str, Any]]) -> List[WordTiming]:
    """Build WordTiming records from ASR dicts with word/start/end keys."""
    words = []
    for item in items:
        token = item.get('token', item.get('word', item.get('text', '')))
        words.append(WordTiming(
            token=str(token),
            start_time=float(item.get('start_time', item.get('start'))),
            end_time=float(item.get('end_time', item.get('end'))),
        ))
    return words


def turns_from_dicts(items: Sequence[Dict[str, Any]]) -> List[DiarizationTurn]:
    """Build DiarizationTurn records from dicts with speaker/start/end keys."""
    return [
        DiarizationTurn(
            speaker_id=str(item.get('speaker_id', item.get('speaker'))),
            start_time=float(item.get('start_time', item.get('start'))),
            end_time=float(item.get('end_time', item.get('end'))),
        )
        for item in items
    ]
