"""
Provisional segment builders.

Two interchangeable strategies turn word timings into speaker-labelled
word spans:

- DiarizationTurnSegmentBuilder anchors segments to turns from an
  external diarization backend. Used whenever turns exist.
- SelfClusteringSegmentBuilder clusters the words itself from spectral
  features when no backend output is available.

Both produce WordSpan ranges; splitting, merging and conversion to
Segment happen afterwards in the SpeakerAligner.
"""

import bisect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from echo_diarization.alignment.overlap import build_speaker_map
from echo_diarization.audio.config import AlignmentConfig
from echo_diarization.audio.models import DiarizationTurn, Segment, WordSpan, WordTiming
from echo_diarization.audio.native_diarizer import NativeDiarizer

logger = logging.getLogger(__name__)

STRATEGY_TURNS = 'diarization_turns'
STRATEGY_SELF_CLUSTERING = 'self_clustering'


@dataclass
class BuildResult:
    """
    Provisional spans produced by a segment builder.

    Attributes:
        spans: Speaker-labelled word ranges in chronological order
        speaker_count: Number of speakers the spans may refer to
        speaker_map: External speaker id to index (turn-driven path only)
        dropped_word_indices: Words no span covers
        used_fallback: True when speakers came from a degenerate fallback
        methodology_note: Description for quality reports
    """
    spans: List[WordSpan] = field(default_factory=list)
    speaker_count: int = 0
    speaker_map: Dict[str, int] = field(default_factory=dict)
    dropped_word_indices: List[int] = field(default_factory=list)
    used_fallback: bool = False
    methodology_note: str = ""


class SegmentBuilder(ABC):
    """Strategy interface for building speaker-labelled word spans."""

    strategy: str = ''

    @property
    @abstractmethod
    def merge_gap(self) -> float:
        """Gap (seconds) under which same-speaker segments are merged."""

    @abstractmethod
    def build(
        self,
        words: Sequence[WordTiming],
        samples: Optional[np.ndarray] = None,
        num_speakers: Optional[int] = None
    ) -> BuildResult:
        """Build provisional spans for chronologically ordered words."""


class DiarizationTurnSegmentBuilder(SegmentBuilder):
    """
    Builds one span per diarization turn from the words it contains.

    A word belongs to the first turn whose [start, end) interval contains
    the word's start time. Words that start outside every turn are not
    placed in any span and are reported as dropped.
    """

    strategy = STRATEGY_TURNS

    def __init__(
        self,
        turns: Sequence[DiarizationTurn],
        config: Optional[AlignmentConfig] = None
    ):
        self.config = config or AlignmentConfig()
        self.turns = sorted(turns, key=lambda t: t.start_time)
        self.speaker_map = build_speaker_map(self.turns)

    @property
    def merge_gap(self) -> float:
        return self.config.turn_merge_gap

    def build(
        self,
        words: Sequence[WordTiming],
        samples: Optional[np.ndarray] = None,
        num_speakers: Optional[int] = None
    ) -> BuildResult:
        starts = [word.start_time for word in words]
        captured = [False] * len(words)
        spans = []
        claimed_until = 0
        empty_turns = 0

        for turn in self.turns:
            lo = max(bisect.bisect_left(starts, turn.start_time), claimed_until)
            hi = bisect.bisect_left(starts, turn.end_time)
            if lo >= hi:
                empty_turns += 1
                continue
            spans.append(WordSpan(lo, hi, self.speaker_map[turn.speaker_id]))
            for i in range(lo, hi):
                captured[i] = True
            claimed_until = hi

        dropped = [i for i, was_captured in enumerate(captured) if not was_captured]

        logger.info(
            f"Turn-driven segmentation: {len(self.turns)} turns -> {len(spans)} spans, "
            f"{len(self.speaker_map)} speakers"
        )
        if empty_turns:
            logger.debug(f"{empty_turns} turns contained no words")
        if dropped:
            logger.warning(
                f"{len(dropped)}/{len(words)} words fall outside all diarization turns "
                f"and were dropped"
            )

        return BuildResult(
            spans=spans,
            speaker_count=len(self.speaker_map),
            speaker_map=dict(self.speaker_map),
            dropped_word_indices=dropped,
            methodology_note=(
                f"Segments anchored to {len(self.turns)} external diarization turns."
            )
        )


class SelfClusteringSegmentBuilder(SegmentBuilder):
    """
    Builds one span per utterance, labelled by spectral clustering.
    """

    strategy = STRATEGY_SELF_CLUSTERING

    def __init__(
        self,
        config: Optional[AlignmentConfig] = None,
        diarizer: Optional[NativeDiarizer] = None
    ):
        self.config = config or AlignmentConfig()
        self.diarizer = diarizer or NativeDiarizer(self.config)

    @property
    def merge_gap(self) -> float:
        return self.config.cluster_merge_gap

    def build(
        self,
        words: Sequence[WordTiming],
        samples: Optional[np.ndarray] = None,
        num_speakers: Optional[int] = None
    ) -> BuildResult:
        if not words:
            return BuildResult(methodology_note="No words to cluster.")
        if samples is None:
            raise ValueError("Self-clustering needs the waveform samples")

        result = self.diarizer.diarize(samples, words, num_speakers=num_speakers)
        spans = [
            WordSpan(u.start, u.end, label)
            for u, label in zip(result.utterances, result.utterance_labels())
        ]

        logger.info(
            f"Self-clustering segmentation: {len(spans)} utterance spans, "
            f"{result.speaker_count} speakers"
        )
        return BuildResult(
            spans=spans,
            speaker_count=result.speaker_count,
            used_fallback=result.used_fallback,
            methodology_note=result.methodology_note
        )


def select_segment_builder(
    turns: Optional[Sequence[DiarizationTurn]],
    config: Optional[AlignmentConfig] = None,
    diarizer: Optional[NativeDiarizer] = None
) -> SegmentBuilder:
    """Turn-driven builder when turns are available, self-clustering otherwise."""
    if turns:
        return DiarizationTurnSegmentBuilder(turns, config)
    return SelfClusteringSegmentBuilder(config, diarizer)


def distribute_text_over_turns(
    text: str,
    turns: Sequence[DiarizationTurn],
    speaker_map: Optional[Dict[str, int]] = None
) -> List[Segment]:
    """
    Spread a plain transcript across turns in proportion to their duration.

    Used when the recognizer produced no word timings. Each turn gets
    round(total_words * turn_duration / total_duration) words, at least
    one while words remain; the last turn takes whatever is left.

    Args:
        text: Plain transcript text
        turns: Diarization turns, ordered by start time
        speaker_map: Speaker id to index, built from turns if omitted

    Returns:
        One segment per turn that received words, timed by the turn
    """
    tokens = text.split() if text else []
    if not tokens or not turns:
        return []

    if speaker_map is None:
        speaker_map = build_speaker_map(turns)

    total_duration = sum(max(turn.duration, 0.0) for turn in turns)
    segments = []
    cursor = 0

    for i, turn in enumerate(turns):
        remaining = len(tokens) - cursor
        if remaining <= 0:
            break

        if i == len(turns) - 1:
            count = remaining
        else:
            if total_duration > 0:
                share = max(turn.duration, 0.0) / total_duration
            else:
                share = 1.0 / len(turns)
            count = min(remaining, max(1, int(round(len(tokens) * share))))

        segments.append(Segment(
            text=' '.join(tokens[cursor:cursor + count]),
            start_time=turn.start_time,
            end_time=turn.end_time,
            speaker_index=speaker_map[turn.speaker_id],
        ))
        cursor += count

    logger.info(
        f"Distributed {len(tokens)} words over {len(segments)} turns by duration "
        f"(no word timings)"
    )
    return segments
