"""
Speaker alignment pipeline.

Turns word timings (and optionally diarization turns) into ordered,
speaker-labelled transcript segments:

    words + turns   -> turn-driven spans  -> split -> merge (1.5s)
    words + audio   -> clustered spans    -> split -> merge (2.0s)
    text + turns    -> proportional text distribution -> merge
    text only       -> one segment for the whole recording

Each call is independent: no state is kept between recordings.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from echo_diarization.alignment.merger import AdjacentSegmentMerger
from echo_diarization.alignment.overlap import build_speaker_map
from echo_diarization.alignment.segment_builder import (
    distribute_text_over_turns,
    select_segment_builder,
)
from echo_diarization.alignment.splitter import LongSegmentSplitter
from echo_diarization.audio.config import AlignmentConfig
from echo_diarization.audio.models import (
    DiarizationTurn,
    Segment,
    WordTiming,
    validate_turns,
    validate_words,
)
from echo_diarization.audio.native_diarizer import NativeDiarizer

logger = logging.getLogger(__name__)

STRATEGY_PROPORTIONAL_TEXT = 'proportional_text'
STRATEGY_SINGLE_SEGMENT = 'single_segment'
STRATEGY_EMPTY = 'empty'


@dataclass
class AlignmentResult:
    """
    Final segments of one recording plus quality signals.

    Attributes:
        segments: Speaker-labelled segments ordered by start time
        speaker_count: Number of speakers segments may refer to; 1 when
            there were fewer utterances than requested speakers
        strategy: Which path produced the segments
        total_words: Number of input word timings
        dropped_word_indices: Words that ended up in no segment
        speaker_map: External speaker id to index (turn-driven paths)
        used_fallback: True when speakers came from a degenerate fallback
            rather than real diarization
        methodology_note: Description for quality reports
    """
    segments: List[Segment] = field(default_factory=list)
    speaker_count: int = 0
    strategy: str = STRATEGY_EMPTY
    total_words: int = 0
    dropped_word_indices: List[int] = field(default_factory=list)
    speaker_map: Dict[str, int] = field(default_factory=dict)
    used_fallback: bool = False
    methodology_note: str = ""

    @property
    def dropped_word_count(self) -> int:
        return len(self.dropped_word_indices)

    @property
    def coverage(self) -> float:
        """Share of input words present in the output (1.0 with no words)."""
        if self.total_words == 0:
            return 1.0
        return (self.total_words - self.dropped_word_count) / self.total_words

    @property
    def plain_text(self) -> str:
        return ' '.join(seg.text for seg in self.segments)


class SpeakerAligner:
    """
    Builds speaker-labelled segments from recognizer and diarizer output.

    Usage:
        aligner = SpeakerAligner()
        result = aligner.align(words=words, samples=samples, turns=turns)
        for segment in result.segments:
            print(segment.speaker_index, segment.text)
    """

    def __init__(
        self,
        config: Optional[AlignmentConfig] = None,
        diarizer: Optional[NativeDiarizer] = None
    ):
        """
        Initialize the aligner.

        Args:
            config: Thresholds, defaults from environment
            diarizer: Diarizer for the self-clustering path, built lazily
                from config if omitted
        """
        self.config = config or AlignmentConfig()
        self._diarizer = diarizer
        self.splitter = LongSegmentSplitter(
            max_segment_duration=self.config.max_segment_duration,
            min_pause_for_split=self.config.min_pause_for_split
        )

    @property
    def diarizer(self) -> NativeDiarizer:
        if self._diarizer is None:
            self._diarizer = NativeDiarizer(self.config)
        return self._diarizer

    def align(
        self,
        words: Optional[Sequence[WordTiming]] = None,
        samples: Optional[np.ndarray] = None,
        turns: Optional[Sequence[DiarizationTurn]] = None,
        transcript_text: Optional[str] = None,
        num_speakers: Optional[int] = None
    ) -> AlignmentResult:
        """
        Produce the final segments for one recording.

        Args:
            words: Word timings ordered by start time, may be empty
            samples: Mono waveform, required when words exist but turns don't
            turns: External diarization turns, may be empty
            transcript_text: Plain transcript, used only without word timings
            num_speakers: Speaker count for self-clustering

        Returns:
            AlignmentResult

        Raises:
            AlignmentInputError: If a word or turn is malformed
            ValueError: If the waveform is not mono, or self-clustering is
                needed but no samples were given
        """
        words = list(words or [])
        turns = list(turns or [])
        validate_words(words)
        validate_turns(turns)
        if samples is not None:
            samples = np.asarray(samples)
            if samples.ndim != 1:
                raise ValueError(f"Expected a mono waveform, got shape {samples.shape}")

        if words:
            result = self._align_words(words, samples, turns, num_speakers)
        elif transcript_text and transcript_text.strip():
            result = self._align_text(transcript_text, samples, turns)
        else:
            logger.info("Nothing to align: no word timings and no transcript text")
            result = AlignmentResult(methodology_note="No transcript input.")

        logger.info(
            f"Alignment complete ({result.strategy}): {len(result.segments)} segments, "
            f"{result.speaker_count} speakers, coverage {result.coverage:.0%}"
        )
        return result

    def _align_words(
        self,
        words: List[WordTiming],
        samples: Optional[np.ndarray],
        turns: List[DiarizationTurn],
        num_speakers: Optional[int]
    ) -> AlignmentResult:
        builder = select_segment_builder(turns, self.config, self._diarizer_if_needed(turns))
        built = builder.build(words, samples=samples, num_speakers=num_speakers)

        spans = self.splitter.split_all(words, built.spans)
        segments = [span.to_segment(words) for span in spans]
        segments = AdjacentSegmentMerger(builder.merge_gap).merge(segments)

        return AlignmentResult(
            segments=segments,
            speaker_count=built.speaker_count,
            strategy=builder.strategy,
            total_words=len(words),
            dropped_word_indices=built.dropped_word_indices,
            speaker_map=built.speaker_map,
            used_fallback=built.used_fallback,
            methodology_note=built.methodology_note
        )

    def _align_text(
        self,
        text: str,
        samples: Optional[np.ndarray],
        turns: List[DiarizationTurn]
    ) -> AlignmentResult:
        if turns:
            turns = sorted(turns, key=lambda t: t.start_time)
            speaker_map = build_speaker_map(turns)
            segments = distribute_text_over_turns(text, turns, speaker_map)
            segments = AdjacentSegmentMerger(self.config.turn_merge_gap).merge(segments)
            return AlignmentResult(
                segments=segments,
                speaker_count=len(speaker_map),
                strategy=STRATEGY_PROPORTIONAL_TEXT,
                speaker_map=speaker_map,
                used_fallback=True,
                methodology_note=(
                    "No word timings; transcript distributed over diarization turns "
                    "by duration."
                )
            )

        duration = len(samples) / self.config.sample_rate if samples is not None else 0.0
        logger.warning("No word timings and no diarization turns; single speaker assumed")
        return AlignmentResult(
            segments=[Segment(' '.join(text.split()), 0.0, duration, 0)],
            speaker_count=1,
            strategy=STRATEGY_SINGLE_SEGMENT,
            used_fallback=True,
            methodology_note="No word timings or diarization; single speaker assumed."
        )

    def _diarizer_if_needed(self, turns: Sequence[DiarizationTurn]) -> Optional[NativeDiarizer]:
        return None if turns else self.diarizer
