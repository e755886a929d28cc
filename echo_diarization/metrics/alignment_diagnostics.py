"""
Alignment quality diagnostics.

Measures how well the final speaker segments agree with the diarization
turns that labelled them, bucketing each segment by the share of its
duration covered by turns of its own speaker.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from echo_diarization.alignment.overlap import build_speaker_map, overlap_duration
from echo_diarization.alignment.speaker_aligner import AlignmentResult
from echo_diarization.audio.models import DiarizationTurn, Segment
from echo_diarization.metrics.diarization_diagnostics import progress_bar

logger = logging.getLogger(__name__)

LOW_AVERAGE_OVERLAP = 50.0


@dataclass
class OverlapBucket:
    """Definition of an overlap percentage bucket."""
    name: str
    min_value: float
    max_value: float
    label: str


# Ordered best to worst; min inclusive, max exclusive
OVERLAP_BUCKETS = [
    OverlapBucket(name="perfect", min_value=95.0, max_value=float('inf'), label="95% and above"),
    OverlapBucket(name="high", min_value=80.0, max_value=95.0, label="80% to 94%"),
    OverlapBucket(name="medium", min_value=50.0, max_value=80.0, label="50% to 79%"),
    OverlapBucket(name="low", min_value=20.0, max_value=50.0, label="20% to 49%"),
    OverlapBucket(name="very_low", min_value=float('-inf'), max_value=20.0, label="Below 20%"),
]


def bucket_for(overlap_percent: float) -> str:
    """Name of the bucket an overlap percentage falls into."""
    for bucket in OVERLAP_BUCKETS:
        if bucket.min_value <= overlap_percent < bucket.max_value:
            return bucket.name
    return OVERLAP_BUCKETS[-1].name


@dataclass
class AlignmentAnalysis:
    """
    Quality summary of one alignment.

    Attributes:
        total_segments: Number of output segments
        speaker_segment_counts: Speaker index to number of segments
        unassigned_segments: Segments with speaker_index -1
        total_words: Input word count
        dropped_words: Words missing from the output
        coverage: Share of input words present in the output
        overlap_distribution: Bucket name to segment count (empty without turns)
        average_overlap: Mean overlap percentage over assigned segments
    """
    total_segments: int = 0
    speaker_segment_counts: Dict[int, int] = field(default_factory=dict)
    unassigned_segments: int = 0
    total_words: int = 0
    dropped_words: int = 0
    coverage: float = 1.0
    overlap_distribution: Dict[str, int] = field(default_factory=dict)
    average_overlap: Optional[float] = None

    @property
    def assigned_segments(self) -> int:
        return self.total_segments - self.unassigned_segments

    def warnings(self) -> List[str]:
        """Human-readable problems worth checking."""
        issues = []
        if self.dropped_words:
            issues.append(
                f"{self.dropped_words}/{self.total_words} words were dropped "
                f"(coverage {self.coverage:.0%}). Diarization did not cover all speech."
            )
        if self.unassigned_segments:
            issues.append(f"{self.unassigned_segments} segments have no speaker")

        if self.average_overlap is not None and self.average_overlap < LOW_AVERAGE_OVERLAP:
            issues.append(
                f"Low segment overlap ({self.average_overlap:.1f}%). Recognizer and "
                f"diarization timestamps disagree."
            )

        low = self.overlap_distribution.get('low', 0) + self.overlap_distribution.get('very_low', 0)
        if self.overlap_distribution and low > self.total_segments / 4:
            issues.append(f"Many low-confidence assignments ({low})")

        if (self.assigned_segments > 1 and len(self.speaker_segment_counts) == 1):
            issues.append("All segments were assigned to one speaker")
        return issues

    def summary(self) -> str:
        """Multi-line text report."""
        lines = [
            "ALIGNMENT DIAGNOSTICS",
            f"  Segments:        {self.total_segments}",
            f"  Unassigned:      {self.unassigned_segments}",
            f"  Word coverage:   {self.coverage * 100:.1f}% "
            f"({self.total_words - self.dropped_words}/{self.total_words})",
        ]
        if self.average_overlap is not None:
            lines.append(f"  Average overlap: {self.average_overlap:.1f}%")

        lines.extend(["", "  Segments by speaker:"])
        total = sum(self.speaker_segment_counts.values())
        for speaker_index, count in sorted(self.speaker_segment_counts.items()):
            percentage = count / total * 100 if total else 0.0
            lines.append(
                f"    Speaker {speaker_index}: {percentage:5.1f}% "
                f"{progress_bar(percentage, 15)} ({count} segments)"
            )

        if self.overlap_distribution:
            lines.extend(["", "  Assignment confidence:"])
            bucket_total = sum(self.overlap_distribution.values())
            for bucket in OVERLAP_BUCKETS:
                count = self.overlap_distribution.get(bucket.name, 0)
                percentage = count / bucket_total * 100 if bucket_total else 0.0
                lines.append(
                    f"    {bucket.label:<14} {percentage:5.1f}% "
                    f"{progress_bar(percentage, 15)} ({count})"
                )

        issues = self.warnings()
        lines.append("")
        if issues:
            lines.append("  WARNINGS:")
            lines.extend(f"    - {issue}" for issue in issues)
        else:
            lines.append("  Alignment looks good.")
        return "\n".join(lines)


def segment_overlap_percent(
    segment: Segment,
    turns: Sequence[DiarizationTurn],
    speaker_id: Optional[str]
) -> float:
    """Percentage of the segment covered by turns of the given speaker."""
    if segment.duration <= 0 or speaker_id is None:
        return 0.0
    covered = sum(
        overlap_duration(segment.start_time, segment.end_time, turn.start_time, turn.end_time)
        for turn in turns
        if turn.speaker_id == speaker_id
    )
    return min(covered / segment.duration * 100, 100.0)


def analyze_alignment(
    result: AlignmentResult,
    turns: Optional[Sequence[DiarizationTurn]] = None
) -> AlignmentAnalysis:
    """
    Compute quality statistics for an alignment result.

    Args:
        result: Output of SpeakerAligner.align
        turns: Turns used for the alignment; enables overlap buckets

    Returns:
        AlignmentAnalysis
    """
    segments = result.segments
    assigned = [seg for seg in segments if seg.has_speaker]
    speaker_counts = Counter(seg.speaker_index for seg in assigned)

    distribution: Dict[str, int] = {}
    average_overlap = None
    if turns and assigned:
        speaker_map = result.speaker_map or build_speaker_map(
            sorted(turns, key=lambda t: t.start_time)
        )
        index_to_id = {index: speaker_id for speaker_id, index in speaker_map.items()}

        distribution = {bucket.name: 0 for bucket in OVERLAP_BUCKETS}
        percentages = []
        for seg in assigned:
            percent = segment_overlap_percent(seg, turns, index_to_id.get(seg.speaker_index))
            percentages.append(percent)
            distribution[bucket_for(percent)] += 1
        average_overlap = sum(percentages) / len(percentages)

    analysis = AlignmentAnalysis(
        total_segments=len(segments),
        speaker_segment_counts=dict(speaker_counts),
        unassigned_segments=len(segments) - len(assigned),
        total_words=result.total_words,
        dropped_words=result.dropped_word_count,
        coverage=result.coverage,
        overlap_distribution=distribution,
        average_overlap=average_overlap,
    )

    for issue in analysis.warnings():
        logger.warning(f"Alignment: {issue}")
    return analysis
