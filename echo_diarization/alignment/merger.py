"""
Merging of adjacent same-speaker segments.

Diarization and pause splitting both tend to fragment one speaker's talk
into many short pieces. A single left-to-right pass joins consecutive
segments of the same speaker when the silence between them is short.
"""

import logging
from typing import List, Sequence

from echo_diarization.audio.models import Segment, join_tokens

logger = logging.getLogger(__name__)


class AdjacentSegmentMerger:
    """
    Coalesces consecutive same-speaker segments separated by a short gap.

    Merging is transitive within the pass: a merged segment can absorb the
    next one as well.

    Attributes:
        max_merge_gap: Gaps strictly below this (seconds) are merged
    """

    def __init__(self, max_merge_gap: float = 1.5):
        if max_merge_gap < 0:
            raise ValueError("max_merge_gap must be >= 0")
        self.max_merge_gap = max_merge_gap

    def merge(self, segments: Sequence[Segment]) -> List[Segment]:
        """
        Merge an ordered list of segments.

        Args:
            segments: Segments ordered by start time

        Returns:
            New list; input segments are never modified
        """
        if len(segments) < 2:
            return list(segments)

        merged = []
        current = segments[0]
        for next_seg in segments[1:]:
            if self._should_merge(current, next_seg):
                current = Segment(
                    text=join_tokens([current.text, next_seg.text]),
                    start_time=current.start_time,
                    end_time=max(current.end_time, next_seg.end_time),
                    speaker_index=current.speaker_index,
                )
            else:
                merged.append(current)
                current = next_seg
        merged.append(current)

        if len(merged) != len(segments):
            logger.debug(f"Merged {len(segments)} segments into {len(merged)}")
        return merged

    def _should_merge(self, current: Segment, next_seg: Segment) -> bool:
        gap = next_seg.start_time - current.end_time
        return current.speaker_index == next_seg.speaker_index and gap < self.max_merge_gap


def merge_adjacent_segments(segments: Sequence[Segment], max_gap: float) -> List[Segment]:
    """Merge consecutive same-speaker segments closer than max_gap seconds."""
    return AdjacentSegmentMerger(max_gap).merge(segments)

