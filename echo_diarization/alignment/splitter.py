"""
Long-segment splitting at pauses.

A segment longer than the duration limit is bisected at the pause
nearest its temporal midpoint, and each half is treated the same way
until everything fits or no usable pause is left. Splitting never
changes speakers: every piece keeps the speaker of the original segment.
"""

import logging
from typing import List, Sequence

from echo_diarization.audio.models import WordSpan, WordTiming

logger = logging.getLogger(__name__)


class LongSegmentSplitter:
    """
    Splits word spans that exceed a maximum duration.

    Works on index ranges into the word list, so no words are copied.

    Attributes:
        max_segment_duration: Longest allowed segment in seconds
        min_pause_for_split: Shortest inter-word gap usable as a cut point
    """

    def __init__(
        self,
        max_segment_duration: float = 15.0,
        min_pause_for_split: float = 0.4
    ):
        if max_segment_duration <= 0:
            raise ValueError("max_segment_duration must be > 0")
        self.max_segment_duration = max_segment_duration
        self.min_pause_for_split = min_pause_for_split

    def split(self, words: Sequence[WordTiming], span: WordSpan) -> List[WordSpan]:
        """
        Split one span until every piece fits or cannot be cut further.

        Args:
            words: Full word list the span indexes into
            span: Span to split

        Returns:
            Ordered spans covering exactly the words of the input span
        """
        if len(span) == 0:
            return [span]

        result = []
        # Right half pushed first so the left half is emitted first
        stack = [span]
        while stack:
            current = stack.pop()
            cut = self._find_cut(words, current)
            if cut is None:
                result.append(current)
                continue
            stack.append(WordSpan(cut, current.end, current.speaker_index))
            stack.append(WordSpan(current.start, cut, current.speaker_index))

        if len(result) > 1:
            logger.debug(
                f"Split {span.duration(words):.1f}s segment into {len(result)} parts"
            )
        return result

    def split_all(
        self,
        words: Sequence[WordTiming],
        spans: Sequence[WordSpan]
    ) -> List[WordSpan]:
        """Split every span, preserving order."""
        result = []
        for span in spans:
            result.extend(self.split(words, span))
        return result

    def _find_cut(self, words: Sequence[WordTiming], span: WordSpan):
        """
        Index of the word that should start the second half, or None.

        Returns None when the span fits the limit or has no pause of at
        least min_pause_for_split.
        """
        start_time = span.start_time(words)
        end_time = span.end_time(words)
        if end_time - start_time <= self.max_segment_duration:
            return None

        midpoint = (start_time + end_time) / 2.0
        best_index = None
        best_distance = float('inf')
        for i in range(span.start + 1, span.end):
            gap = words[i].start_time - words[i - 1].end_time
            if gap < self.min_pause_for_split:
                continue
            distance = abs(words[i].start_time - midpoint)
            if distance < best_distance:
                best_distance = distance
                best_index = i

        return best_index
