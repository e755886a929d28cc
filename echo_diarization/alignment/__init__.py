"""
Speaker-labelled transcript segmentation.

This package provides:
- Turn-driven and self-clustering segment builders
- Pause-based splitting of long segments
- Merging of adjacent same-speaker segments
- Overlap-based speaker lookups
- SpeakerAligner, the end-to-end pipeline
"""

from .merger import AdjacentSegmentMerger, merge_adjacent_segments
from .overlap import (
    build_speaker_map,
    dominant_speaker,
    label_segments_by_overlap,
    speaker_count,
)
from .segment_builder import (
    STRATEGY_SELF_CLUSTERING,
    STRATEGY_TURNS,
    BuildResult,
    DiarizationTurnSegmentBuilder,
    SegmentBuilder,
    SelfClusteringSegmentBuilder,
    distribute_text_over_turns,
    select_segment_builder,
)
from .speaker_aligner import (
    STRATEGY_EMPTY,
    STRATEGY_PROPORTIONAL_TEXT,
    STRATEGY_SINGLE_SEGMENT,
    AlignmentResult,
    SpeakerAligner,
)
from .splitter import LongSegmentSplitter

__all__ = [
    'AdjacentSegmentMerger',
    'AlignmentResult',
    'BuildResult',
    'DiarizationTurnSegmentBuilder',
    'LongSegmentSplitter',
    'STRATEGY_EMPTY',
    'STRATEGY_PROPORTIONAL_TEXT',
    'STRATEGY_SELF_CLUSTERING',
    'STRATEGY_SINGLE_SEGMENT',
    'STRATEGY_TURNS',
    'SegmentBuilder',
    'SelfClusteringSegmentBuilder',
    'SpeakerAligner',
    'build_speaker_map',
    'dominant_speaker',
    'distribute_text_over_turns',
    'label_segments_by_overlap',
    'merge_adjacent_segments',
    'select_segment_builder',
    'speaker_count',
]
