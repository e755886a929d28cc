"""
Diagnostics for recordings, diarization and alignment results.

This package provides:
- Audio level, noise and speech-activity statistics with a quality rating
- Diarization turn statistics and warnings
- ASCII timeline rendering
- Alignment overlap confidence buckets and coverage reporting
"""

from echo_diarization.metrics.audio_diagnostics import (
    AudioQuality,
    analyze_audio,
)
from echo_diarization.metrics.diarization_diagnostics import (
    DiarizationAnalysis,
    analyze_turns,
    visualize_timeline,
)
from echo_diarization.metrics.alignment_diagnostics import (
    OVERLAP_BUCKETS,
    AlignmentAnalysis,
    OverlapBucket,
    analyze_alignment,
)

__all__ = [
    'AlignmentAnalysis',
    'AudioQuality',
    'DiarizationAnalysis',
    'OVERLAP_BUCKETS',
    'OverlapBucket',
    'analyze_alignment',
    'analyze_audio',
    'analyze_turns',
    'visualize_timeline',
]
