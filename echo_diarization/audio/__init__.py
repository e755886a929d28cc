"""
Audio analysis for speaker diarization.

This package provides:
- Spectral feature extraction (FFT based)
- Utterance grouping by pauses
- Deterministic k-means speaker clustering
- Self-contained diarization of word timings
- Configuration shared with the alignment package
"""

from .config import AlignmentConfig
from .models import (
    FEATURE_DIM,
    FEATURE_NAMES,
    AlignmentInputError,
    DiarizationTurn,
    Segment,
    WordSpan,
    WordTiming,
)
from .spectral_features import SpectralFeatureExtractor
from .utterances import Utterance, group_utterances, utterance_features
from .clustering import ClusteringResult, SpeakerClusterer, zscore_normalize
from .native_diarizer import NativeDiarizationResult, NativeDiarizer

__all__ = [
    'AlignmentConfig',
    'AlignmentInputError',
    'ClusteringResult',
    'DiarizationTurn',
    'FEATURE_DIM',
    'FEATURE_NAMES',
    'NativeDiarizationResult',
    'NativeDiarizer',
    'Segment',
    'SpeakerClusterer',
    'SpectralFeatureExtractor',
    'Utterance',
    'WordSpan',
    'WordTiming',
    'group_utterances',
    'utterance_features',
    'zscore_normalize',
]
