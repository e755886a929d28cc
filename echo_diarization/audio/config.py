"""
Diarization and alignment configuration.

All thresholds used by feature extraction, clustering, splitting and merging
live here. Every setting can be overridden through the environment (a .env
file is honoured) or by passing explicit values.
"""

import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 16000
DEFAULT_FRAME_SIZE = 512
DEFAULT_HOP_SIZE = 256
DEFAULT_NUM_SPEAKERS = 2
DEFAULT_TURN_PAUSE = 0.6
DEFAULT_MAX_SEGMENT_DURATION = 15.0
DEFAULT_MIN_PAUSE_FOR_SPLIT = 0.4
DEFAULT_TURN_MERGE_GAP = 1.5
DEFAULT_CLUSTER_MERGE_GAP = 2.0
DEFAULT_BALANCE_THRESHOLD = 0.05


def _env_speaker_count(name: str, default: int) -> Optional[int]:
    """Read a speaker count; 'auto' (or 0) means estimate from the audio."""
    raw = os.getenv(name, str(default)).strip().lower()
    if raw in ('auto', '', '0', '-1'):
        return None
    return int(raw)


@dataclass
class AlignmentConfig:
    """
    Settings for the diarization engine and segment alignment.

    Attributes:
        sample_rate: Waveform sample rate in Hz
        frame_size: FFT frame length in samples
        hop_size: Hop between analysis frames in samples
        num_speakers: Speaker count for self-clustering, None to estimate
        min_speakers: Lower bound when estimating the speaker count
        max_speakers: Upper bound when estimating the speaker count
        speaker_distance_threshold: Linkage distance cut used for estimation
        turn_pause: Silence (seconds) that starts a new utterance
        max_segment_duration: Segments longer than this get split at pauses
        min_pause_for_split: Smallest inter-word gap usable as a split point
        turn_merge_gap: Merge gap for segments built from diarization turns
        cluster_merge_gap: Merge gap for segments built by self-clustering
        balance_threshold: Min/max cluster size ratio below which clustering
            is considered collapsed
        max_iterations: Lloyd iteration cap for k-means
        min_feature_samples: Slices with this many samples or fewer are skipped
        rolloff_percent: Cumulative magnitude share for spectral rolloff
        pitch_min_hz: Lower edge of the dominant pitch search band
        pitch_max_hz: Upper edge of the dominant pitch search band
    """

    sample_rate: int = int(os.getenv('DIARIZATION_SAMPLE_RATE', str(DEFAULT_SAMPLE_RATE)))
    frame_size: int = int(os.getenv('DIARIZATION_FRAME_SIZE', str(DEFAULT_FRAME_SIZE)))
    hop_size: int = int(os.getenv('DIARIZATION_HOP_SIZE', str(DEFAULT_HOP_SIZE)))
    num_speakers: Optional[int] = _env_speaker_count('DIARIZATION_NUM_SPEAKERS', DEFAULT_NUM_SPEAKERS)
    min_speakers: int = int(os.getenv('MIN_EXPECTED_SPEAKERS', '1'))
    max_speakers: int = int(os.getenv('MAX_EXPECTED_SPEAKERS', '8'))
    speaker_distance_threshold: float = float(os.getenv('SPEAKER_DISTANCE_THRESHOLD', '3.0'))
    turn_pause: float = float(os.getenv('DIARIZATION_TURN_PAUSE', str(DEFAULT_TURN_PAUSE)))
    max_segment_duration: float = float(
        os.getenv('MAX_SEGMENT_DURATION', str(DEFAULT_MAX_SEGMENT_DURATION))
    )
    min_pause_for_split: float = float(
        os.getenv('MIN_PAUSE_FOR_SPLIT', str(DEFAULT_MIN_PAUSE_FOR_SPLIT))
    )
    turn_merge_gap: float = float(os.getenv('TURN_MERGE_GAP', str(DEFAULT_TURN_MERGE_GAP)))
    cluster_merge_gap: float = float(os.getenv('CLUSTER_MERGE_GAP', str(DEFAULT_CLUSTER_MERGE_GAP)))
    balance_threshold: float = float(
        os.getenv('CLUSTER_BALANCE_THRESHOLD', str(DEFAULT_BALANCE_THRESHOLD))
    )
    max_iterations: int = int(os.getenv('KMEANS_MAX_ITERATIONS', '100'))
    min_feature_samples: int = int(os.getenv('MIN_FEATURE_SAMPLES', '10'))
    rolloff_percent: float = float(os.getenv('SPECTRAL_ROLLOFF_PERCENT', '0.85'))
    pitch_min_hz: float = float(os.getenv('PITCH_MIN_HZ', '80.0'))
    pitch_max_hz: float = float(os.getenv('PITCH_MAX_HZ', '400.0'))

    def __post_init__(self):
        if self.sample_rate < 1:
            raise ValueError("sample_rate must be >= 1")
        if self.frame_size < 2:
            raise ValueError("frame_size must be >= 2")
        if not 1 <= self.hop_size <= self.frame_size:
            raise ValueError("hop_size must be between 1 and frame_size")
        if self.num_speakers is not None and self.num_speakers < 1:
            raise ValueError("num_speakers must be >= 1 (or None to estimate)")
        if self.min_speakers < 1 or self.min_speakers > self.max_speakers:
            raise ValueError("speaker bounds must satisfy 1 <= min_speakers <= max_speakers")
        for name in ('turn_pause', 'min_pause_for_split', 'turn_merge_gap',
                     'cluster_merge_gap', 'speaker_distance_threshold'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.max_segment_duration <= 0:
            raise ValueError("max_segment_duration must be > 0")
        if not 0.0 <= self.balance_threshold <= 1.0:
            raise ValueError("balance_threshold must be within [0, 1]")
        if not 0.0 < self.rolloff_percent <= 1.0:
            raise ValueError("rolloff_percent must be within (0, 1]")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        if self.pitch_min_hz >= self.pitch_max_hz:
            raise ValueError("pitch_min_hz must be below pitch_max_hz")

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
