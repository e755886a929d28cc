"""
Shared fixtures for the diarization and alignment tests.
"""

from typing import List, Sequence, Tuple

import numpy as np
import pytest

from echo_diarization.audio.config import AlignmentConfig
from echo_diarization.audio.models import DiarizationTurn, WordTiming

SAMPLE_RATE = 16000


def make_words(spans: Sequence[Tuple[str, float, float]]) -> List[WordTiming]:
    """Build word timings from (token, start, end) tuples."""
    return [WordTiming(token, start, end) for token, start, end in spans]


def make_turns(spans: Sequence[Tuple[str, float, float]]) -> List[DiarizationTurn]:
    """Build diarization turns from (speaker_id, start, end) tuples."""
    return [DiarizationTurn(speaker, start, end) for speaker, start, end in spans]


def tone(frequency: float, duration: float, amplitude: float = 0.5,
         sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Sine wave of the given frequency."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t)


def evenly_spaced_words(count: int, start: float = 0.0, step: float = 0.5,
                        length: float = 0.4, prefix: str = 'w') -> List[WordTiming]:
    """Words of equal length separated by equal gaps."""
    return [
        WordTiming(f"{prefix}{i}", start + step * i, start + step * i + length)
        for i in range(count)
    ]


@pytest.fixture
def config():
    """Config with explicit defaults, independent of the environment."""
    return AlignmentConfig(
        sample_rate=SAMPLE_RATE,
        frame_size=512,
        hop_size=256,
        num_speakers=2,
        min_speakers=1,
        max_speakers=8,
        speaker_distance_threshold=3.0,
        turn_pause=0.6,
        max_segment_duration=15.0,
        min_pause_for_split=0.4,
        turn_merge_gap=1.5,
        cluster_merge_gap=2.0,
        balance_threshold=0.05,
        max_iterations=100,
        min_feature_samples=10,
        rolloff_percent=0.85,
        pitch_min_hz=80.0,
        pitch_max_hz=400.0,
    )


@pytest.fixture
def two_voice_recording():
    """
    Four utterances alternating between a low quiet voice and a high loud one.

    Each utterance is two 0.3s words with a 0.1s gap; utterances are
    separated by 1.0s of silence.

    Returns:
        Tuple of (samples, words, expected utterance speakers)
    """
    voices = [(150.0, 0.2), (2500.0, 0.8)]
    utterance_length = 0.7
    pause = 1.0
    total = 4 * (utterance_length + pause)
    samples = np.zeros(int(total * SAMPLE_RATE))

    words = []
    for u in range(4):
        frequency, amplitude = voices[u % 2]
        start = u * (utterance_length + pause)
        signal = tone(frequency, utterance_length, amplitude)
        offset = int(start * SAMPLE_RATE)
        samples[offset:offset + len(signal)] = signal
        words.append(WordTiming(f"u{u}a", start, start + 0.3))
        words.append(WordTiming(f"u{u}b", start + 0.4, start + 0.7))

    return samples, words, [0, 1, 0, 1]
