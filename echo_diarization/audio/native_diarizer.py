"""
Self-contained speaker diarization from spectral features.

Used when no external diarization backend is available. Works on the
complete recording in one batch:

1. Extract spectral features for every word
2. Group words into utterances by pauses
3. Average features per utterance and z-score normalize them
4. Cluster utterances with deterministic k-means
5. Broadcast utterance labels back to the words

Speaker labels depend only on the input, never on earlier calls.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from echo_diarization.audio.clustering import (
    FALLBACK_INSUFFICIENT,
    ClusteringResult,
    SpeakerClusterer,
    zscore_normalize,
)
from echo_diarization.audio.config import AlignmentConfig
from echo_diarization.audio.models import WordTiming
from echo_diarization.audio.spectral_features import SpectralFeatureExtractor
from echo_diarization.audio.utterances import (
    Utterance,
    group_utterances,
    utterance_features,
)

logger = logging.getLogger(__name__)


@dataclass
class NativeDiarizationResult:
    """
    Per-word speaker labels and how they were obtained.

    Attributes:
        word_labels: Speaker index for each input word
        utterances: Utterances the labels were assigned to
        clustering: Clustering outcome (None when clustering was skipped)
        speaker_count: Number of speakers the labels refer to; 1 when there
            were too few utterances for the requested count
        methodology_note: Description for quality reports
    """
    word_labels: List[int] = field(default_factory=list)
    utterances: List[Utterance] = field(default_factory=list)
    clustering: Optional[ClusteringResult] = None
    speaker_count: int = 1
    methodology_note: str = ""

    @property
    def used_fallback(self) -> bool:
        return self.clustering is None or self.clustering.used_fallback

    def utterance_labels(self) -> List[int]:
        """Speaker index of each utterance."""
        return [self.word_labels[u.start] for u in self.utterances]


class NativeDiarizer:
    """
    Batch diarizer based on spectral features and k-means.

    Usage:
        diarizer = NativeDiarizer()
        result = diarizer.diarize(samples, words, num_speakers=2)
        # result.word_labels[i] is the speaker of words[i]
    """

    def __init__(
        self,
        config: Optional[AlignmentConfig] = None,
        extractor: Optional[SpectralFeatureExtractor] = None,
        clusterer: Optional[SpeakerClusterer] = None
    ):
        """
        Initialize the diarizer.

        Args:
            config: Thresholds and audio settings, defaults from environment
            extractor: Feature extractor, built from config if omitted
            clusterer: Speaker clusterer, built from config if omitted
        """
        self.config = config or AlignmentConfig()
        self.extractor = extractor or SpectralFeatureExtractor.from_config(self.config)
        self.clusterer = clusterer or SpeakerClusterer(
            max_iterations=self.config.max_iterations,
            balance_threshold=self.config.balance_threshold
        )

    def diarize(
        self,
        samples: np.ndarray,
        words: Sequence[WordTiming],
        num_speakers: Optional[int] = None
    ) -> NativeDiarizationResult:
        """
        Assign a speaker index to every word.

        Args:
            samples: Mono waveform at config.sample_rate
            words: Words ordered by start time
            num_speakers: Speaker count; falls back to config.num_speakers,
                and is estimated from the audio when both are None

        Returns:
            NativeDiarizationResult with one label per word
        """
        if num_speakers is not None and num_speakers < 1:
            raise ValueError(f"num_speakers must be >= 1, got {num_speakers}")

        if len(words) < 2:
            return NativeDiarizationResult(
                word_labels=[0] * len(words),
                utterances=group_utterances(words, self.config.turn_pause),
                speaker_count=1,
                methodology_note="Fewer than two words; single speaker assumed."
            )

        logger.info(f"Native diarization: {len(words)} words")

        word_features = self.extractor.extract_words(samples, words)
        utterances = group_utterances(words, self.config.turn_pause)
        logger.info(f"{len(utterances)} utterances (pauses > {self.config.turn_pause}s)")

        normalized = zscore_normalize(utterance_features(word_features, utterances))

        k = num_speakers if num_speakers is not None else self.config.num_speakers
        if k is None:
            k = self.clusterer.estimate_speaker_count(
                normalized,
                min_speakers=self.config.min_speakers,
                max_speakers=self.config.max_speakers,
                distance_threshold=self.config.speaker_distance_threshold
            )

        clustering = self.clusterer.cluster(normalized, k)
        # Too few utterances: everything was put on speaker 0
        speaker_count = 1 if clustering.fallback_reason == FALLBACK_INSUFFICIENT else k

        word_labels = [0] * len(words)
        for utterance, label in zip(utterances, clustering.labels):
            for index in utterance.word_indices:
                word_labels[index] = label

        self._log_distribution(word_labels, k)

        return NativeDiarizationResult(
            word_labels=word_labels,
            utterances=utterances,
            clustering=clustering,
            speaker_count=speaker_count,
            methodology_note=clustering.methodology_note
        )

    def _log_distribution(self, word_labels: List[int], k: int):
        total = len(word_labels)
        counts = np.bincount(word_labels, minlength=k)
        for speaker, count in enumerate(counts):
            logger.info(f"  Speaker {speaker}: {count} words ({count / total:.0%})")
