"""
Spectral feature extraction for speaker clustering.

Turns a slice of 16 kHz mono audio into a six-value descriptor:
RMS energy, spectral centroid, spectral bandwidth, 85% spectral rolloff,
zero-crossing rate and the dominant spectral peak in the voice pitch band.
Spectral measures are computed per Hann-windowed FFT frame and averaged;
RMS and zero-crossing rate are computed once over the whole slice.
"""

import logging
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy.fft import rfft
from scipy.signal import get_window

from echo_diarization.audio.config import AlignmentConfig
from echo_diarization.audio.models import FEATURE_DIM, WordTiming

logger = logging.getLogger(__name__)

# Frames whose magnitude sum falls to this level are treated as silence
SILENCE_MAGNITUDE_FLOOR = 1e-10


class SpectralFeatureExtractor:
    """
    Extracts fixed-length spectral feature vectors from audio slices.

    The Hann window and frequency table are built once and frozen
    (read-only), so one extractor can serve many words and many runs.

    Attributes:
        sample_rate: Audio sample rate in Hz
        frame_size: FFT size in samples
        hop_size: Distance between successive frames in samples
        rolloff_percent: Cumulative magnitude share for the rolloff point
        min_samples: Slices with this many samples or fewer yield zeros
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        frame_size: int = 512,
        hop_size: int = 256,
        rolloff_percent: float = 0.85,
        pitch_min_hz: float = 80.0,
        pitch_max_hz: float = 400.0,
        min_samples: int = 10
    ):
        """
        Initialize the extractor.

        Args:
            sample_rate: Audio sample rate in Hz
            frame_size: FFT frame length in samples
            hop_size: Hop between frames in samples
            rolloff_percent: Share of spectral magnitude below the rolloff
            pitch_min_hz: Lower bound of the dominant peak search
            pitch_max_hz: Upper bound of the dominant peak search
            min_samples: Minimum usable slice length (exclusive)
        """
        if sample_rate < 1:
            raise ValueError("sample_rate must be >= 1")
        if frame_size < 2:
            raise ValueError("frame_size must be >= 2")
        if not 1 <= hop_size <= frame_size:
            raise ValueError("hop_size must be between 1 and frame_size")

        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.hop_size = hop_size
        self.rolloff_percent = rolloff_percent
        self.min_samples = min_samples

        self._half = frame_size // 2
        freq_resolution = sample_rate / frame_size

        self._window = get_window('hann', frame_size).astype(np.float64)
        self._window.setflags(write=False)
        self._freqs = np.arange(self._half, dtype=np.float64) * freq_resolution
        self._freqs.setflags(write=False)

        # Pitch band in bins, never touching DC or the last bin
        self._pitch_min_bin = max(1, int(pitch_min_hz / freq_resolution))
        self._pitch_max_bin = min(self._half - 1, int(pitch_max_hz / freq_resolution))

    @classmethod
    def from_config(cls, config: AlignmentConfig) -> 'SpectralFeatureExtractor':
        return cls(
            sample_rate=config.sample_rate,
            frame_size=config.frame_size,
            hop_size=config.hop_size,
            rolloff_percent=config.rolloff_percent,
            pitch_min_hz=config.pitch_min_hz,
            pitch_max_hz=config.pitch_max_hz,
            min_samples=config.min_feature_samples,
        )

    @property
    def frequencies(self) -> np.ndarray:
        """Center frequency (Hz) of each magnitude bin."""
        return self._freqs

    def extract(self, samples: np.ndarray) -> np.ndarray:
        """
        Compute the feature vector of one audio slice.

        Args:
            samples: Mono float samples

        Returns:
            Array of FEATURE_DIM floats; all zeros when the slice is too
            short to analyse.
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Expected mono samples, got shape {samples.shape}")

        if len(samples) <= self.min_samples:
            return np.zeros(FEATURE_DIM)

        rms = float(np.sqrt(np.mean(samples ** 2)))
        zcr = self._zero_crossing_rate(samples)

        frames = self._frame(samples)
        spectral = self._spectral_features(frames)
        centroid, bandwidth, rolloff, peak = spectral.mean(axis=0)

        return np.array([rms, centroid, bandwidth, rolloff, zcr, peak])

    def extract_span(
        self,
        waveform: np.ndarray,
        start_time: float,
        end_time: float
    ) -> np.ndarray:
        """
        Compute features for the part of a waveform between two times.

        Args:
            waveform: Full recording
            start_time: Slice start in seconds
            end_time: Slice end in seconds

        Returns:
            Feature vector, zeros if the clamped slice is empty or too short.
        """
        start_idx = max(0, int(start_time * self.sample_rate))
        end_idx = min(len(waveform), int(end_time * self.sample_rate))
        if start_idx >= end_idx or end_idx - start_idx <= self.min_samples:
            return np.zeros(FEATURE_DIM)
        return self.extract(waveform[start_idx:end_idx])

    def extract_words(
        self,
        waveform: np.ndarray,
        words: Sequence[WordTiming]
    ) -> np.ndarray:
        """
        Compute one feature vector per word.

        Returns:
            Array of shape (len(words), FEATURE_DIM)
        """
        waveform = np.asarray(waveform)
        if waveform.ndim != 1:
            raise ValueError(f"Expected a mono waveform, got shape {waveform.shape}")

        features = np.zeros((len(words), FEATURE_DIM))
        for i, word in enumerate(words):
            features[i] = self.extract_span(waveform, word.start_time, word.end_time)

        missing = int(np.sum(~features.any(axis=1)))
        if missing:
            logger.debug(f"{missing}/{len(words)} words too short for spectral features")
        return features

    def _frame(self, samples: np.ndarray) -> np.ndarray:
        """Cut samples into overlapping frames, zero-padding short slices once."""
        if len(samples) >= self.frame_size:
            return sliding_window_view(samples, self.frame_size)[::self.hop_size]
        padded = np.zeros(self.frame_size)
        padded[:len(samples)] = samples
        return padded[np.newaxis, :]

    def _zero_crossing_rate(self, samples: np.ndarray) -> float:
        if len(samples) < 2:
            return 0.0
        positive = samples >= 0
        crossings = np.count_nonzero(positive[1:] != positive[:-1])
        return crossings / (len(samples) - 1)

    def _spectral_features(self, frames: np.ndarray) -> np.ndarray:
        """
        Per-frame centroid, bandwidth, rolloff and dominant pitch peak.

        Args:
            frames: Array of shape (n_frames, frame_size)

        Returns:
            Array of shape (n_frames, 4); silent frames are all zeros.
        """
        mags = np.abs(rfft(frames * self._window, axis=1))[:, :self._half]
        freqs = self._freqs

        mag_sum = mags.sum(axis=1)
        voiced = mag_sum > SILENCE_MAGNITUDE_FLOOR
        safe_sum = np.where(voiced, mag_sum, 1.0)

        centroid = (mags @ freqs) / safe_sum
        spread = (freqs[np.newaxis, :] - centroid[:, np.newaxis]) ** 2
        bandwidth = np.sqrt(np.sum(spread * mags, axis=1) / safe_sum)

        cumulative = np.cumsum(mags, axis=1)
        reached = cumulative >= (self.rolloff_percent * mag_sum)[:, np.newaxis]
        rolloff = np.where(
            reached.any(axis=1),
            freqs[np.argmax(reached, axis=1)],
            freqs[-1]
        )

        peak = np.zeros(len(frames))
        if self._pitch_min_bin < self._pitch_max_bin:
            band = mags[:, self._pitch_min_bin:self._pitch_max_bin + 1]
            peak_bins = self._pitch_min_bin + np.argmax(band, axis=1)
            peak = np.where(band.max(axis=1) > 0, freqs[peak_bins], 0.0)

        features = np.column_stack([centroid, bandwidth, rolloff, peak])
        features[~voiced] = 0.0
        return features

