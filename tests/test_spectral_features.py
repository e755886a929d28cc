"""
Tests for the spectral feature extractor.

Tests cover:
- Feature vector layout and values on pure tones
- Too-short and silent slices
- Time-based slicing of a waveform
- Frozen window and frequency tables
"""

import numpy as np
import pytest

from echo_diarization.audio.models import FEATURE_DIM, FEATURE_NAMES, WordTiming
from echo_diarization.audio.spectral_features import SpectralFeatureExtractor

from conftest import SAMPLE_RATE, tone

RMS, CENTROID, BANDWIDTH, ROLLOFF, ZCR, PEAK = range(FEATURE_DIM)


@pytest.fixture
def extractor():
    """Create a default SpectralFeatureExtractor."""
    return SpectralFeatureExtractor(sample_rate=SAMPLE_RATE)


class TestExtract:
    """Test single-slice feature extraction."""

    def test_vector_layout(self, extractor):
        """Six features in a fixed order."""
        features = extractor.extract(tone(200.0, 0.1))
        assert features.shape == (FEATURE_DIM,)
        assert FEATURE_NAMES[CENTROID] == 'spectral_centroid'

    def test_rms_of_sine(self, extractor):
        """RMS of a sine is amplitude / sqrt(2)."""
        features = extractor.extract(tone(200.0, 0.1, amplitude=0.5))
        assert features[RMS] == pytest.approx(0.5 / np.sqrt(2), rel=1e-3)

    def test_zero_crossing_rate(self, extractor):
        """A sine crosses zero twice per period."""
        features = extractor.extract(tone(200.0, 0.1))
        assert features[ZCR] == pytest.approx(2 * 200.0 / SAMPLE_RATE, abs=0.005)

    def test_dominant_pitch(self, extractor):
        """Peak in the pitch band lands on the tone's bin."""
        features = extractor.extract(tone(200.0, 0.1))
        bin_width = SAMPLE_RATE / 512
        assert abs(features[PEAK] - 200.0) <= bin_width

    def test_higher_tone_has_higher_spectrum(self, extractor):
        """Centroid and rolloff move up with frequency."""
        low = extractor.extract(tone(300.0, 0.1))
        high = extractor.extract(tone(3000.0, 0.1))
        assert high[CENTROID] > low[CENTROID]
        assert high[ROLLOFF] > low[ROLLOFF]
        assert high[ZCR] > low[ZCR]

    def test_rolloff_not_below_tone(self, extractor):
        """85% of the magnitude is reached at or after the tone's bin."""
        features = extractor.extract(tone(1000.0, 0.1))
        assert features[ROLLOFF] >= 1000.0 - SAMPLE_RATE / 512

    @pytest.mark.parametrize("length", [0, 1, 10])
    def test_too_short_is_zero(self, extractor, length):
        """Ten samples or fewer give the zero vector."""
        np.testing.assert_array_equal(extractor.extract(np.ones(length)), np.zeros(FEATURE_DIM))

    def test_shorter_than_frame(self, extractor):
        """Slices shorter than a frame are zero-padded once."""
        features = extractor.extract(tone(500.0, 0.01))
        assert len(tone(500.0, 0.01)) < 512
        assert features[CENTROID] > 0

    def test_silence(self, extractor):
        """Silent slices have zero spectral features."""
        np.testing.assert_array_equal(extractor.extract(np.zeros(2048)), np.zeros(FEATURE_DIM))

    def test_rejects_multichannel(self, extractor):
        """Only mono input is accepted."""
        with pytest.raises(ValueError):
            extractor.extract(np.zeros((2, 1000)))

    def test_deterministic(self, extractor):
        """Same input gives the same features."""
        samples = tone(440.0, 0.2) + tone(880.0, 0.2, amplitude=0.2)
        np.testing.assert_array_equal(extractor.extract(samples), extractor.extract(samples))


class TestTables:
    """Test the precomputed window and frequency tables."""

    def test_window_is_read_only(self, extractor):
        """The Hann window cannot be modified."""
        with pytest.raises(ValueError):
            extractor._window[0] = 1.0

    def test_frequencies(self, extractor):
        """Bin k is centred at k * sample_rate / frame_size."""
        freqs = extractor.frequencies
        assert len(freqs) == 256
        assert freqs[1] == pytest.approx(SAMPLE_RATE / 512)
        assert not freqs.flags.writeable


class TestExtractWords:
    """Test per-word extraction from a full recording."""

    def test_one_row_per_word(self, extractor):
        """Rows follow the word order; tiny words give zero rows."""
        waveform = np.concatenate([tone(200.0, 0.5), tone(2000.0, 0.5)])
        words = [
            WordTiming("low", 0.0, 0.4),
            WordTiming("blip", 0.45, 0.4503),
            WordTiming("high", 0.6, 0.95),
        ]
        features = extractor.extract_words(waveform, words)

        assert features.shape == (3, FEATURE_DIM)
        np.testing.assert_array_equal(features[1], np.zeros(FEATURE_DIM))
        assert features[2][CENTROID] > features[0][CENTROID]

    def test_span_clamped_to_waveform(self, extractor):
        """Times past the end of the recording are clamped."""
        waveform = tone(200.0, 1.0)
        inside = extractor.extract_span(waveform, 0.5, 1.0)
        clamped = extractor.extract_span(waveform, 0.5, 3.0)
        np.testing.assert_array_equal(inside, clamped)

    def test_span_outside_waveform(self, extractor):
        """A span entirely after the recording gives zeros."""
        features = extractor.extract_span(tone(200.0, 1.0), 2.0, 3.0)
        np.testing.assert_array_equal(features, np.zeros(FEATURE_DIM))
