"""
Tests for AlignmentConfig defaults, overrides and validation.
"""

import pytest

from echo_diarization.audio import config as config_module
from echo_diarization.audio.config import AlignmentConfig


class TestAlignmentConfig:
    """Test configuration handling."""

    def test_explicit_values(self, config):
        """Explicit values are kept as given."""
        assert config.turn_merge_gap == 1.5
        assert config.cluster_merge_gap == 2.0
        assert config.max_segment_duration == 15.0
        assert config.min_pause_for_split == 0.4
        assert config.balance_threshold == 0.05

    def test_as_dict(self, config):
        """as_dict exposes every field."""
        data = config.as_dict()
        assert data['sample_rate'] == 16000
        assert data['num_speakers'] == 2
        assert 'turn_pause' in data

    def test_none_speakers_means_estimate(self):
        """num_speakers may be None."""
        assert AlignmentConfig(num_speakers=None).num_speakers is None

    @pytest.mark.parametrize("overrides", [
        {'num_speakers': 0},
        {'hop_size': 0},
        {'hop_size': 1024, 'frame_size': 512},
        {'min_speakers': 5, 'max_speakers': 2},
        {'max_segment_duration': 0},
        {'turn_merge_gap': -1.0},
        {'balance_threshold': 1.5},
        {'pitch_min_hz': 500.0, 'pitch_max_hz': 400.0},
    ])
    def test_invalid_values(self, overrides):
        """Out-of-range settings raise ValueError."""
        with pytest.raises(ValueError):
            AlignmentConfig(**overrides)


class TestEnvSpeakerCount:
    """Test parsing of the speaker count environment variable."""

    @pytest.mark.parametrize("raw", ['auto', 'AUTO', '', '0', '-1'])
    def test_auto_values(self, monkeypatch, raw):
        """Auto markers mean estimate."""
        monkeypatch.setenv('TEST_SPEAKERS', raw)
        assert config_module._env_speaker_count('TEST_SPEAKERS', 2) is None

    def test_integer_value(self, monkeypatch):
        """Integers are parsed."""
        monkeypatch.setenv('TEST_SPEAKERS', '3')
        assert config_module._env_speaker_count('TEST_SPEAKERS', 2) == 3

    def test_default_when_unset(self, monkeypatch):
        """Falls back to the default."""
        monkeypatch.delenv('TEST_SPEAKERS', raising=False)
        assert config_module._env_speaker_count('TEST_SPEAKERS', 2) == 2
