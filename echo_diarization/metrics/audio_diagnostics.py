"""
Audio quality diagnostics.

Level, noise and speech-activity statistics for a mono recording,
with an overall quality rating and recommendations. Useful for telling
a bad diarization result apart from a bad recording.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

logger = logging.getLogger(__name__)

# Floors for the decibel conversion and the noise estimate
MIN_AMPLITUDE = 1e-5
MIN_NOISE_AMPLITUDE = 1e-4

CLIP_THRESHOLD = 0.99
SPEECH_FRAME_SIZE = 400  # 25ms at 16 kHz
SPEECH_RMS_THRESHOLD = 0.02
NOISE_QUANTILE_DIVISOR = 10

QUALITY_EXCELLENT = 'excellent'
QUALITY_GOOD = 'good'
QUALITY_ACCEPTABLE = 'acceptable'
QUALITY_POOR = 'poor'


def amplitude_to_db(amplitude: float) -> float:
    """Convert a linear amplitude to dBFS, floored at -100 dB."""
    return float(20.0 * np.log10(max(amplitude, MIN_AMPLITUDE)))


@dataclass
class AudioQuality:
    """
    Quality statistics of one recording.

    Attributes:
        sample_rate: Samples per second
        duration: Length in seconds
        sample_count: Number of samples
        average_level: Mean absolute amplitude (dB)
        peak_level: Largest absolute amplitude (dB)
        dynamic_range: Peak minus average level (dB)
        noise_floor: Amplitude at the 10th percentile (dB)
        signal_to_noise_ratio: Average level minus noise floor (dB)
        clip_percentage: Share of samples at or near full scale
        speech_percentage: Share of 25ms frames above the speech threshold
        silence_percentage: Share of frames below it
        average_pause_duration: Mean length (seconds) of silences between speech
    """
    sample_rate: int
    duration: float
    sample_count: int
    average_level: float
    peak_level: float
    dynamic_range: float
    noise_floor: float
    signal_to_noise_ratio: float
    clip_percentage: float
    speech_percentage: float
    silence_percentage: float
    average_pause_duration: float

    @property
    def quality_rating(self) -> str:
        """Overall rating: excellent, good, acceptable or poor."""
        snr = self.signal_to_noise_ratio
        if snr > 30 and self.clip_percentage < 1.0 and self.speech_percentage > 20:
            return QUALITY_EXCELLENT
        elif snr > 20 and self.clip_percentage < 5.0 and self.speech_percentage > 10:
            return QUALITY_GOOD
        elif snr > 10 and self.clip_percentage < 15.0:
            return QUALITY_ACCEPTABLE
        else:
            return QUALITY_POOR

    def warnings(self) -> List[str]:
        """Recommendations for problems that hurt transcription or diarization."""
        issues = []
        if self.signal_to_noise_ratio < 15:
            issues.append("High noise level; noise reduction is recommended")
        if self.clip_percentage > 5.0:
            issues.append(f"Clipping detected ({self.clip_percentage:.1f}%); the input is overloaded")
        if self.speech_percentage < 10:
            issues.append("Very little speech activity; check that this is the right recording")
        if self.dynamic_range < 10:
            issues.append("Low dynamic range; the audio may be heavily compressed")
        if 0 < self.average_pause_duration < 0.3:
            issues.append("Short pauses between speech; speaker turns may be hard to separate")
        return issues

    def summary(self) -> str:
        """Multi-line text report."""
        lines = [
            "AUDIO DIAGNOSTICS",
            f"  Duration:       {self.duration:.1f}s "
            f"({self.sample_count} samples @ {self.sample_rate}Hz)",
            "",
            "  Levels:",
            f"    average        {self.average_level:+.1f} dB",
            f"    peak           {self.peak_level:+.1f} dB",
            f"    dynamic range  {self.dynamic_range:.1f} dB",
            "",
            "  Signal quality:",
            f"    noise floor    {self.noise_floor:+.1f} dB",
            f"    SNR            {self.signal_to_noise_ratio:.1f} dB",
            f"    clipping       {self.clip_percentage:.2f}%",
            "",
            "  Speech activity:",
            f"    speech         {self.speech_percentage:.1f}%",
            f"    silence        {self.silence_percentage:.1f}%",
            f"    average pause  {self.average_pause_duration:.2f}s",
            "",
            f"  Overall quality: {self.quality_rating}",
        ]

        issues = self.warnings()
        lines.append("")
        if issues:
            lines.append("  RECOMMENDATIONS:")
            lines.extend(f"    - {issue}" for issue in issues)
        else:
            lines.append("  Audio quality is good for transcription.")
        return "\n".join(lines)


def frame_rms(samples: np.ndarray, frame_size: int = SPEECH_FRAME_SIZE) -> np.ndarray:
    """
    RMS energy per non-overlapping frame.

    Trailing samples that do not fill a frame are ignored; a signal
    shorter than one frame yields a single RMS over all of it.
    """
    num_frames = len(samples) // frame_size
    if num_frames == 0:
        return np.array([np.sqrt(np.mean(samples ** 2))])

    frames = samples[:num_frames * frame_size].reshape(num_frames, frame_size)
    return np.sqrt(np.mean(frames ** 2, axis=1))


def _speech_activity(rms: np.ndarray, sample_rate: int, frame_size: int):
    """Speech and silence percentages and the mean pause between speech frames."""
    speech = rms > SPEECH_RMS_THRESHOLD
    total = len(speech)
    speech_pct = float(np.count_nonzero(speech)) / total * 100.0

    pauses = []
    run = 0
    for is_speech in speech:
        if not is_speech:
            run += 1
        elif run:
            # Only silences closed by speech count as pauses
            pauses.append(run * frame_size / sample_rate)
            run = 0

    average_pause = sum(pauses) / len(pauses) if pauses else 0.0
    return speech_pct, 100.0 - speech_pct, average_pause


def analyze_audio(samples: np.ndarray, sample_rate: int = 16000) -> AudioQuality:
    """
    Measure the quality of a mono recording.

    Args:
        samples: Mono float samples in [-1, 1]
        sample_rate: Samples per second

    Returns:
        AudioQuality

    Raises:
        ValueError: If samples are not mono or sample_rate is not positive
    """
    samples = np.asarray(samples, dtype=np.float64)
    if samples.ndim != 1:
        raise ValueError(f"Expected mono samples, got shape {samples.shape}")
    if sample_rate < 1:
        raise ValueError("sample_rate must be >= 1")

    count = len(samples)
    if count == 0:
        floor = amplitude_to_db(0.0)
        return AudioQuality(
            sample_rate=sample_rate, duration=0.0, sample_count=0,
            average_level=floor, peak_level=floor, dynamic_range=0.0,
            noise_floor=amplitude_to_db(MIN_NOISE_AMPLITUDE),
            signal_to_noise_ratio=floor - amplitude_to_db(MIN_NOISE_AMPLITUDE),
            clip_percentage=0.0, speech_percentage=0.0, silence_percentage=100.0,
            average_pause_duration=0.0,
        )

    magnitudes = np.abs(samples)
    average_level = amplitude_to_db(float(magnitudes.mean()))
    peak_level = amplitude_to_db(float(magnitudes.max()))

    noise = float(np.sort(magnitudes)[count // NOISE_QUANTILE_DIVISOR])
    noise_floor = amplitude_to_db(max(noise, MIN_NOISE_AMPLITUDE))

    clip_pct = float(np.count_nonzero(magnitudes > CLIP_THRESHOLD)) / count * 100.0

    frame_size = min(SPEECH_FRAME_SIZE, count)
    speech_pct, silence_pct, average_pause = _speech_activity(
        frame_rms(samples, frame_size), sample_rate, frame_size
    )

    quality = AudioQuality(
        sample_rate=sample_rate,
        duration=count / sample_rate,
        sample_count=count,
        average_level=average_level,
        peak_level=peak_level,
        dynamic_range=peak_level - average_level,
        noise_floor=noise_floor,
        signal_to_noise_ratio=average_level - noise_floor,
        clip_percentage=clip_pct,
        speech_percentage=speech_pct,
        silence_percentage=silence_pct,
        average_pause_duration=average_pause,
    )

    logger.info(
        f"Audio quality: {quality.quality_rating} (SNR {quality.signal_to_noise_ratio:.1f} dB, "
        f"speech {speech_pct:.0f}%, clipping {clip_pct:.2f}%)"
    )
    for issue in quality.warnings():
        logger.warning(f"Audio: {issue}")
    return quality
