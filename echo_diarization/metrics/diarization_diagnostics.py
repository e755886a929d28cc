"""
Diarization turn diagnostics.

Summarizes a list of diarization turns (speaker balance, turn lengths,
interruptions) and flags results that usually indicate a badly tuned
backend, such as a single detected speaker or a flood of tiny turns.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from echo_diarization.audio.models import DiarizationTurn

logger = logging.getLogger(__name__)

MANY_SPEAKERS = 10
MANY_OVERLAPS = 10
SHORT_TURN_SECONDS = 0.2
DOMINANT_SHARE = 0.9

TIMELINE_SYMBOLS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
TIMELINE_EMPTY = "."


def progress_bar(percentage: float, length: int = 20) -> str:
    """Fixed-width text bar for a 0-100 percentage."""
    filled = max(0, min(length, int(percentage / 100.0 * length)))
    return "#" * filled + "-" * (length - filled)


@dataclass
class DiarizationAnalysis:
    """
    Statistics over one recording's diarization turns.

    Attributes:
        total_turns: Number of turns
        unique_speakers: Number of distinct speaker ids
        speaker_durations: Speaker id to total talk time (seconds)
        average_turn_duration: Mean turn length
        shortest_turn: Shortest turn length
        longest_turn: Longest turn length
        speaker_switches: Consecutive turns with different speakers
        overlapping_turns: Consecutive turns where one ends after the next starts
    """
    total_turns: int = 0
    unique_speakers: int = 0
    speaker_durations: Dict[str, float] = field(default_factory=dict)
    average_turn_duration: float = 0.0
    shortest_turn: float = 0.0
    longest_turn: float = 0.0
    speaker_switches: int = 0
    overlapping_turns: int = 0

    @property
    def total_speech(self) -> float:
        return sum(self.speaker_durations.values())

    @property
    def dominant_share(self) -> float:
        """Fraction of talk time held by the most active speaker."""
        total = self.total_speech
        if total <= 0:
            return 0.0
        return max(self.speaker_durations.values()) / total

    def warnings(self) -> List[str]:
        """Human-readable problems worth checking."""
        issues = []
        if self.total_turns == 0:
            return issues

        if self.unique_speakers == 1:
            issues.append(
                "Only 1 speaker detected. Lower the clustering threshold or pass "
                "the expected speaker count."
            )
        if self.unique_speakers > MANY_SPEAKERS:
            issues.append(
                f"Very many speakers detected ({self.unique_speakers}). The clustering "
                f"threshold may be too low or the audio noisy."
            )
        if self.overlapping_turns > MANY_OVERLAPS:
            issues.append(
                f"Many overlapping turns ({self.overlapping_turns}). Speakers interrupt "
                f"each other."
            )
        if self.shortest_turn < SHORT_TURN_SECONDS:
            issues.append(
                f"Very short turns (min {self.shortest_turn:.2f}s). Consider raising the "
                f"minimum speech duration."
            )
        if self.unique_speakers > 1 and self.dominant_share > DOMINANT_SHARE:
            issues.append(
                f"One speaker dominates ({self.dominant_share * 100:.0f}% of talk time). "
                f"Expected for interviews and monologues."
            )
        return issues

    def summary(self) -> str:
        """Multi-line text report."""
        lines = [
            "DIARIZATION DIAGNOSTICS",
            f"  Turns:            {self.total_turns}",
            f"  Unique speakers:  {self.unique_speakers}",
            f"  Speaker switches: {self.speaker_switches}",
            f"  Overlaps:         {self.overlapping_turns}",
            "",
            "  Turn duration:",
            f"    average  {self.average_turn_duration:.2f}s",
            f"    shortest {self.shortest_turn:.2f}s",
            f"    longest  {self.longest_turn:.2f}s",
            "",
            "  Talk time by speaker:",
        ]

        total = self.total_speech
        ranked = sorted(self.speaker_durations.items(), key=lambda item: item[1], reverse=True)
        for speaker_id, duration in ranked:
            percentage = duration / total * 100 if total > 0 else 0.0
            lines.append(
                f"    {speaker_id}: {percentage:5.1f}% {progress_bar(percentage)} ({duration:.1f}s)"
            )

        issues = self.warnings()
        lines.append("")
        if issues:
            lines.append("  WARNINGS:")
            lines.extend(f"    - {issue}" for issue in issues)
        else:
            lines.append("  Diarization looks good.")
        return "\n".join(lines)


def analyze_turns(turns: Sequence[DiarizationTurn]) -> DiarizationAnalysis:
    """
    Compute statistics for diarization turns.

    Args:
        turns: Turns in the order the backend produced them

    Returns:
        DiarizationAnalysis (all zeros for no turns)
    """
    if not turns:
        return DiarizationAnalysis()

    durations = [turn.duration for turn in turns]
    speaker_durations: Dict[str, float] = defaultdict(float)
    for turn in turns:
        speaker_durations[turn.speaker_id] += turn.duration

    switches = sum(
        1 for prev, cur in zip(turns, turns[1:]) if prev.speaker_id != cur.speaker_id
    )
    overlaps = sum(
        1 for prev, cur in zip(turns, turns[1:]) if prev.end_time > cur.start_time
    )

    analysis = DiarizationAnalysis(
        total_turns=len(turns),
        unique_speakers=len(speaker_durations),
        speaker_durations=dict(speaker_durations),
        average_turn_duration=sum(durations) / len(durations),
        shortest_turn=min(durations),
        longest_turn=max(durations),
        speaker_switches=switches,
        overlapping_turns=overlaps,
    )

    for issue in analysis.warnings():
        logger.warning(f"Diarization: {issue}")
    return analysis


def visualize_timeline(turns: Sequence[DiarizationTurn], width: int = 60) -> str:
    """
    Render turns as a single ASCII track with a legend.

    Speakers are sorted by id and drawn with letters A, B, C... in that
    order; later speakers overwrite earlier ones where turns overlap.

    Args:
        turns: Diarization turns
        width: Number of characters in the track

    Returns:
        Timeline text, empty for no turns
    """
    if not turns or width <= 0:
        return ""

    total_duration = max(turn.end_time for turn in turns)
    if total_duration <= 0:
        return ""
    scale = width / total_duration

    speakers = sorted({turn.speaker_id for turn in turns})
    track = [TIMELINE_EMPTY] * width
    for index, speaker_id in enumerate(speakers):
        symbol = TIMELINE_SYMBOLS[index % len(TIMELINE_SYMBOLS)]
        for turn in turns:
            if turn.speaker_id != speaker_id:
                continue
            start = int(turn.start_time * scale)
            end = min(int(turn.end_time * scale), width)
            for i in range(start, end):
                track[i] = symbol

    lines = [
        f"TIMELINE (one character ~ {total_duration / width:.1f}s)",
        "",
        "  " + "".join(track),
        "",
        "  Legend:",
    ]
    for index, speaker_id in enumerate(speakers):
        symbol = TIMELINE_SYMBOLS[index % len(TIMELINE_SYMBOLS)]
        duration = sum(t.duration for t in turns if t.speaker_id == speaker_id)
        lines.append(f"  {symbol} {speaker_id} ({duration:.1f}s)")
    return "\n".join(lines)
