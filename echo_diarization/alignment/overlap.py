"""
Speaker lookups over diarization turns.

Helpers for mapping speaker ids to stable integers and for labelling
existing transcript segments with the speaker they overlap most.
"""

import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Sequence

from echo_diarization.audio.models import DiarizationTurn, Segment

logger = logging.getLogger(__name__)


def build_speaker_map(turns: Sequence[DiarizationTurn]) -> Dict[str, int]:
    """
    Map speaker ids to integers in order of first appearance.

    The same speaker id always maps to the same index for the whole run.
    """
    speaker_map: Dict[str, int] = {}
    for turn in turns:
        if turn.speaker_id not in speaker_map:
            speaker_map[turn.speaker_id] = len(speaker_map)
    return speaker_map


def speaker_count(turns: Sequence[DiarizationTurn]) -> int:
    """Number of distinct speakers in the turns."""
    return len({turn.speaker_id for turn in turns})


def overlap_duration(
    start: float,
    end: float,
    other_start: float,
    other_end: float
) -> float:
    """Length of the intersection of two time intervals (0 if disjoint)."""
    return max(0.0, min(end, other_end) - max(start, other_start))


def dominant_speaker(
    start: float,
    end: float,
    turns: Sequence[DiarizationTurn],
    speaker_map: Dict[str, int]
) -> int:
    """
    Speaker index with the largest total overlap with [start, end).

    Returns:
        Speaker index, or -1 when no turn overlaps the interval. Equal
        overlaps resolve to the lower speaker index.
    """
    overlap_by_speaker: Dict[str, float] = defaultdict(float)
    for turn in turns:
        overlap = overlap_duration(start, end, turn.start_time, turn.end_time)
        if overlap > 0:
            overlap_by_speaker[turn.speaker_id] += overlap

    best_index = -1
    best_overlap = 0.0
    for speaker_id, overlap in overlap_by_speaker.items():
        index = speaker_map.get(speaker_id, -1)
        if overlap > best_overlap or (overlap == best_overlap and 0 <= index < best_index):
            best_overlap = overlap
            best_index = index
    return best_index


def label_segments_by_overlap(
    segments: Sequence[Segment],
    turns: Sequence[DiarizationTurn]
) -> List[Segment]:
    """
    Give existing transcript segments the speaker they overlap most.

    Unlike the turn-driven builder this keeps the recognizer's own
    segmentation; segments outside every turn get speaker_index -1.

    Args:
        segments: Transcript segments, speaker labels are ignored
        turns: Diarization turns

    Returns:
        New segments with speaker_index filled in
    """
    if not turns:
        return [replace(seg, speaker_index=-1) for seg in segments]

    speaker_map = build_speaker_map(turns)
    labelled = [
        replace(
            seg,
            speaker_index=dominant_speaker(seg.start_time, seg.end_time, turns, speaker_map)
        )
        for seg in segments
    ]

    unassigned = sum(1 for seg in labelled if not seg.has_speaker)
    if unassigned:
        logger.warning(f"{unassigned}/{len(labelled)} segments overlap no diarization turn")
    return labelled

