"""
Utterance grouping.

Clustering single words is too noisy, so words are first grouped into
utterances: maximal runs of words separated by short pauses. Each
utterance gets the mean feature vector of its analysable words.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from echo_diarization.audio.models import WordTiming

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Utterance:
    """Half-open range [start, end) of word indices spoken without a long pause."""
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def word_indices(self) -> range:
        return range(self.start, self.end)


def group_utterances(
    words: Sequence[WordTiming],
    turn_pause: float = 0.6
) -> List[Utterance]:
    """
    Split chronologically ordered words into utterances.

    A new utterance starts wherever the silence between a word and its
    predecessor exceeds turn_pause.

    Args:
        words: Words ordered by start time
        turn_pause: Pause length (seconds) that separates utterances

    Returns:
        Ordered, non-empty utterances covering every word exactly once.
    """
    if not words:
        return []

    utterances = []
    start = 0
    for i in range(1, len(words)):
        pause = words[i].start_time - words[i - 1].end_time
        if pause > turn_pause:
            utterances.append(Utterance(start, i))
            start = i
    utterances.append(Utterance(start, len(words)))

    logger.debug(f"{len(utterances)} utterances from {len(words)} words (pause > {turn_pause}s)")
    return utterances


def utterance_features(
    word_features: np.ndarray,
    utterances: Sequence[Utterance]
) -> np.ndarray:
    """
    Average word features per utterance.

    All-zero word vectors (words too short to analyse) are left out of
    the mean; an utterance with no usable words gets a zero vector.

    Args:
        word_features: Array of shape (n_words, dims)
        utterances: Utterances indexing into word_features

    Returns:
        Array of shape (len(utterances), dims)
    """
    word_features = np.asarray(word_features, dtype=np.float64)
    dims = word_features.shape[1] if word_features.ndim == 2 else 0
    result = np.zeros((len(utterances), dims))

    for u, utterance in enumerate(utterances):
        block = word_features[utterance.start:utterance.end]
        usable = block[block.any(axis=1)]
        if len(usable):
            result[u] = usable.mean(axis=0)

    return result
