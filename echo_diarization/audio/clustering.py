"""
Speaker clustering of utterance feature vectors.

Deterministic k-means: seeding starts from the first utterance and adds
the farthest remaining vector each round, followed by Lloyd's iterations.
A collapsed clustering (one cluster holding nearly everything) is replaced
by round-robin speaker alternation over utterances.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import cdist, pdist

logger = logging.getLogger(__name__)

# Standard deviations below this are treated as a constant dimension
STD_EPSILON = 1e-8

FALLBACK_INSUFFICIENT = 'insufficient_utterances'
FALLBACK_IMBALANCED = 'imbalanced_clusters'


def zscore_normalize(vectors: np.ndarray) -> np.ndarray:
    """
    Z-score normalize each dimension across all vectors.

    Constant dimensions are only centred. With fewer than two vectors
    there is nothing to normalize against and a copy is returned.

    Args:
        vectors: Array of shape (n, dims)

    Returns:
        New array of the same shape
    """
    vectors = np.array(vectors, dtype=np.float64)
    if len(vectors) < 2:
        return vectors

    means = vectors.mean(axis=0)
    stds = vectors.std(axis=0)
    stds[stds < STD_EPSILON] = 1.0
    return (vectors - means) / stds


@dataclass
class ClusteringResult:
    """
    Outcome of clustering utterances into speakers.

    Attributes:
        labels: Speaker index per utterance
        num_clusters: Requested number of clusters (k)
        cluster_sizes: Utterances per speaker index before any fallback
        balance_ratio: Smallest over largest cluster size
        iterations: Lloyd iterations performed
        used_fallback: True when labels did not come from k-means
        fallback_reason: Why the fallback was taken, if it was
        methodology_note: Human-readable description for quality reports
    """
    labels: List[int] = field(default_factory=list)
    num_clusters: int = 0
    cluster_sizes: List[int] = field(default_factory=list)
    balance_ratio: float = 0.0
    iterations: int = 0
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
    methodology_note: str = ""


class SpeakerClusterer:
    """
    Stateless k-means speaker clusterer with a balance fallback.

    Same input always gives the same labels: there is no random seeding.

    Usage:
        clusterer = SpeakerClusterer()
        result = clusterer.cluster(zscore_normalize(features), k=2)
    """

    def __init__(
        self,
        max_iterations: int = 100,
        balance_threshold: float = 0.05
    ):
        """
        Initialize the clusterer.

        Args:
            max_iterations: Cap on Lloyd iterations
            balance_threshold: Min/max cluster size ratio under which the
                clustering is treated as collapsed
        """
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.max_iterations = max_iterations
        self.balance_threshold = balance_threshold

    def cluster(self, vectors: np.ndarray, k: int) -> ClusteringResult:
        """
        Cluster vectors into k speakers.

        Args:
            vectors: Normalized utterance vectors, shape (n, dims)
            k: Number of speakers

        Returns:
            ClusteringResult with one label per vector
        """
        if k < 1:
            raise ValueError(f"Number of speakers must be >= 1, got {k}")

        vectors = np.asarray(vectors, dtype=np.float64)
        n = len(vectors)

        if n < k:
            logger.warning(
                f"Too few utterances ({n}) for {k} speakers; assigning all to speaker 0"
            )
            return ClusteringResult(
                labels=[0] * n,
                num_clusters=k,
                cluster_sizes=[n] + [0] * (k - 1),
                balance_ratio=0.0 if k > 1 else 1.0,
                used_fallback=True,
                fallback_reason=FALLBACK_INSUFFICIENT,
                methodology_note=(
                    f"Only {n} utterances for {k} speakers; single speaker assumed."
                )
            )

        labels, iterations = self.kmeans(vectors, k)
        sizes = np.bincount(labels, minlength=k)
        ratio = float(sizes.min()) / float(max(sizes.max(), 1))

        logger.debug(f"k-means converged after {iterations} iterations, sizes={sizes.tolist()}")

        if ratio < self.balance_threshold:
            logger.warning(
                f"Clustering did not separate speakers (ratio={ratio:.2f}), "
                f"falling back to alternating speakers"
            )
            return ClusteringResult(
                labels=self.round_robin_labels(n, k),
                num_clusters=k,
                cluster_sizes=sizes.tolist(),
                balance_ratio=ratio,
                iterations=iterations,
                used_fallback=True,
                fallback_reason=FALLBACK_IMBALANCED,
                methodology_note=(
                    f"k-means collapsed (size ratio {ratio:.2f} < {self.balance_threshold}); "
                    f"speakers alternate by utterance."
                )
            )

        return ClusteringResult(
            labels=labels.tolist(),
            num_clusters=k,
            cluster_sizes=sizes.tolist(),
            balance_ratio=ratio,
            iterations=iterations,
            methodology_note=(
                f"Deterministic k-means over {n} utterances into {k} speakers "
                f"({iterations} iterations)."
            )
        )

    def seed_centroids(self, vectors: np.ndarray, k: int) -> np.ndarray:
        """
        Pick k initial centroids by greedy farthest-point selection.

        The first centroid is always vector 0; each next one is the vector
        whose squared distance to its nearest chosen centroid is largest
        (lowest index wins ties).
        """
        centroids = [vectors[0]]
        for _ in range(1, k):
            distances = cdist(vectors, np.array(centroids), metric='sqeuclidean').min(axis=1)
            centroids.append(vectors[int(np.argmax(distances))])
        return np.array(centroids, dtype=np.float64)

    def kmeans(self, vectors: np.ndarray, k: int) -> Tuple[np.ndarray, int]:
        """
        Lloyd's algorithm from deterministic seeds.

        Returns:
            Tuple of (labels array, iterations performed)
        """
        centroids = self.seed_centroids(vectors, k)
        labels = np.zeros(len(vectors), dtype=int)

        iterations = 0
        for _ in range(self.max_iterations):
            iterations += 1
            distances = cdist(vectors, centroids, metric='sqeuclidean')
            # argmin returns the lowest cluster index on ties
            new_labels = np.argmin(distances, axis=1)
            changed = bool(np.any(new_labels != labels))
            labels = new_labels
            if not changed:
                break

            for j in range(k):
                members = vectors[labels == j]
                # Empty clusters keep their previous centroid
                if len(members):
                    centroids[j] = members.mean(axis=0)

        return labels, iterations

    @staticmethod
    def round_robin_labels(count: int, k: int) -> List[int]:
        """Alternate speakers: utterance i gets speaker i mod k."""
        return [i % k for i in range(count)]

    def estimate_speaker_count(
        self,
        vectors: np.ndarray,
        min_speakers: int = 1,
        max_speakers: int = 8,
        distance_threshold: float = 3.0
    ) -> int:
        """
        Estimate how many speakers the utterance vectors contain.

        Average-linkage hierarchical clustering on Euclidean distances,
        cut at distance_threshold, clamped to the allowed range.

        Args:
            vectors: Normalized utterance vectors
            min_speakers: Lower bound on the estimate
            max_speakers: Upper bound on the estimate
            distance_threshold: Linkage distance at which clusters stop merging

        Returns:
            Estimated speaker count
        """
        vectors = np.asarray(vectors, dtype=np.float64)
        n = len(vectors)
        upper = max(1, min(max_speakers, n))
        lower = min(min_speakers, upper)
        if n < 2:
            return lower

        condensed = pdist(vectors, metric='euclidean')
        linkage_matrix = linkage(condensed, method='average')
        labels = fcluster(linkage_matrix, t=distance_threshold, criterion='distance')
        estimate = len(np.unique(labels))

        logger.info(
            f"Speaker count estimate: {estimate} clusters at threshold {distance_threshold} "
            f"(allowed {lower}-{upper})"
        )
        return int(min(max(estimate, lower), upper))
