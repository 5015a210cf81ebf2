"""
Fixed-K color clustering and nearest-centroid assignment.

Implements Lloyd refinement over per-pixel color vectors. Every pixel is a
sample, so frequent colors pull harder on their centroid.

Initialization policy (reproducible):
- at most K distinct vectors: the distinct vectors, sorted, repeated
  cyclically to fill K slots
- otherwise: k-means++ seeding with a fixed random_state

Empty clusters keep their previous centroid.
"""

import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from loguru import logger
from sklearn.cluster import kmeans_plusplus
from sklearn.metrics import pairwise_distances_argmin

from colorscan.services.errors import ClusteringNonConvergence, InvalidImageError
from colorscan.services.observability import performance_monitor


# Safety cap for exact mode; Lloyd refinement always terminates well before it
EXACT_ITERATION_CAP = 10_000


@dataclass
class ClusteringResult:
    """Outcome of one clustering run."""
    centroids: np.ndarray   # (K, 3) float64, row index is the cluster id
    labels: np.ndarray      # (N,) cluster id per input vector
    n_iter: int
    converged: bool
    space: str = "lab"

    @property
    def k(self) -> int:
        return len(self.centroids)

    def counts(self) -> np.ndarray:
        """Number of vectors assigned to each cluster id."""
        return np.bincount(self.labels, minlength=self.k)

    def effective_clusters(self) -> int:
        """Number of clusters holding at least one vector."""
        return int(np.count_nonzero(self.counts()))


def assign_labels(vectors: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """
    Map every vector to its nearest centroid by Euclidean distance.

    Ties go to the lowest centroid id.

    Args:
        vectors: (N, 3) color vectors
        centroids: (K, 3) centroid vectors in the same space

    Returns:
        (N,) int array of cluster ids
    """
    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    centroids = np.asarray(centroids, dtype=np.float64).reshape(-1, 3)
    return pairwise_distances_argmin(vectors, centroids, metric="euclidean")


def initial_centroids(vectors: np.ndarray, k: int, seed: int = 42) -> np.ndarray:
    """
    Choose K starting centroids.

    Returns:
        (K, 3) float64 array
    """
    distinct = np.unique(vectors, axis=0)

    if len(distinct) <= k:
        if len(distinct) < k:
            logger.debug(f"Only {len(distinct)} distinct colors for k={k}; "
                         f"{k - len(distinct)} clusters will stay empty")
        return np.resize(distinct, (k, 3)).astype(np.float64)

    centers, _ = kmeans_plusplus(vectors, n_clusters=k, random_state=seed)
    return np.asarray(centers, dtype=np.float64)


def _recompute_centroids(vectors: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Mean of each cluster's vectors; empty clusters keep their centroid."""
    k = len(centroids)
    counts = np.bincount(labels, minlength=k)

    # Shifted mean: identical members reproduce the old centroid bit for bit
    offsets = vectors - centroids[labels]
    shift = np.stack(
        [np.bincount(labels, weights=offsets[:, c], minlength=k) for c in range(3)],
        axis=1
    )

    updated = centroids.copy()
    filled = counts > 0
    updated[filled] += shift[filled] / counts[filled, None]
    return updated


def cluster_pixels(vectors: np.ndarray,
                   k: int = 16,
                   max_iter: Optional[int] = None,
                   seed: int = 42,
                   space: str = "lab") -> ClusteringResult:
    """
    Partition color vectors into K clusters with Lloyd refinement.

    Args:
        vectors: (N, 3) color vectors, duplicates allowed
        k: Number of clusters
        max_iter: Iteration cap; None iterates to convergence (exact mode)
        seed: Seed for k-means++ initialization
        space: Name of the space the vectors live in (carried on the result)

    Returns:
        ClusteringResult with K centroids and the final assignment

    Raises:
        InvalidImageError: If there are no vectors
        ValueError: For k < 1 or max_iter < 1
    """
    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    if len(vectors) == 0:
        raise InvalidImageError("No pixels to cluster")
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if max_iter is not None and max_iter < 1:
        raise ValueError(f"max_iter must be >= 1 or None, got {max_iter}")

    cap = EXACT_ITERATION_CAP if max_iter is None else max_iter
    logger.debug(f"Clustering {len(vectors)} vectors into k={k} (cap={cap}, space={space})")

    with performance_monitor("cluster_pixels", pixel_count=len(vectors), cluster_count=k) as stage:
        centroids = initial_centroids(vectors, k, seed)
        labels = assign_labels(vectors, centroids)

        converged = False
        n_iter = 0
        while n_iter < cap:
            n_iter += 1
            centroids = _recompute_centroids(vectors, labels, centroids)
            new_labels = assign_labels(vectors, centroids)

            if np.array_equal(new_labels, labels):
                converged = True
                break
            labels = new_labels

        stage["iterations"] = n_iter

    if not converged:
        message = f"Clustering did not converge within {cap} iterations; returning last centroids"
        logger.warning(message)
        warnings.warn(message, ClusteringNonConvergence, stacklevel=2)
    else:
        logger.debug(f"Clustering converged after {n_iter} iteration(s)")

    return ClusteringResult(
        centroids=centroids,
        labels=labels,
        n_iter=n_iter,
        converged=converged,
        space=space
    )


def recolor(labels: np.ndarray, palette_rgb: np.ndarray, shape: Tuple[int, ...]) -> np.ndarray:
    """
    Build a quantized raster by painting every pixel with its cluster's color.

    Args:
        labels: (N,) cluster ids in row-major pixel order
        palette_rgb: (K, 3) uint8 RGB color per cluster id
        shape: Output raster shape (h, w, 3)
    """
    return np.asarray(palette_rgb, dtype=np.uint8)[labels].reshape(shape)
