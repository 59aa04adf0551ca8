# Path: core/clustering/kmeans.py
# Purpose: Provide k-means clustering with k-means++ seeding over embedding matrices.
# Layer: core/clustering.
# Details: Pure numpy; a seed makes runs reproducible, and seeding stops early when the data has fewer distinct groups than k.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

DEFAULT_SEED_TOLERANCE = 1e-4


@dataclass
class KMeansResult:
    """Cluster assignment per row plus one centroid per seeded cluster.

    ``centroids`` may hold fewer rows than the requested ``k``.
    """

    labels: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool


def _squared_distances(data: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Return an (n, k) matrix of squared Euclidean distances."""

    data_sq = np.einsum("ij,ij->i", data, data)[:, None]
    centroid_sq = np.einsum("ij,ij->i", centroids, centroids)[None, :]
    distances = data_sq - 2.0 * data @ centroids.T + centroid_sq
    return np.maximum(distances, 0.0)


def _assign(data: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    # argmin keeps the lowest cluster index on ties.
    return np.argmin(_squared_distances(data, centroids), axis=1)


def kmeans_plus_plus(
    data: np.ndarray,
    k: int,
    rng: np.random.Generator,
    tolerance: float = DEFAULT_SEED_TOLERANCE,
) -> np.ndarray:
    """Pick up to ``k`` initial centroids, each drawn with probability proportional to D(x)^2.

    Seeding stops once the remaining potential (sum of squared distances to the
    nearest chosen centre) is at most ``tolerance`` times the potential left
    after the first pick. Points that tight are treated as already covered, so
    a compact group never receives a second seed.
    """

    n = data.shape[0]
    chosen: List[int] = [int(rng.integers(n))]
    closest = _squared_distances(data, data[chosen[0]][None, :])[:, 0]
    initial_potential = float(closest.sum())

    while len(chosen) < k:
        potential = float(closest.sum())
        if potential <= 0.0 or potential <= tolerance * initial_potential:
            break
        index = int(rng.choice(n, p=closest / potential))
        chosen.append(index)
        closest = np.minimum(closest, _squared_distances(data, data[index][None, :])[:, 0])

    return data[chosen].copy()


def kmeans(
    data: np.ndarray,
    k: int,
    max_iterations: int = 100,
    seed: Optional[int] = None,
    tolerance: float = DEFAULT_SEED_TOLERANCE,
) -> KMeansResult:
    """Run Lloyd's algorithm from k-means++ seeds.

    Empty clusters keep their previous centroid. Iteration stops once
    assignments no longer change or after ``max_iterations`` rounds.
    """

    matrix = np.asarray(data, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] == 0:
        raise ValueError("kmeans expects a non-empty 2-D matrix")
    if not 1 <= k <= matrix.shape[0]:
        raise ValueError(f"k must be between 1 and {matrix.shape[0]}, got {k}")
    if max_iterations < 1:
        raise ValueError("max_iterations must be at least 1")

    rng = np.random.default_rng(seed)
    centroids = kmeans_plus_plus(matrix, k, rng, tolerance=tolerance)
    labels = _assign(matrix, centroids)

    converged = False
    iterations = 0
    while iterations < max_iterations:
        iterations += 1
        for cluster_id in range(centroids.shape[0]):
            members = matrix[labels == cluster_id]
            if len(members):
                centroids[cluster_id] = members.mean(axis=0)
        new_labels = _assign(matrix, centroids)
        if np.array_equal(new_labels, labels):
            converged = True
            break
        labels = new_labels

    return KMeansResult(labels=labels, centroids=centroids, iterations=iterations, converged=converged)
