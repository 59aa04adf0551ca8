# Path: core/clustering/themes.py
# Purpose: Group a collection into visual themes with k-means over session embeddings.
# Layer: core/clustering.
# Details: K scales with collection size; clusters carry a representative, a heuristic label, and size ordering.

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

import numpy as np

from config.logging_config import get_logger
from config.settings import ClusteringSettings
from core.errors import DimensionMismatch
from core.models.domain import Cluster, MediaItem
from core.similarity.vectors import euclidean_distance

from .kmeans import kmeans

logger = get_logger(__name__)

# Labels are heuristic; they repeat when there are more clusters than names.
THEME_LABELS = (
    "Portraits & People",
    "Nature & Landscapes",
    "Indoor Scenes",
    "Documents & Screenshots",
    "Food & Dining",
    "Architecture & Buildings",
    "Animals & Pets",
    "Abstract & Artistic",
    "Sports & Activities",
    "Miscellaneous",
)
UNGROUPED_LABEL = "All Items"


def theme_label(cluster_id: int) -> str:
    return THEME_LABELS[cluster_id % len(THEME_LABELS)]


def choose_cluster_count(item_count: int, settings: Optional[ClusteringSettings] = None) -> int:
    """Return K = clamp(item_count // items_per_cluster, min_clusters, max_clusters)."""

    settings = settings or ClusteringSettings()
    k = item_count // settings.items_per_cluster
    return max(settings.min_clusters, min(k, settings.max_clusters))


def cluster_by_theme(
    items: Sequence[MediaItem],
    embeddings: Mapping[str, np.ndarray],
    seed: Optional[int] = None,
    settings: Optional[ClusteringSettings] = None,
) -> List[Cluster]:
    """Partition the embedded ``items`` into theme clusters.

    Items without an embedding are ignored. Below ``settings.min_items`` embedded
    items a single catch-all cluster is returned. Otherwise clusters are ordered
    by descending size, then ascending id; empty clusters are dropped.
    """

    settings = settings or ClusteringSettings()
    if seed is None:
        seed = settings.seed

    embedded = [item for item in items if item.path in embeddings]

    if len(embedded) < settings.min_items:
        return [
            Cluster(
                id=0,
                label=UNGROUPED_LABEL,
                members=list(embedded),
                representative=embedded[0] if embedded else None,
            )
        ]

    vectors = [np.asarray(embeddings[item.path], dtype=np.float64).reshape(-1) for item in embedded]
    dim = vectors[0].shape[0]
    for vector in vectors[1:]:
        if vector.shape[0] != dim:
            raise DimensionMismatch(dim, vector.shape[0])
    matrix = np.vstack(vectors)

    k = min(choose_cluster_count(len(embedded), settings), len(embedded))
    result = kmeans(
        matrix,
        k,
        max_iterations=settings.max_iterations,
        seed=seed,
        tolerance=settings.seed_tolerance,
    )
    logger.debug(
        "k-means over %d items: k=%d, seeded=%d, iterations=%d, converged=%s",
        len(embedded),
        k,
        result.centroids.shape[0],
        result.iterations,
        result.converged,
    )

    clusters: List[Cluster] = []
    for cluster_id in range(result.centroids.shape[0]):
        member_rows = [row for row, label in enumerate(result.labels) if label == cluster_id]
        if not member_rows:
            continue

        centroid = result.centroids[cluster_id]
        representative_row = member_rows[0]
        best_distance = float("inf")
        for row in member_rows:
            distance = euclidean_distance(matrix[row], centroid)
            if distance < best_distance:
                best_distance = distance
                representative_row = row

        clusters.append(
            Cluster(
                id=cluster_id,
                label=theme_label(cluster_id),
                members=[embedded[row] for row in member_rows],
                representative=embedded[representative_row],
                centroid=centroid.astype(np.float32),
            )
        )

    clusters.sort(key=lambda cluster: (-cluster.size, cluster.id))
    logger.info("Grouped %d items into %d themes", len(embedded), len(clusters))
    return clusters
