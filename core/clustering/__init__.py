# Path: core/clustering/__init__.py
# Purpose: Package initializer for theme clustering.
# Layer: core/clustering.
# Details: Exposes k-means and the theme grouping built on top of it.

from .kmeans import KMeansResult, kmeans, kmeans_plus_plus
from .themes import THEME_LABELS, UNGROUPED_LABEL, choose_cluster_count, cluster_by_theme, theme_label

__all__ = [
    "KMeansResult",
    "THEME_LABELS",
    "UNGROUPED_LABEL",
    "choose_cluster_count",
    "cluster_by_theme",
    "kmeans",
    "kmeans_plus_plus",
    "theme_label",
]
