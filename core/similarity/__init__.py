# Path: core/similarity/__init__.py
# Purpose: Package initializer for similarity functions.
# Layer: core/similarity.
# Details: Exposes vector metrics and nearest-neighbour ranking.

from .vectors import cosine_similarity, euclidean_distance, find_similar, rank_by_similarity

__all__ = ["cosine_similarity", "euclidean_distance", "find_similar", "rank_by_similarity"]
