# Path: core/similarity/vectors.py
# Purpose: Pure vector math and nearest-neighbour ranking over session embeddings.
# Layer: core/similarity.
# Details: Stateless functions; rankings are stable so equal scores keep collection order.

from __future__ import annotations

import math
from typing import List, Mapping, Optional, Sequence

import numpy as np

from core.errors import DimensionMismatch
from core.models.domain import MediaItem, SimilarityMatch


def _as_vectors(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    left = np.asarray(a, dtype=np.float64).reshape(-1)
    right = np.asarray(b, dtype=np.float64).reshape(-1)
    if left.shape[0] != right.shape[0]:
        raise DimensionMismatch(left.shape[0], right.shape[0])
    return left, right


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Return dot(a, b) / (|a| * |b|); 0.0 when either vector has zero norm."""

    left, right = _as_vectors(a, b)
    denominator = float(np.linalg.norm(left) * np.linalg.norm(right))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(left, right) / denominator)


def euclidean_distance(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Return the L2 distance between ``a`` and ``b``."""

    left, right = _as_vectors(a, b)
    return math.sqrt(float(np.sum((left - right) ** 2)))


def rank_by_similarity(
    target: MediaItem,
    candidates: Sequence[MediaItem],
    embeddings: Mapping[str, np.ndarray],
    top_k: Optional[int] = None,
) -> List[SimilarityMatch]:
    """Rank ``candidates`` by descending cosine similarity to ``target``.

    The target itself and candidates without an embedding are left out. Returns
    an empty list when the target has no embedding.
    """

    target_vector = embeddings.get(target.path)
    if target_vector is None:
        return []

    matches = [
        SimilarityMatch(item=candidate, score=cosine_similarity(target_vector, embeddings[candidate.path]))
        for candidate in candidates
        if candidate.path != target.path and candidate.path in embeddings
    ]
    # sorted() is stable, so ties stay in collection order.
    matches = sorted(matches, key=lambda match: match.score, reverse=True)
    if top_k is not None:
        matches = matches[: max(0, top_k)]
    return matches


def find_similar(
    target: MediaItem,
    items: Sequence[MediaItem],
    embeddings: Mapping[str, np.ndarray],
    top_k: Optional[int] = None,
) -> List[MediaItem]:
    """Return ``target`` followed by the items most similar to it.

    When the target has no embedding the collection is returned unchanged.
    """

    if target.path not in embeddings:
        return list(items)
    ranked = rank_by_similarity(target, items, embeddings, top_k=top_k)
    return [target] + [match.item for match in ranked]
