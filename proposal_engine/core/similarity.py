"""
Embedding similarity and ranking.

Pure functions over in-memory vectors. Nothing here talks to a provider, so
results are deterministic for identical floating-point inputs.

Usage:
    from proposal_engine.core.similarity import rank_by_similarity, top_k

    ranked = rank_by_similarity(query_vector, [(record, vector), ...])
    best = top_k(ranked, 3)
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import numpy as np

T = TypeVar("T")

Vector = Sequence[float]


@dataclass(frozen=True)
class ScoredItem(Generic[T]):
    """A payload with its similarity score against a query."""

    item: T
    score: float


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector, same dimension as ``a``

    Returns:
        dot(a, b) / (|a| * |b|), or NaN if either vector has zero norm

    Raises:
        ValueError: If the vectors differ in dimension
    """
    if len(a) != len(b):
        raise ValueError(f"Vector dimension mismatch: {len(a)} != {len(b)}")

    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    norm_a = float(np.linalg.norm(vec_a))
    norm_b = float(np.linalg.norm(vec_b))
    if norm_a == 0.0 or norm_b == 0.0:
        return math.nan

    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def rank_by_similarity(query: Vector, candidates: Iterable[tuple[T, Vector]]) -> list[ScoredItem[T]]:
    """
    Rank candidates by cosine similarity to the query.

    Sorting is stable and descending; candidates with an undefined (NaN) score
    are placed after every scored candidate, keeping their input order.

    Args:
        query: Query vector
        candidates: (payload, vector) pairs

    Returns:
        Every candidate as a ScoredItem, best first
    """
    scored = [ScoredItem(item=payload, score=cosine_similarity(query, vector)) for payload, vector in candidates]
    return sorted(scored, key=lambda s: (math.isnan(s.score), -s.score if not math.isnan(s.score) else 0.0))


def top_k(ranked: Sequence[ScoredItem[T]], k: int) -> list[ScoredItem[T]]:
    """Return at most ``k`` leading items of an already ranked sequence."""
    if k <= 0:
        return []
    return list(ranked[:k])
