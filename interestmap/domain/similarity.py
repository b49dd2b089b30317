"""
Similarité vectorielle et retrieval sémantique sur le catalogue.

Ce module calcule la similarité cosinus (tolérante aux différences de dimension) et classe les
lignes du catalogue par rapport à un vecteur de requête.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import numpy as np

from interestmap.core.constants import DEFAULT_TOP_K, TOP_K_MULTIPLIER
from interestmap.domain.content_types import CatalogRow


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosinus sur le préfixe commun des deux vecteurs; 0.0 si l'un est nul."""
    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    va = np.asarray(a[:n], dtype="float64")
    vb = np.asarray(b[:n], dtype="float64")
    norm_a = float(np.dot(va, va))
    norm_b = float(np.dot(vb, vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    sim = float(np.dot(va, vb)) / (np.sqrt(norm_a) * np.sqrt(norm_b))
    return max(-1.0, min(1.0, sim))


def mean_vector(vectors: Iterable[Sequence[float]]) -> list[float] | None:
    """Moyenne arithmétique des vecteurs (dimension du premier); None si aucun vecteur."""
    vecs = [list(v) for v in vectors if v]
    if not vecs:
        return None
    dim = len(vecs[0])
    acc = np.zeros(dim, dtype="float64")
    for v in vecs:
        row = np.zeros(dim, dtype="float64")
        take = min(dim, len(v))
        row[:take] = v[:take]
        acc += row
    return (acc / len(vecs)).tolist()


def top_k_for(limit: int) -> int:
    """Largeur de retrieval: `max(limit * 3, 60)`."""
    return max(limit * TOP_K_MULTIPLIER, DEFAULT_TOP_K)


def semantic_retrieve(
    query_vector: Sequence[float],
    embeddings: Mapping[str, Sequence[float]],
    rows: Iterable[CatalogRow],
    provider_filter: Sequence[str] | None = None,
) -> list[tuple[CatalogRow, float]]:
    """Classe les lignes du catalogue par similarité décroissante avec la requête.

    Les lignes sans vecteur ou hors du filtre fournisseur (s'il est non vide) sont ignorées.
    """
    allowed = {str(p) for p in provider_filter} if provider_filter else None
    results: list[tuple[CatalogRow, float]] = []
    for row in rows:
        if allowed is not None and row.provider not in allowed:
            continue
        vector = embeddings.get(row.id)
        if not vector:
            continue
        results.append((row, cosine_similarity(query_vector, vector)))
    results.sort(key=lambda pair: pair[1], reverse=True)
    return results
