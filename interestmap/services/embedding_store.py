"""
Stockage paresseux des embeddings d'intérêts et de lignes du catalogue.

Les vecteurs existants sont relus depuis la base; seuls les manquants (ou produits par un autre
modèle que celui configuré) sont calculés puis persistés. Sans embedder configuré, aucun calcul
n'a lieu et `used_model` vaut None.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from interestmap.app.metrics import CONTENT_EMBEDDINGS_COMPUTED
from interestmap.domain.content_types import CatalogRow, Interest
from interestmap.infra.embeddings.base import Embeddings
from interestmap.infra.repo.db import session_scope
from interestmap.infra.repo.embedding_repo import EmbeddingRepo

log = structlog.get_logger(__name__).bind(component="embedding_store")


@dataclass
class EmbeddingBatch:
    """Vecteurs disponibles par identifiant et bilan du calcul."""

    embeddings: dict[str, list[float]] = field(default_factory=dict)
    missing: int = 0
    used_model: str | None = None
    error: str | None = None
    store_failed: bool = False


def interest_embedding_text(interest: Interest) -> str:
    """Texte d'un intérêt: titre, puis synonymes et cluster s'ils existent."""
    parts = [f"Interest: {interest.title}."]
    synonyms = [s for s in interest.synonyms if s]
    if synonyms:
        parts.append(f"Synonyms: {', '.join(synonyms)}.")
    if interest.cluster:
        parts.append(f"Cluster: {interest.cluster}.")
    return " ".join(parts)


def catalog_embedding_text(row: CatalogRow) -> str:
    """Texte d'une ligne du catalogue (titre, description, chaîne, source)."""
    parts = [row.title, row.description, row.channel_title, row.source]
    return ". ".join(p for p in parts if p)


async def _ensure(
    kind: str,
    db: Engine,
    embedder: Embeddings | None,
    texts: dict[str, str],
) -> EmbeddingBatch:
    if not texts:
        return EmbeddingBatch(used_model=embedder.model if embedder else None)
    ids = list(texts)
    try:
        with session_scope(db) as session:
            stored = EmbeddingRepo(session).get_many(kind, ids)
    except SQLAlchemyError as err:
        log.error("embedding_read_failed", kind=kind, error=str(err))
        return EmbeddingBatch(error=f"Embedding store unavailable: {err}", store_failed=True)

    if embedder is None:
        existing = {key: vec.vector for key, vec in stored.items()}
        return EmbeddingBatch(embeddings=existing, missing=len(ids) - len(existing))

    model = embedder.model
    existing = {key: vec.vector for key, vec in stored.items() if vec.model == model}
    stale = sum(1 for vec in stored.values() if vec.model != model)
    missing_ids = [key for key in ids if key not in existing]
    batch = EmbeddingBatch(embeddings=existing, missing=len(missing_ids), used_model=model)
    if not missing_ids:
        return batch
    if stale:
        log.info("embeddings_model_drift", kind=kind, stale=stale, model=model)

    vectors = await embedder.embed([texts[key] for key in missing_ids])
    computed = {key: vec for key, vec in zip(missing_ids, vectors, strict=False) if vec}
    if not computed:
        log.warning("embeddings_not_computed", kind=kind, missing=len(missing_ids))
        batch.error = f"No vector computed for {len(missing_ids)} {kind} texts"
        return batch
    try:
        with session_scope(db) as session:
            EmbeddingRepo(session).save_many(kind, computed, model)
    except SQLAlchemyError as err:
        log.error("embedding_write_failed", kind=kind, error=str(err))
        batch.error = f"Embedding store unavailable: {err}"
        batch.store_failed = True
        return batch
    CONTENT_EMBEDDINGS_COMPUTED.labels(kind=kind).inc(len(computed))
    batch.embeddings.update(computed)
    return batch


async def ensure_interest_embeddings(
    db: Engine, embedder: Embeddings | None, interests: list[Interest]
) -> EmbeddingBatch:
    """Garantit un vecteur par intérêt (dans la mesure du possible)."""
    return await _ensure(
        "interest", db, embedder, {i.id: interest_embedding_text(i) for i in interests}
    )


async def ensure_content_embeddings(
    db: Engine, embedder: Embeddings | None, rows: list[CatalogRow]
) -> EmbeddingBatch:
    """Garantit un vecteur par ligne du catalogue, clé = identifiant de substitution."""
    return await _ensure(
        "content", db, embedder, {r.id: catalog_embedding_text(r) for r in rows}
    )
