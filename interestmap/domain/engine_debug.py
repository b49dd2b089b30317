"""Trace de debug d'une exécution du moteur de contenu.

Objet transitoire construit au début de la requête et complété étape par étape; il est toujours
retourné à l'appelant, y compris sur le chemin de repli.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

RerankMode = Literal["llm", "mixed", "heuristic"]


class ProviderDebug(BaseModel):
    """Statistiques d'un fournisseur pour la requête."""

    count: int = 0
    cache_hit: bool = False
    ms: int = 0
    error: str | None = None


class IngestionDebug(BaseModel):
    """Compteurs d'ingestion dans le catalogue."""

    upserted: int = 0
    updated: int = 0
    error: str | None = None


class EmbeddingsDebug(BaseModel):
    """Vecteurs manquants après calcul et modèle utilisé."""

    interest_missing: int = 0
    content_missing: int = 0
    used_model: str | None = None
    error: str | None = None


class SemanticDebug(BaseModel):
    """Étape de retrieval sémantique."""

    top_k: int = 0
    latency_ms: int = 0
    used_model: str | None = None


class LLMDebug(BaseModel):
    """Étape de rerank (LLM ou heuristique)."""

    mode: RerankMode = "heuristic"
    batches: int = 0
    failed_batches: int = 0
    prefiltered_ad: int = 0
    filtered_ad: int = 0
    filtered_offtopic: int = 0
    avg_score: float | None = None
    latency_ms: int = 0
    used_model: str | None = None
    error: str | None = None


class DiversityDebug(BaseModel):
    """Rejets de la sélection de diversité."""

    dropped_by_provider: int = 0
    dropped_by_channel: int = 0
    enforced_providers: int = 0


class FallbackDebug(BaseModel):
    """Raison du passage sur le chemin de repli."""

    reason: str


class EngineDebug(BaseModel):
    """Trace agrégée d'une requête au moteur."""

    cache_hits: dict[str, bool] = Field(default_factory=dict)
    used_providers: list[str] = Field(default_factory=list)
    hashes: dict[str, str] = Field(default_factory=dict)
    providers: dict[str, ProviderDebug] = Field(default_factory=dict)
    ingestion: IngestionDebug | None = None
    embeddings: EmbeddingsDebug | None = None
    semantic: SemanticDebug | None = None
    llm: LLMDebug | None = None
    diversity: DiversityDebug | None = None
    fallback: FallbackDebug | None = None
    total_ms: int = 0
