# ============================================================
# Module : interestmap/services/content_engine.py
# Objet  : Orchestration fetch -> ingest -> embed -> retrieve -> rerank -> diversify.
# Invariants :
#  - Aucune condition récupérable ne lève vers l'appelant.
#  - La trace de debug est toujours retournée.
#  - Le repli réutilise les éléments déjà récupérés (pas de second appel fournisseurs).
# ============================================================
"""Moteur de recommandation de contenu."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from interestmap.app.metrics import CONTENT_ENGINE_FALLBACKS, CONTENT_REQUESTS
from interestmap.core.constants import DEFAULT_LIMIT, DEFAULT_MODE
from interestmap.core.errors import CatalogUnavailableError
from interestmap.domain.content_types import (
    CatalogRow,
    ContentItem,
    ContentMeta,
    ContentType,
    Interest,
    Mode,
    ProviderId,
    ProviderRequest,
    RerankCandidate,
)
from interestmap.domain.diversity import apply_diversity, channel_of
from interestmap.domain.engine_debug import (
    DiversityDebug,
    EmbeddingsDebug,
    EngineDebug,
    FallbackDebug,
    IngestionDebug,
    SemanticDebug,
)
from interestmap.domain.scoring import final_score, looks_like_ad
from interestmap.domain.similarity import mean_vector, semantic_retrieve, top_k_for
from interestmap.infra.cache.base import ContentCache, NullContentCache
from interestmap.infra.embeddings.base import Embeddings
from interestmap.infra.providers.base import ContentProvider
from interestmap.infra.providers.registry import get_providers
from interestmap.infra.repo.db import session_scope
from interestmap.infra.repo.interest_repo import InterestRepo
from interestmap.services.embedding_store import (
    ensure_content_embeddings,
    ensure_interest_embeddings,
)
from interestmap.services.ingestion import upsert_catalog
from interestmap.services.provider_fetch import fetch_provider_items
from interestmap.services.reranker import Reranker

log = structlog.get_logger(__name__).bind(component="content_engine")

FALLBACK_REASONS = {
    "store_unavailable": "Catalog store unavailable, served provider merge",
    "no_interests": "No interests selected, served provider merge",
    "ingestion_failed": "Catalog ingestion failed, served provider merge",
    "embedding_key_missing": "Embedding key missing",
    "embedding_store_failed": "Embeddings unavailable",
    "query_embedding_failed": "Failed to build query embedding",
}


def normalize_interest_ids(interest_ids: list[str]) -> list[str]:
    """Déduplique, retire les valeurs vides et trie les identifiants."""
    return sorted({i for i in interest_ids if i})


@dataclass
class EngineParams:
    """Paramètres normalisés d'une exécution du moteur."""

    interest_ids: list[str]
    provider_ids: list[ProviderId] | None = None
    limit: int = DEFAULT_LIMIT
    locale: str | None = None
    mode: Mode = DEFAULT_MODE


@dataclass
class EngineResult:
    """Éléments classés et trace de debug."""

    items: list[ContentItem] = field(default_factory=list)
    debug: EngineDebug = field(default_factory=EngineDebug)


def hydrate_row(row: CatalogRow, titles: dict[str, str], fallback_ids: list[str]) -> ContentItem:
    """Reconstruit un ContentItem à partir d'une ligne du catalogue."""
    meta = dict(row.meta or {})
    raw_ids = meta.pop("interest_ids", None)
    interest_ids = [str(i) for i in raw_ids] if isinstance(raw_ids, list) else list(fallback_ids)
    meta["channel_title"] = row.channel_title or meta.get("channel_title")
    meta["published_at"] = row.published_at or meta.get("published_at")
    meta["source"] = row.source or meta.get("source")
    return ContentItem(
        id=f"{row.provider}:{row.provider_item_id}",
        provider=ProviderId(row.provider),
        type=ContentType(row.type),
        title=row.title,
        description=row.description,
        url=row.url,
        image=row.image,
        meta=ContentMeta.model_validate(meta),
        interest_ids=interest_ids,
        interest_titles=[titles[i] for i in interest_ids if i in titles],
    )


def with_interest_titles(item: ContentItem, titles: dict[str, str]) -> ContentItem:
    """Renseigne les titres d'intérêts connus (élément inchangé sinon)."""
    resolved = [titles[i] for i in item.interest_ids if i in titles]
    if not resolved:
        return item
    return item.model_copy(update={"interest_titles": resolved})


class ContentEngine:
    """Exécute le pipeline sémantique et bascule sur la fusion fournisseurs si besoin.

    `db` vaut None quand aucun stockage durable n'est configuré; le moteur sert alors
    directement la fusion des fournisseurs.
    """

    def __init__(
        self,
        providers: dict[ProviderId, ContentProvider],
        cache: ContentCache | None = None,
        db: Engine | None = None,
        embedder: Embeddings | None = None,
        reranker: Reranker | None = None,
        concurrency: int = 3,
    ) -> None:
        """Assemble le moteur à partir de ses dépendances."""
        self.providers = providers
        self.cache = cache or NullContentCache()
        self.db = db
        self.embedder = embedder
        self.reranker = reranker or Reranker()
        self.concurrency = concurrency

    def _load_interests(self, interest_ids: list[str]) -> list[Interest]:
        if self.db is None or not interest_ids:
            return []
        try:
            with session_scope(self.db) as session:
                return InterestRepo(session).get_many(interest_ids)
        except SQLAlchemyError as err:
            log.error("interests_load_failed", error=str(err))
            return []

    def _fallback(
        self,
        items: list[ContentItem],
        debug: EngineDebug,
        titles: dict[str, str],
        code: str,
        limit: int,
        detail: str | None = None,
    ) -> EngineResult:
        reason = FALLBACK_REASONS[code]
        debug.fallback = FallbackDebug(reason=f"{reason}: {detail}" if detail else reason)
        CONTENT_ENGINE_FALLBACKS.labels(reason=code).inc()
        CONTENT_REQUESTS.labels(path="fallback").inc()
        log.info("engine_fallback", reason=code, count=len(items))
        return EngineResult(items=[with_interest_titles(i, titles) for i in items[:limit]], debug=debug)

    async def run(self, params: EngineParams) -> EngineResult:
        """Exécute le pipeline complet pour les paramètres donnés."""
        started = time.perf_counter()
        interest_ids = normalize_interest_ids(params.interest_ids)
        interests = self._load_interests(interest_ids)
        titles = {i.id: i.title for i in interests}
        request = ProviderRequest(
            interest_ids=interest_ids,
            interests=interests,
            locale=params.locale,
            limit=params.limit,
            mode=params.mode,
        )
        providers = get_providers(self.providers, params.provider_ids)
        items, debug = await fetch_provider_items(providers, request, self.cache, self.concurrency)

        def done(result: EngineResult) -> EngineResult:
            result.debug.total_ms = int((time.perf_counter() - started) * 1000)
            return result

        if self.db is None:
            return done(self._fallback(items, debug, titles, "store_unavailable", params.limit))
        if not interest_ids:
            return done(self._fallback(items, debug, titles, "no_interests", params.limit))

        # ingest
        try:
            ingestion = upsert_catalog(self.db, items)
        except CatalogUnavailableError as err:
            debug.ingestion = IngestionDebug(error=str(err))
            return done(self._fallback(items, debug, titles, "ingestion_failed", params.limit))
        debug.ingestion = IngestionDebug(upserted=ingestion.upserted, updated=ingestion.updated)
        rows = ingestion.rows

        # embed
        interest_emb = await ensure_interest_embeddings(self.db, self.embedder, interests)
        content_emb = await ensure_content_embeddings(self.db, self.embedder, rows)
        debug.embeddings = EmbeddingsDebug(
            interest_missing=interest_emb.missing,
            content_missing=content_emb.missing,
            used_model=content_emb.used_model or interest_emb.used_model,
            error=interest_emb.error or content_emb.error,
        )
        if self.embedder is None:
            return done(self._fallback(items, debug, titles, "embedding_key_missing", params.limit))
        # interest vectors left uncomputed are covered by the title query below
        embedding_error = interest_emb.error if interest_emb.store_failed else content_emb.error
        if embedding_error:
            return done(
                self._fallback(
                    items, debug, titles, "embedding_store_failed", params.limit, embedding_error
                )
            )

        # retrieve
        query = mean_vector(
            interest_emb.embeddings[i] for i in interest_ids if i in interest_emb.embeddings
        )
        if query is None and interests:
            query = await self.embedder.embed_one("; ".join(i.title for i in interests))
        if not query:
            return done(self._fallback(items, debug, titles, "query_embedding_failed", params.limit))

        semantic_started = time.perf_counter()
        provider_filter = [p.value for p in params.provider_ids] if params.provider_ids else None
        ranked = semantic_retrieve(query, content_emb.embeddings, rows, provider_filter)
        top = ranked[: top_k_for(params.limit)]
        debug.semantic = SemanticDebug(
            top_k=len(top),
            latency_ms=int((time.perf_counter() - semantic_started) * 1000),
            used_model=content_emb.used_model or interest_emb.used_model,
        )

        # rerank
        hydrated = [hydrate_row(row, titles, interest_ids) for row, _score in top]
        candidates = [i for i in hydrated if not looks_like_ad(i.title, i.description)]
        rerank_started = time.perf_counter()
        results, llm_debug = await self.reranker.rerank(
            list(titles.values()),
            [
                RerankCandidate(
                    id=i.id,
                    title=i.title,
                    description=i.description or "",
                    provider=i.provider.value,
                    type=i.type.value,
                    url=i.url,
                    channel_title=channel_of(i),
                )
                for i in candidates
            ],
        )
        llm_debug.latency_ms = int((time.perf_counter() - rerank_started) * 1000)
        llm_debug.prefiltered_ad = len(hydrated) - len(candidates)
        llm_debug.filtered_ad = sum(1 for r in results if r.is_ad)
        llm_debug.filtered_offtopic = sum(1 for r in results if r.is_offtopic)
        llm_debug.avg_score = sum(r.score for r in results) / len(results) if results else None
        debug.llm = llm_debug

        verdicts = {r.id: r for r in results}
        now = datetime.now(UTC)
        scored: list[ContentItem] = []
        for item in candidates:
            verdict = verdicts.get(item.id)
            if verdict is None or verdict.is_ad or verdict.is_offtopic:
                continue
            score = final_score(verdict.score, item.provider.value, item.meta.published_at, now)
            scored.append(item.model_copy(update={"score": score, "why": verdict.reason or item.why}))
        scored.sort(key=lambda i: i.score or 0.0, reverse=True)

        # diversify
        diversity = apply_diversity(scored, params.limit)
        debug.diversity = DiversityDebug(
            dropped_by_provider=diversity.dropped_by_provider,
            dropped_by_channel=diversity.dropped_by_channel,
            enforced_providers=diversity.enforced_providers,
        )
        CONTENT_REQUESTS.labels(path="semantic").inc()
        log.info(
            "engine_done",
            count=len(diversity.items),
            candidates=len(candidates),
            rerank_mode=llm_debug.mode,
        )
        return done(EngineResult(items=diversity.items, debug=debug))
