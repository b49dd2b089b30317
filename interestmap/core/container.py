"""
Conteneur d'injection de dépendances du service de contenu.

Instancie une seule fois le stockage, le cache, les clients d'embeddings et de LLM, les
fournisseurs et le moteur, et expose un singleton `container` utilisé par l'API.
"""

from __future__ import annotations

from dataclasses import dataclass

import redis
import structlog

from interestmap.core.logging import warn_once
from interestmap.core.settings import Settings, get_settings
from interestmap.infra.cache.base import ContentCache, NullContentCache
from interestmap.infra.cache.redis_cache import RedisContentCache
from interestmap.infra.cache.sql_cache import SqlContentCache
from interestmap.infra.embeddings.lru import EmbeddingLRU
from interestmap.infra.embeddings.openai_embedder import OpenAIEmbedder
from interestmap.infra.llm.openai_client import OpenAILLM
from interestmap.infra.providers.registry import build_providers
from interestmap.infra.repo.db import get_engine
from interestmap.infra.retry import RetryPolicy
from interestmap.services.content_engine import ContentEngine
from interestmap.services.reranker import Reranker

log = structlog.get_logger(__name__).bind(component="container")


@dataclass(frozen=True)
class EngineCapabilities:
    """Capacités disponibles, évaluées une fois à la composition."""

    store: bool
    embeddings: bool
    llm: bool


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        s = self.settings

        self.db = get_engine(s.DATABASE_URL) if s.DATABASE_URL else None
        self.cache = self._build_cache()

        embeddings_key = s.embeddings_key()
        self.embedder = (
            OpenAIEmbedder(
                api_key=embeddings_key,
                model=s.EMBEDDINGS_MODEL,
                lru=EmbeddingLRU(capacity=s.EMBEDDING_LRU_CAPACITY),
                policy=RetryPolicy(timeout_s=s.EMBEDDINGS_TIMEOUT_S, max_retries=s.EXTERNAL_MAX_RETRIES),
                base_url=s.OPENAI_BASE_URL,
            )
            if embeddings_key
            else None
        )
        llm_key = s.llm_key()
        self.llm = (
            OpenAILLM(
                api_key=llm_key,
                model=s.LLM_MODEL,
                policy=RetryPolicy(timeout_s=s.LLM_TIMEOUT_S, max_retries=s.EXTERNAL_MAX_RETRIES),
                base_url=s.OPENAI_BASE_URL,
            )
            if llm_key
            else None
        )
        self.providers = build_providers(s)
        self.capabilities = EngineCapabilities(
            store=self.db is not None,
            embeddings=self.embedder is not None,
            llm=self.llm is not None,
        )
        self._warn_missing()

        self.engine = ContentEngine(
            providers=self.providers,
            cache=self.cache,
            db=self.db,
            embedder=self.embedder,
            reranker=Reranker(self.llm),
            concurrency=s.PROVIDER_CONCURRENCY,
        )

    def _build_cache(self) -> ContentCache:
        backend = (self.settings.CACHE_BACKEND or "auto").lower()
        redis_url = self.settings.REDIS_URL
        if backend == "auto":
            backend = "redis" if redis_url else ("sql" if self.db is not None else "none")
        if backend == "redis" and redis_url:
            try:
                return RedisContentCache(redis_url)
            except (ValueError, redis.RedisError) as err:
                log.warning("redis_cache_unavailable", error=str(err))
                return NullContentCache()
        if backend == "sql" and self.db is not None:
            return SqlContentCache(self.db)
        if backend != "none":
            warn_once(f"cache:{backend}", "cache_backend_unavailable", backend=backend)
        return NullContentCache()

    def _warn_missing(self) -> None:
        caps = self.capabilities
        if not caps.store:
            warn_once("store", "capability_missing", capability="store", hint="DATABASE_URL")
        if not caps.embeddings:
            warn_once(
                "embeddings", "capability_missing", capability="embeddings", hint="EMBEDDINGS_API_KEY"
            )
        if not caps.llm:
            warn_once("llm", "capability_missing", capability="llm", hint="LLM_API_KEY")


container = Container()
