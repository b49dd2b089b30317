# ============================================================
# Module : interestmap/services/provider_fetch.py
# Objet  : Lecture cache / appel des fournisseurs et fusion des éléments.
# Invariants :
#  - Un fournisseur en échec n'interrompt pas les autres.
#  - Un résultat en erreur n'est jamais mis en cache.
#  - La fusion suit l'ordre des fournisseurs (tri stable par score).
# ============================================================
"""Collecte des éléments de tous les fournisseurs demandés."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

import structlog

from interestmap.app.metrics import (
    CONTENT_CACHE_LOOKUPS,
    CONTENT_PROVIDER_ERRORS,
    CONTENT_PROVIDER_FETCH_SECONDS,
)
from interestmap.core.constants import CACHE_KEY_VERSION
from interestmap.domain.cache_key import stable_hash
from interestmap.domain.content_types import ContentItem, ProviderRequest
from interestmap.domain.engine_debug import EngineDebug, ProviderDebug
from interestmap.infra.cache.base import ContentCache
from interestmap.infra.providers.base import ContentProvider

log = structlog.get_logger(__name__).bind(component="provider_fetch")


@dataclass
class _ProviderOutcome:
    provider: str
    query_hash: str
    status: ProviderDebug
    items: list[ContentItem] = field(default_factory=list)


def default_hash_input(provider: ContentProvider, request: ProviderRequest) -> dict[str, Any]:
    """Entrée de hash par défaut: version, fournisseur et paramètres de la requête."""
    return {
        "v": CACHE_KEY_VERSION,
        "provider": provider.id.value,
        "interest_ids": list(request.interest_ids),
        "limit": request.limit,
        "locale": request.locale,
        "mode": request.mode,
    }


def hash_input_for(provider: ContentProvider, request: ProviderRequest) -> Any:
    """Entrée spécifique du fournisseur si elle existe, sinon l'entrée par défaut."""
    try:
        custom = provider.get_hash_input(request)
    except Exception as err:
        log.warning("provider_hash_input_failed", provider=provider.id.value, error=str(err))
        custom = None
    return custom if custom else default_hash_input(provider, request)


async def _fetch_one(
    provider: ContentProvider,
    request: ProviderRequest,
    cache: ContentCache,
    semaphore: asyncio.Semaphore,
) -> _ProviderOutcome:
    pid = provider.id.value
    started = time.perf_counter()
    query_hash = stable_hash(hash_input_for(provider, request))
    status = ProviderDebug()

    cached = cache.get_cached(pid, query_hash, provider.ttl_seconds)
    if cached is not None:
        CONTENT_CACHE_LOOKUPS.labels(provider=pid, result="hit").inc()
        status.cache_hit = True
        status.count = len(cached)
        status.ms = int((time.perf_counter() - started) * 1000)
        log.info("provider_cache_hit", provider=pid, count=len(cached))
        return _ProviderOutcome(pid, query_hash, status, list(cached))
    CONTENT_CACHE_LOOKUPS.labels(provider=pid, result="miss").inc()

    items: list[ContentItem] = []
    error: str | None = None
    async with semaphore:
        fetch_started = time.perf_counter()
        try:
            result = await provider.fetch(request)
            items, error = list(result.items), result.error
        except Exception as err:
            error = str(err) or "Unknown provider error"
            log.error("provider_fetch_failed", provider=pid, error=error)
        CONTENT_PROVIDER_FETCH_SECONDS.labels(provider=pid).observe(
            time.perf_counter() - fetch_started
        )

    status.count = len(items)
    status.error = error
    status.ms = int((time.perf_counter() - started) * 1000)
    if error:
        CONTENT_PROVIDER_ERRORS.labels(provider=pid).inc()
        log.warning("provider_returned_error", provider=pid, error=error, count=len(items))
    else:
        cache.set_cached(pid, query_hash, items, provider.ttl_seconds)
        log.info("provider_fetched", provider=pid, count=len(items))
    return _ProviderOutcome(pid, query_hash, status, items)


def merge_items(batches: list[list[ContentItem]]) -> list[ContentItem]:
    """Fusionne les lots: éléments scorés d'abord (score décroissant), puis ordre d'arrivée."""
    flat = [item for batch in batches for item in batch]
    return sorted(flat, key=lambda i: (i.score is None, -(i.score or 0.0)))


async def fetch_provider_items(
    providers: list[ContentProvider],
    request: ProviderRequest,
    cache: ContentCache,
    concurrency: int = 3,
) -> tuple[list[ContentItem], EngineDebug]:
    """Interroge cache puis fournisseurs (concurrence bornée) et retourne la fusion et la trace."""
    debug = EngineDebug(used_providers=[p.id.value for p in providers])
    semaphore = asyncio.Semaphore(max(1, concurrency))
    outcomes = await asyncio.gather(
        *(_fetch_one(p, request, cache, semaphore) for p in providers)
    )
    for outcome in outcomes:
        debug.hashes[outcome.provider] = outcome.query_hash
        debug.cache_hits[outcome.provider] = outcome.status.cache_hit
        debug.providers[outcome.provider] = outcome.status
    return merge_items([o.items for o in outcomes]), debug
