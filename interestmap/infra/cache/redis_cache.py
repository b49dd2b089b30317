"""Cache fournisseurs adossé à Redis (clé: `content_cache:{provider}:{hash}`)."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import redis
import structlog

from interestmap.domain.cache_key import is_fresh
from interestmap.domain.content_types import ContentItem
from interestmap.infra.cache.base import ContentCache, build_payload, parse_payload

log = structlog.get_logger(__name__).bind(component="cache", backend="redis")


class RedisContentCache(ContentCache):
    """Stocke la charge utile JSON et sa date de création sous une clé unique."""

    backend = "redis"

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        """Crée un client Redis à partir de l'URL fournie (ou utilise celui fourni)."""
        self.client = client or redis.Redis.from_url(url, decode_responses=True)

    @staticmethod
    def _key(provider: str, query_hash: str) -> str:
        return f"content_cache:{provider}:{query_hash}"

    def get_cached(self, provider: str, query_hash: str, ttl_seconds: int) -> list[ContentItem] | None:
        """Charge et désérialise l'entrée si elle est fraîche."""
        try:
            raw = self.client.get(self._key(provider, query_hash))
            if not raw:
                return None
            record = json.loads(raw)
            created_at = datetime.fromisoformat(record["created_at"])
            if not is_fresh(created_at, ttl_seconds):
                return None
            return parse_payload(record.get("payload"), created_at)
        except Exception as err:
            log.warning("cache_read_failed", provider=provider, error=str(err))
            return None

    def set_cached(
        self,
        provider: str,
        query_hash: str,
        items: list[ContentItem],
        ttl_seconds: int | None = None,
    ) -> None:
        """Sérialise en JSON; l'expiration Redis suit le TTL du fournisseur si connu."""
        now = datetime.now(UTC)
        record = {"created_at": now.isoformat(), "payload": build_payload(items, now, ttl_seconds)}
        try:
            self.client.set(
                self._key(provider, query_hash),
                json.dumps(record, ensure_ascii=False),
                ex=ttl_seconds if ttl_seconds and ttl_seconds > 0 else None,
            )
        except Exception as err:
            log.warning("cache_write_failed", provider=provider, error=str(err))
