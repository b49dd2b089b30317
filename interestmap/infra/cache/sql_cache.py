# ============================================================
# Module : interestmap/infra/cache/sql_cache.py
# Objet  : Cache fournisseurs dans la table `content_cache`.
# Invariants :
#  - Les entrées périmées sont des miss, jamais supprimées ici.
#  - Aucune exception ne remonte à l'appelant.
# ============================================================

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.engine import Engine

from interestmap.domain.cache_key import is_fresh
from interestmap.domain.content_types import ContentItem
from interestmap.infra.cache.base import ContentCache, build_payload, parse_payload
from interestmap.infra.repo.db import session_scope
from interestmap.infra.repo.models import ContentCacheORM

log = structlog.get_logger(__name__).bind(component="cache", backend="sql")


class SqlContentCache(ContentCache):
    """Cache adossé à SQLAlchemy."""

    backend = "sql"

    def __init__(self, engine: Engine) -> None:
        """Initialise le cache sur un moteur SQLAlchemy."""
        self.engine = engine

    @staticmethod
    def _latest_stmt(provider: str, query_hash: str):
        return (
            select(ContentCacheORM)
            .where(ContentCacheORM.provider == provider)
            .where(ContentCacheORM.query_hash == query_hash)
            .order_by(ContentCacheORM.created_at.desc())
            .limit(1)
        )

    def get_cached(self, provider: str, query_hash: str, ttl_seconds: int) -> list[ContentItem] | None:
        """Dernière entrée de la clé si elle est fraîche."""
        try:
            with session_scope(self.engine) as session:
                row = session.execute(self._latest_stmt(provider, query_hash)).scalars().first()
                if row is None or row.created_at is None:
                    return None
                created_at = row.created_at
                if created_at.tzinfo is None:
                    created_at = created_at.replace(tzinfo=UTC)
                if not is_fresh(created_at, ttl_seconds):
                    return None
                return parse_payload(row.payload_json, created_at)
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
        """Met à jour la dernière entrée (date rafraîchie) ou en insère une."""
        now = datetime.now(UTC)
        payload = build_payload(items, now, ttl_seconds)
        try:
            with session_scope(self.engine) as session:
                row = session.execute(self._latest_stmt(provider, query_hash)).scalars().first()
                if row is None:
                    session.add(
                        ContentCacheORM(
                            provider=provider,
                            query_hash=query_hash,
                            payload_json=payload,
                            created_at=now,
                        )
                    )
                else:
                    row.payload_json = payload
                    row.created_at = now
        except Exception as err:
            log.warning("cache_write_failed", provider=provider, error=str(err))
