"""
Interface du cache de réponses fournisseurs.

Contrat: une lecture ne lève jamais (échec = miss), une écriture ne lève jamais (échec ignoré
et journalisé). Le cache nul sert quand aucun stockage n'est configuré.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from interestmap.domain.content_types import ContentItem


class ContentCache(ABC):
    """Cache adressé par (provider, hash de requête)."""

    backend: str = "abstract"

    @abstractmethod
    def get_cached(self, provider: str, query_hash: str, ttl_seconds: int) -> list[ContentItem] | None:
        """Éléments en cache encore frais, sinon None."""
        ...

    @abstractmethod
    def set_cached(
        self,
        provider: str,
        query_hash: str,
        items: list[ContentItem],
        ttl_seconds: int | None = None,
    ) -> None:
        """Écrase la dernière entrée de la clé (ou en crée une)."""
        ...


class NullContentCache(ContentCache):
    """Cache sans stockage: toujours un miss, écritures ignorées."""

    backend = "none"

    def get_cached(self, provider: str, query_hash: str, ttl_seconds: int) -> list[ContentItem] | None:
        """Toujours un miss."""
        return None

    def set_cached(
        self,
        provider: str,
        query_hash: str,
        items: list[ContentItem],
        ttl_seconds: int | None = None,
    ) -> None:
        """Aucune écriture."""
        return None


def stamp_items(items: list[ContentItem], cached_at: datetime) -> list[ContentItem]:
    """Renseigne `cached_at` sur les éléments qui n'en ont pas."""
    return [
        item if item.cached_at is not None else item.model_copy(update={"cached_at": cached_at})
        for item in items
    ]


def build_payload(items: list[ContentItem], now: datetime, ttl_seconds: int | None) -> dict:
    """Charge utile sérialisée: éléments, date de mise en cache et TTL indicatif."""
    return {
        "items": [i.model_dump(mode="json") for i in stamp_items(items, now)],
        "cached_at": now.isoformat(),
        "ttl_hours": (ttl_seconds / 3600) if ttl_seconds else None,
    }


def parse_payload(payload, created_at: datetime) -> list[ContentItem]:
    """Relit une charge utile (dict `items` ou liste brute) et date les éléments."""
    if isinstance(payload, dict):
        raw_items = payload.get("items") if isinstance(payload.get("items"), list) else []
        raw_cached = payload.get("cached_at")
    elif isinstance(payload, list):
        raw_items, raw_cached = payload, None
    else:
        raw_items, raw_cached = [], None
    cached_at = created_at
    if isinstance(raw_cached, str):
        try:
            cached_at = datetime.fromisoformat(raw_cached)
        except ValueError:
            cached_at = created_at
    items = [ContentItem.model_validate(raw) for raw in raw_items]
    return stamp_items(items, cached_at)
