"""
Fakes et mocks pour les tests unitaires.

Ce module fournit des implémentations factices des interfaces Embeddings, LLM, ContentProvider et
ContentCache, au comportement déterministe, ainsi qu'un constructeur d'éléments de contenu.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from interestmap.domain.cache_key import is_fresh
from interestmap.domain.content_types import (
    ContentItem,
    ContentMeta,
    ContentType,
    Interest,
    ProviderFetchResult,
    ProviderId,
    ProviderRequest,
)
from interestmap.infra.cache.base import ContentCache, stamp_items
from interestmap.infra.embeddings.base import Embeddings
from interestmap.infra.llm.base import LLM
from interestmap.infra.providers.base import ContentProvider

DEFAULT_KEYWORDS = ("python", "дизайн", "music")

SEED_INTERESTS = [
    Interest(id="i-python", title="Python", slug="python", cluster="tech", synonyms=["программирование"]),
    Interest(id="i-design", title="Дизайн", slug="design", cluster="design", synonyms=["ux"]),
    Interest(id="i-music", title="Music", slug=None, cluster=None, synonyms=[]),
]
_ID_RE = re.compile(r"^- id: (\S+)$", re.MULTILINE)

_TYPES = {
    ProviderId.YOUTUBE: ContentType.VIDEO,
    ProviderId.BOOKS: ContentType.BOOK,
    ProviderId.ARTICLES: ContentType.ARTICLE,
    ProviderId.TELEGRAM: ContentType.CHANNEL,
    ProviderId.PROMPTS: ContentType.PROMPT,
}


def make_item(
    provider: ProviderId,
    native_id: str,
    title: str | None = None,
    *,
    score: float | None = None,
    description: str | None = None,
    channel: str | None = None,
    published_at: str | None = None,
    interest_ids: list[str] | None = None,
    why: str | None = None,
) -> ContentItem:
    """Construit un élément minimal pour le fournisseur donné."""
    return ContentItem(
        id=f"{provider.value}:{native_id}",
        provider=provider,
        type=_TYPES[provider],
        title=title or f"{provider.value} {native_id}",
        description=description,
        url=f"https://example.org/{provider.value}/{native_id}",
        interest_ids=list(interest_ids or []),
        score=score,
        why=why,
        meta=ContentMeta(channel_title=channel, published_at=published_at),
    )


class FakeEmbeddings(Embeddings):
    """
    Implémentation factice d'Embeddings pour les tests.

    Chaque dimension vaut 1.0 si le mot-clé correspondant apparaît dans le texte; une dernière
    composante constante évite les vecteurs nuls.
    """

    def __init__(self, model: str = "fake-embed", keywords: tuple[str, ...] = DEFAULT_KEYWORDS):
        self.model = model
        self.keywords = keywords
        self.calls: list[list[str]] = []

    def vector(self, text: str) -> list[float]:
        lowered = text.lower()
        return [1.0 if kw in lowered else 0.0 for kw in self.keywords] + [0.1]

    async def embed(self, texts: list[str]) -> list[list[float] | None]:
        """Vecteurs déterministes; mémorise les textes reçus."""
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]


class FailingEmbeddings(Embeddings):
    """Embedder dont tous les calculs échouent (None)."""

    model = "fake-embed"

    async def embed(self, texts: list[str]) -> list[list[float] | None]:
        return [None for _ in texts]


class PartialEmbeddings(FakeEmbeddings):
    """Embedder factice qui renvoie None pour les textes où `fails` est vrai."""

    def __init__(self, fails: Callable[[str], bool]):
        super().__init__()
        self.fails = fails

    async def embed(self, texts: list[str]) -> list[list[float] | None]:
        self.calls.append(list(texts))
        return [None if self.fails(t) else self.vector(t) for t in texts]


class FakeLLM(LLM):
    """
    Implémentation factice de LLM pour les tests.

    Rejoue les réponses fournies (une exception est levée telle quelle); sans réponse
    programmée, note chaque candidat du prompt à `default_score`.
    """

    def __init__(
        self,
        responses: list[str | Exception] | None = None,
        default_score: float = 0.8,
        handler: Callable[[int, list[str]], str | Exception] | None = None,
    ):
        self.model = "fake-llm"
        self.responses = list(responses or [])
        self.default_score = default_score
        self.handler = handler
        self.calls: list[list[dict[str, str]]] = []

    @staticmethod
    def prompt_ids(messages: list[dict[str, str]]) -> list[str]:
        return _ID_RE.findall(messages[-1]["content"])

    async def generate(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        """Réponse programmée, sinon un tableau JSON couvrant tous les candidats."""
        self.calls.append(messages)
        ids = self.prompt_ids(messages)
        if self.handler is not None:
            outcome = self.handler(len(self.calls), ids)
        elif self.responses:
            outcome = self.responses.pop(0)
        else:
            outcome = json.dumps(
                [{"id": i, "score": self.default_score, "reason": "ok"} for i in ids]
            )
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeProvider(ContentProvider):
    """Fournisseur programmable: éléments, erreur retournée ou exception levée."""

    def __init__(
        self,
        provider_id: ProviderId,
        items: list[ContentItem] | None = None,
        error: str | None = None,
        exc: Exception | None = None,
        ttl_seconds: int = 3600,
    ):
        self.id = provider_id
        self.ttl_seconds = ttl_seconds
        self.items = list(items or [])
        self.error = error
        self.exc = exc
        self.requests: list[ProviderRequest] = []

    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return ProviderFetchResult(items=list(self.items), error=self.error)


class InMemoryCache(ContentCache):
    """Cache en mémoire respectant la fraîcheur TTL."""

    backend = "memory"

    def __init__(self):
        self.entries: dict[tuple[str, str], tuple[datetime, list[ContentItem]]] = {}
        self.writes = 0

    def get_cached(self, provider: str, query_hash: str, ttl_seconds: int) -> list[ContentItem] | None:
        entry = self.entries.get((provider, query_hash))
        if entry is None or not is_fresh(entry[0], ttl_seconds):
            return None
        return stamp_items(entry[1], entry[0])

    def set_cached(
        self,
        provider: str,
        query_hash: str,
        items: list[ContentItem],
        ttl_seconds: int | None = None,
    ) -> None:
        self.writes += 1
        self.entries[(provider, query_hash)] = (datetime.now(UTC), list(items))
