"""
Embedder OpenAI pour la génération d'embeddings.

Ce module implémente un embedder utilisant l'endpoint `/embeddings` compatible OpenAI, avec
troncature des textes, cache LRU injecté et appels bornés (timeout + retries).
"""

from __future__ import annotations

import structlog
from openai import AsyncOpenAI

from interestmap.core.constants import EMBEDDING_BATCH_SIZE, EMBEDDING_TEXT_MAX_CHARS
from interestmap.core.errors import ExternalServiceError
from interestmap.infra.embeddings.base import Embeddings
from interestmap.infra.embeddings.lru import EmbeddingLRU
from interestmap.infra.retry import RetryPolicy, call_with_retry

log = structlog.get_logger(__name__).bind(component="embeddings")


class OpenAIEmbedder(Embeddings):
    """
    Embedder OpenAI pour la génération d'embeddings.

    Les textes déjà présents dans le cache LRU ne sont pas renvoyés à l'API; les autres sont
    calculés par lots de `batch_size` textes. Un lot en échec après retries ne perd que ses
    propres vecteurs, qui valent None.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        lru: EmbeddingLRU | None = None,
        policy: RetryPolicy | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
        batch_size: int = EMBEDDING_BATCH_SIZE,
    ) -> None:
        """Construit le client (retries SDK désactivés, la politique locale s'applique)."""
        self.model = model
        self.lru = lru if lru is not None else EmbeddingLRU()
        self.policy = policy or RetryPolicy(timeout_s=12.0, max_retries=2)
        self.batch_size = max(1, batch_size)
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def embed(self, texts: list[str]) -> list[list[float] | None]:
        """
        Génère des embeddings vectoriels via l'API OpenAI.

        Args:
            texts: Liste des textes à convertir en embeddings.

        Returns:
            list[list[float] | None]: Vecteurs dans l'ordre des textes.
        """
        prepared = [t[:EMBEDDING_TEXT_MAX_CHARS] for t in texts]
        results: list[list[float] | None] = [None] * len(prepared)
        pending: dict[str, list[int]] = {}
        for idx, text in enumerate(prepared):
            cached = self.lru.get(EmbeddingLRU.key(self.model, text))
            if cached is not None:
                results[idx] = cached
            else:
                pending.setdefault(text, []).append(idx)
        if not pending:
            return results

        inputs = list(pending)
        for start in range(0, len(inputs), self.batch_size):
            chunk = inputs[start : start + self.batch_size]
            try:
                vectors = await call_with_retry(
                    "embeddings", lambda chunk=chunk: self._request(chunk), self.policy
                )
            except ExternalServiceError as err:
                log.warning(
                    "embeddings_failed", model=self.model, offset=start, count=len(chunk), error=str(err)
                )
                continue
            for text, vector in zip(chunk, vectors, strict=False):
                if not vector:
                    continue
                self.lru.put(EmbeddingLRU.key(self.model, text), vector)
                for idx in pending[text]:
                    results[idx] = vector
        return results

    async def _request(self, inputs: list[str]) -> list[list[float]]:
        payload: str | list[str] = inputs[0] if len(inputs) == 1 else inputs
        resp = await self.client.embeddings.create(model=self.model, input=payload)
        ordered = sorted(resp.data, key=lambda d: d.index)
        return [list(d.embedding) for d in ordered]
