"""
Tests pour le cache LRU, la politique de retry et les clients OpenAI (clients factices).
"""

import asyncio
from types import SimpleNamespace

import pytest

from interestmap.core.errors import ExternalServiceError
from interestmap.infra.embeddings.lru import EmbeddingLRU
from interestmap.infra.embeddings.openai_embedder import OpenAIEmbedder
from interestmap.infra.llm.openai_client import OpenAILLM
from interestmap.infra.retry import RetryPolicy, call_with_retry

FAST = RetryPolicy(timeout_s=1.0, max_retries=2, base_delay=0.0, random_factor=0.0)


class _EmbeddingsAPI:
    def __init__(self, fail_times: int = 0):
        self.inputs: list = []
        self.fail_times = fail_times

    async def create(self, model, input):
        self.inputs.append(input)
        if self.fail_times:
            self.fail_times -= 1
            raise RuntimeError("503")
        texts = [input] if isinstance(input, str) else input
        data = [SimpleNamespace(index=i, embedding=[float(len(t)), 1.0]) for i, t in enumerate(texts)]
        return SimpleNamespace(data=list(reversed(data)))


class _ChatAPI:
    def __init__(self, contents: list):
        self.contents = list(contents)
        self.kwargs: list[dict] = []

    async def create(self, **kwargs):
        self.kwargs.append(kwargs)
        content = self.contents.pop(0)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _embedder(
    api: _EmbeddingsAPI, lru: EmbeddingLRU | None = None, batch_size: int = 64
) -> OpenAIEmbedder:
    client = SimpleNamespace(embeddings=api)
    return OpenAIEmbedder(
        api_key="k", model="m", lru=lru, policy=FAST, client=client, batch_size=batch_size
    )


def test_lru_evicts_least_recent() -> None:
    """Au-delà de la capacité, l'entrée la moins récemment utilisée est évincée."""
    lru = EmbeddingLRU(capacity=2)
    lru.put("a", [1.0])
    lru.put("b", [2.0])
    assert lru.get("a") == [1.0]
    lru.put("c", [3.0])
    assert "b" not in lru
    assert "a" in lru and "c" in lru
    assert len(lru) == 2


def test_lru_disabled() -> None:
    """Capacité nulle: rien n'est retenu."""
    lru = EmbeddingLRU(capacity=0)
    lru.put("a", [1.0])
    assert lru.get("a") is None


@pytest.mark.asyncio
async def test_retry_then_success() -> None:
    """Les échecs transitoires sont retentés."""
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("transient")
        return "ok"

    assert await call_with_retry("op", flaky, FAST) == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_retry_exhausted() -> None:
    """Au plus max_retries + 1 tentatives, puis ExternalServiceError."""
    attempts = []

    async def broken():
        attempts.append(1)
        raise RuntimeError("down")

    with pytest.raises(ExternalServiceError):
        await call_with_retry("op", broken, FAST)
    assert len(attempts) == FAST.max_retries + 1


@pytest.mark.asyncio
async def test_timeout_counts_as_failure() -> None:
    """Une tentative trop lente est annulée et compte comme un échec."""
    policy = RetryPolicy(timeout_s=0.01, max_retries=0, base_delay=0.0, random_factor=0.0)

    async def slow():
        await asyncio.sleep(1)

    with pytest.raises(ExternalServiceError):
        await call_with_retry("op", slow, policy)


@pytest.mark.asyncio
async def test_embedder_orders_and_caches() -> None:
    """Vecteurs remis dans l'ordre des textes; le LRU évite un second appel."""
    api = _EmbeddingsAPI()
    embedder = _embedder(api, EmbeddingLRU(capacity=10))
    vectors = await embedder.embed(["a", "bbb", "a"])
    assert vectors == [[1.0, 1.0], [3.0, 1.0], [1.0, 1.0]]
    assert api.inputs == [["a", "bbb"]]
    assert await embedder.embed_one("bbb") == [3.0, 1.0]
    assert len(api.inputs) == 1


@pytest.mark.asyncio
async def test_embedder_failure_returns_none() -> None:
    """Après épuisement des retries, les vecteurs valent None."""
    embedder = _embedder(_EmbeddingsAPI(fail_times=10))
    assert await embedder.embed(["a", "b"]) == [None, None]


@pytest.mark.asyncio
async def test_embedder_failed_chunk_only_loses_its_rows() -> None:
    """Les textes partent par lots; un lot en échec ne perd que ses propres vecteurs."""
    attempts = FAST.max_retries + 1
    api = _EmbeddingsAPI(fail_times=attempts)
    embedder = _embedder(api, batch_size=2)
    vectors = await embedder.embed(["a", "bb", "ccc"])
    assert vectors == [None, None, [3.0, 1.0]]
    assert api.inputs == [["a", "bb"]] * attempts + ["ccc"]


@pytest.mark.asyncio
async def test_llm_generate_and_empty_reply() -> None:
    """Le contenu est retourné; une réponse vide est retentée."""
    chat = _ChatAPI(["", "[]"])
    llm = OpenAILLM(api_key="k", model="m", policy=FAST, client=SimpleNamespace(chat=SimpleNamespace(completions=chat)))
    assert await llm.generate([{"role": "user", "content": "hi"}], temperature=0.2) == "[]"
    assert len(chat.kwargs) == 2
    assert chat.kwargs[0]["temperature"] == 0.2
