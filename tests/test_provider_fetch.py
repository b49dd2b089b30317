"""
Tests pour la collecte des fournisseurs (cache, isolation des erreurs, fusion).
"""

import pytest

from interestmap.domain.content_types import ProviderId, ProviderRequest
from interestmap.services.provider_fetch import (
    default_hash_input,
    fetch_provider_items,
    merge_items,
)
from tests.fakes import FakeProvider, InMemoryCache, make_item

REQUEST = ProviderRequest(interest_ids=["i-python"], limit=10, locale="ru", mode="all")


def test_default_hash_input() -> None:
    """Version, fournisseur et paramètres de la requête."""
    provider = FakeProvider(ProviderId.BOOKS)
    assert default_hash_input(provider, REQUEST) == {
        "v": 1,
        "provider": "books",
        "interest_ids": ["i-python"],
        "limit": 10,
        "locale": "ru",
        "mode": "all",
    }


@pytest.mark.asyncio
async def test_second_call_hits_cache() -> None:
    """Une réponse réussie est servie depuis le cache au second appel."""
    cache = InMemoryCache()
    provider = FakeProvider(ProviderId.BOOKS, [make_item(ProviderId.BOOKS, "b1")])
    _, first = await fetch_provider_items([provider], REQUEST, cache)
    items, second = await fetch_provider_items([provider], REQUEST, cache)
    assert len(provider.requests) == 1
    assert first.cache_hits == {"books": False}
    assert second.cache_hits == {"books": True}
    assert second.providers["books"].count == 1
    assert items[0].cached_at is not None
    assert first.hashes["books"] == second.hashes["books"]


@pytest.mark.asyncio
async def test_errors_are_not_cached() -> None:
    """Un résultat en erreur n'est pas écrit dans le cache."""
    cache = InMemoryCache()
    provider = FakeProvider(ProviderId.YOUTUBE, error="YouTube API key missing")
    _, debug = await fetch_provider_items([provider], REQUEST, cache)
    assert cache.writes == 0
    assert debug.providers["youtube"].error == "YouTube API key missing"


@pytest.mark.asyncio
async def test_exception_is_isolated() -> None:
    """Un fournisseur qui lève n'empêche pas les autres de répondre."""
    failing = FakeProvider(ProviderId.ARTICLES, exc=RuntimeError("boom"))
    ok = FakeProvider(ProviderId.BOOKS, [make_item(ProviderId.BOOKS, "b1")])
    items, debug = await fetch_provider_items([failing, ok], REQUEST, InMemoryCache())
    assert [i.id for i in items] == ["books:b1"]
    assert debug.providers["articles"].error == "boom"
    assert debug.used_providers == ["articles", "books"]


@pytest.mark.asyncio
async def test_all_providers_fail() -> None:
    """Tous en échec: liste vide, erreurs remontées dans la trace."""
    providers = [
        FakeProvider(ProviderId.YOUTUBE, error="quota"),
        FakeProvider(ProviderId.BOOKS, exc=RuntimeError("down")),
    ]
    items, debug = await fetch_provider_items(providers, REQUEST, InMemoryCache())
    assert items == []
    assert {k: v.error for k, v in debug.providers.items()} == {"youtube": "quota", "books": "down"}


def test_merge_scored_first_then_arrival_order() -> None:
    """Les éléments scorés passent devant, par score décroissant; tri stable sinon."""
    a = make_item(ProviderId.YOUTUBE, "a")
    b = make_item(ProviderId.YOUTUBE, "b", score=0.2)
    c = make_item(ProviderId.BOOKS, "c")
    d = make_item(ProviderId.BOOKS, "d", score=0.9)
    merged = merge_items([[a, b], [c, d]])
    assert [i.id for i in merged] == ["books:d", "youtube:b", "youtube:a", "books:c"]
