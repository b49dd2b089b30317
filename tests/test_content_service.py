"""
Tests pour le point d'entrée `get_content` (normalisation et explications).
"""

import pytest

from interestmap.domain.content_types import ProviderId
from interestmap.services.content_engine import ContentEngine
from interestmap.services.content_service import clamp_request_limit, get_content
from tests.fakes import FakeProvider, make_item

MAX_LIMIT = 20


def test_clamp_request_limit() -> None:
    """Bornée à [1, 20], 20 par défaut."""
    assert clamp_request_limit(None) == MAX_LIMIT
    assert clamp_request_limit(0) == 1
    assert clamp_request_limit(-5) == 1
    assert clamp_request_limit(100) == MAX_LIMIT
    assert clamp_request_limit(7) == 7


@pytest.mark.asyncio
async def test_request_normalized_before_providers() -> None:
    """Intérêts triés et dédupliqués, locale et mode par défaut transmis."""
    provider = FakeProvider(ProviderId.BOOKS, [make_item(ProviderId.BOOKS, "b1")])
    engine = ContentEngine({ProviderId.BOOKS: provider})
    await get_content(engine, ["b", "a", "b", ""], limit=500)
    request = provider.requests[0]
    assert request.interest_ids == ["a", "b"]
    assert request.limit == MAX_LIMIT
    assert request.locale == "ru"
    assert request.mode == "all"


@pytest.mark.asyncio
async def test_every_item_has_why() -> None:
    """Chaque élément retourné porte une explication nettoyée."""
    items = [
        make_item(ProviderId.BOOKS, "b1", why="✅ Классика жанра"),
        make_item(ProviderId.BOOKS, "b2", interest_ids=["x", "y"]),
    ]
    engine = ContentEngine({ProviderId.BOOKS: FakeProvider(ProviderId.BOOKS, items)})
    response = await get_content(engine, ["x"], locale="en", mode="selected")
    assert [i.why for i in response.items] == ["Классика жанра", "Рекомендовано по вашим интересам"]
    assert response.debug.fallback is not None
