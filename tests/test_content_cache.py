"""
Tests pour les caches de réponses fournisseurs (SQL et Redis).
"""

import json
from datetime import UTC, datetime, timedelta

from sqlalchemy import select

from interestmap.domain.content_types import ProviderId
from interestmap.infra.cache.base import NullContentCache
from interestmap.infra.cache.redis_cache import RedisContentCache
from interestmap.infra.cache.sql_cache import SqlContentCache
from interestmap.infra.repo.db import session_scope
from interestmap.infra.repo.models import ContentCacheORM
from tests.fakes import make_item

TTL = 3600
HASH = "abc123"


class DictRedis:
    """Client Redis minimal en mémoire (get/set)."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.expiry: dict[str, int | None] = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex
        return True


def test_sql_roundtrip_sets_cached_at(db) -> None:
    """Une entrée fraîche est relue avec `cached_at` renseigné."""
    cache = SqlContentCache(db)
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b1")], ttl_seconds=TTL)
    items = cache.get_cached("books", HASH, TTL)
    assert items is not None
    assert [i.id for i in items] == ["books:b1"]
    assert items[0].cached_at is not None


def test_sql_stale_entry_is_miss(db) -> None:
    """Une entrée plus vieille que le TTL est un miss et n'est pas supprimée."""
    cache = SqlContentCache(db)
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b1")])
    with session_scope(db) as session:
        row = session.execute(select(ContentCacheORM)).scalars().one()
        row.created_at = datetime.now(UTC) - timedelta(seconds=TTL + 5)
    assert cache.get_cached("books", HASH, TTL) is None
    with session_scope(db) as session:
        assert len(session.execute(select(ContentCacheORM)).scalars().all()) == 1


def test_sql_overwrite_keeps_single_row(db) -> None:
    """Réécrire la même clé met à jour l'entrée existante."""
    cache = SqlContentCache(db)
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b1")])
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b2")])
    items = cache.get_cached("books", HASH, TTL)
    assert [i.id for i in items] == ["books:b2"]
    with session_scope(db) as session:
        assert len(session.execute(select(ContentCacheORM)).scalars().all()) == 1


def test_sql_keys_are_isolated(db) -> None:
    """Un autre fournisseur ou un autre hash ne partagent pas l'entrée."""
    cache = SqlContentCache(db)
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b1")])
    assert cache.get_cached("youtube", HASH, TTL) is None
    assert cache.get_cached("books", "other", TTL) is None


def test_sql_failures_never_raise(broken_db) -> None:
    """Sans tables, lecture = miss et écriture ignorée."""
    cache = SqlContentCache(broken_db)
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b1")])
    assert cache.get_cached("books", HASH, TTL) is None


def test_redis_roundtrip_and_expiry() -> None:
    """La clé suit le format attendu et l'expiration reprend le TTL."""
    client = DictRedis()
    cache = RedisContentCache(client=client)
    cache.set_cached("youtube", HASH, [make_item(ProviderId.YOUTUBE, "v1")], ttl_seconds=TTL)
    key = f"content_cache:youtube:{HASH}"
    assert client.expiry[key] == TTL
    items = cache.get_cached("youtube", HASH, TTL)
    assert [i.id for i in items] == ["youtube:v1"]


def test_redis_stale_and_corrupt_entries() -> None:
    """Entrée périmée ou illisible: miss sans exception."""
    client = DictRedis()
    cache = RedisContentCache(client=client)
    old = (datetime.now(UTC) - timedelta(seconds=TTL * 2)).isoformat()
    client.store[f"content_cache:books:{HASH}"] = json.dumps({"created_at": old, "payload": {"items": []}})
    client.store["content_cache:books:bad"] = "{not json"
    assert cache.get_cached("books", HASH, TTL) is None
    assert cache.get_cached("books", "bad", TTL) is None


def test_null_cache() -> None:
    """Le cache nul ne retient rien."""
    cache = NullContentCache()
    cache.set_cached("books", HASH, [make_item(ProviderId.BOOKS, "b1")])
    assert cache.get_cached("books", HASH, TTL) is None
