"""
Tests pour l'ingestion des éléments fournisseurs dans le catalogue.
"""

import pytest
from sqlalchemy import select

from interestmap.core.errors import CatalogUnavailableError
from interestmap.domain.content_types import ProviderId
from interestmap.infra.repo.catalog_repo import CatalogRepo
from interestmap.infra.repo.db import session_scope
from interestmap.infra.repo.models import CatalogORM
from interestmap.services.ingestion import derive_provider_item_id, item_to_record, upsert_catalog
from tests.fakes import make_item


def test_derive_provider_item_id() -> None:
    """Seul le premier segment est retiré."""
    assert derive_provider_item_id("youtube:abc") == "abc"
    assert derive_provider_item_id("articles:https://x.org/a") == "https://x.org/a"
    assert derive_provider_item_id("prompts:learn:path:i-1") == "learn:path:i-1"
    assert derive_provider_item_id("plain") == "plain"
    assert derive_provider_item_id("books:") == "books:"


def test_record_keeps_meta_and_interests() -> None:
    """Les métadonnées et les intérêts sont copiés dans `meta`."""
    item = make_item(ProviderId.YOUTUBE, "v1", channel="PyChan", interest_ids=["i-python"])
    record = item_to_record(item)
    assert record["provider_item_id"] == "v1"
    assert record["channel_title"] == "PyChan"
    assert record["meta"]["interest_ids"] == ["i-python"]
    assert record["meta"]["channel_title"] == "PyChan"


def test_upsert_is_idempotent(db) -> None:
    """Deux ingestions du même élément donnent une seule ligne."""
    item = make_item(ProviderId.BOOKS, "b1", "First")
    first = upsert_catalog(db, [item])
    second = upsert_catalog(db, [item])
    assert first.upserted == 1
    assert second.updated == 1
    assert first.rows[0].id == second.rows[0].id
    with session_scope(db) as session:
        assert CatalogRepo(session).count() == 1


def test_latest_write_wins(db) -> None:
    """Les doublons d'un lot sont fusionnés, la dernière version l'emporte."""
    items = [
        make_item(ProviderId.BOOKS, "b1", "Old title"),
        make_item(ProviderId.BOOKS, "b1", "New title"),
        make_item(ProviderId.YOUTUBE, "b1", "Same native id, other provider"),
    ]
    result = upsert_catalog(db, items)
    assert len(result.rows) == 2
    with session_scope(db) as session:
        titles = {
            row.provider: row.title for row in session.execute(select(CatalogORM)).scalars().all()
        }
    assert titles == {"books": "New title", "youtube": "Same native id, other provider"}


def test_empty_input(db) -> None:
    """Aucun élément: résultat vide sans accès au stockage."""
    assert upsert_catalog(db, []).rows == []


def test_store_failure_raises(broken_db) -> None:
    """Un échec de transaction devient CatalogUnavailableError."""
    with pytest.raises(CatalogUnavailableError):
        upsert_catalog(broken_db, [make_item(ProviderId.BOOKS, "b1")])
