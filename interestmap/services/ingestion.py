# ============================================================
# Module : interestmap/services/ingestion.py
# Objet  : Ingestion des éléments fournisseurs dans le catalogue durable.
# Invariants :
#  - Clé métier (provider, provider_item_id); la dernière écriture gagne.
#  - Un échec du stockage lève CatalogUnavailableError.
# ============================================================
"""Conversion ContentItem -> enregistrement catalogue et upsert."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from interestmap.core.errors import CatalogUnavailableError
from interestmap.domain.content_types import ContentItem
from interestmap.infra.repo.catalog_repo import CatalogRepo, UpsertResult
from interestmap.infra.repo.db import session_scope

log = structlog.get_logger(__name__).bind(component="ingestion")


def derive_provider_item_id(item_id: str) -> str:
    """Retire le premier segment "prefix:" de l'identifiant composite, sinon le garde tel quel."""
    if ":" in item_id:
        _, rest = item_id.split(":", 1)
        if rest:
            return rest
    return item_id


def item_to_record(item: ContentItem) -> dict[str, Any]:
    """Colonnes catalogue d'un élément; `meta` reprend les métadonnées et les intérêts."""
    meta = item.meta.model_dump(mode="json", exclude_none=True)
    meta["interest_ids"] = list(item.interest_ids)
    return {
        "provider": item.provider.value,
        "provider_item_id": derive_provider_item_id(item.id),
        "type": item.type.value,
        "title": item.title,
        "description": item.description,
        "url": item.url,
        "image": item.image,
        "language": item.meta.language,
        "country": item.meta.country,
        "source": item.meta.source,
        "channel_title": item.meta.channel_title,
        "published_at": item.meta.published_at,
        "meta": meta,
    }


def upsert_catalog(db: Engine, items: list[ContentItem]) -> UpsertResult:
    """Upsert des éléments; retourne les lignes du catalogue correspondantes.

    Raises:
        CatalogUnavailableError: si la transaction échoue.
    """
    if not items:
        return UpsertResult()
    records = [item_to_record(item) for item in items]
    try:
        with session_scope(db) as session:
            result = CatalogRepo(session).upsert_many(records)
    except SQLAlchemyError as err:
        log.error("catalog_upsert_failed", count=len(records), error=str(err))
        raise CatalogUnavailableError(str(err)) from err
    log.info("catalog_upserted", inserted=result.upserted, updated=result.updated)
    return result
