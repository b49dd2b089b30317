# ============================================================
# Module : interestmap/infra/repo/catalog_repo.py
# Objet  : Upsert du catalogue durable, clé (provider, provider_item_id).
# Invariants :
#  - Une seule ligne par clé métier; la dernière écriture gagne.
#  - Les lignes ne sont jamais supprimées par le moteur.
# ============================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from ...domain.content_types import CatalogRow
from .models import CatalogORM

_MUTABLE_COLUMNS = (
    "type",
    "title",
    "description",
    "url",
    "image",
    "language",
    "country",
    "source",
    "channel_title",
    "published_at",
    "meta",
)


@dataclass
class UpsertResult:
    """Lignes résultantes et compteurs d'insertion/mise à jour."""

    rows: list[CatalogRow] = field(default_factory=list)
    upserted: int = 0
    updated: int = 0


def to_catalog_row(orm: CatalogORM) -> CatalogRow:
    """Convertit une ligne ORM en objet domaine."""
    return CatalogRow(
        id=orm.id,
        provider=orm.provider,
        provider_item_id=orm.provider_item_id,
        type=orm.type,
        title=orm.title,
        description=orm.description,
        url=orm.url,
        image=orm.image,
        language=orm.language,
        country=orm.country,
        source=orm.source,
        channel_title=orm.channel_title,
        published_at=orm.published_at,
        meta=dict(orm.meta or {}),
    )


class CatalogRepo:
    """Upsert et lecture du catalogue."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def upsert_many(self, records: list[dict[str, Any]]) -> UpsertResult:
        """Insère ou met à jour chaque enregistrement (dict de colonnes).

        Les doublons de clé dans un même lot sont fusionnés, le dernier l'emporte.
        """
        latest: dict[tuple[str, str], dict[str, Any]] = {}
        for rec in records:
            latest[(rec["provider"], rec["provider_item_id"])] = rec
        if not latest:
            return UpsertResult()

        conditions = [
            and_(CatalogORM.provider == p, CatalogORM.provider_item_id == pid) for p, pid in latest
        ]
        stmt = select(CatalogORM).where(or_(*conditions))
        existing = {
            (row.provider, row.provider_item_id): row
            for row in self._session.execute(stmt).scalars().all()
        }

        result = UpsertResult()
        touched: list[CatalogORM] = []
        for key, rec in latest.items():
            row = existing.get(key)
            if row is None:
                row = CatalogORM(provider=key[0], provider_item_id=key[1])
                self._session.add(row)
                result.upserted += 1
            else:
                result.updated += 1
            for col in _MUTABLE_COLUMNS:
                setattr(row, col, rec.get(col))
            touched.append(row)
        self._session.flush()
        result.rows = [to_catalog_row(r) for r in touched]
        return result

    def count(self) -> int:
        """Nombre de lignes du catalogue."""
        return self._session.execute(select(func.count()).select_from(CatalogORM)).scalar_one()
