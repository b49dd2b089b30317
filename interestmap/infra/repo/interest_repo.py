# ============================================================
# Module : interestmap/infra/repo/interest_repo.py
# Objet  : Lecture des intérêts (référentiel externe).
# ============================================================

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...domain.content_types import Interest
from .models import InterestORM


def _clean_synonyms(raw) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [s.strip() for s in raw if isinstance(s, str) and s.strip()]


class InterestRepo:
    """Accès en lecture aux intérêts."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def get_many(self, ids: list[str]) -> list[Interest]:
        """Retourne les intérêts connus, dans l'ordre des identifiants demandés."""
        if not ids:
            return []
        stmt = select(InterestORM).where(InterestORM.id.in_(ids))
        by_id = {row.id: row for row in self._session.execute(stmt).scalars().all()}
        out: list[Interest] = []
        for interest_id in ids:
            row = by_id.get(interest_id)
            if row is None or not (row.title or "").strip():
                continue
            out.append(
                Interest(
                    id=row.id,
                    title=row.title.strip(),
                    slug=row.slug,
                    cluster=row.cluster,
                    synonyms=_clean_synonyms(row.synonyms),
                )
            )
        return out

    def title_map(self, ids: list[str]) -> dict[str, str]:
        """Association id -> titre pour l'hydratation des éléments."""
        return {i.id: i.title for i in self.get_many(ids)}

    def save(self, interest: Interest) -> None:
        """Crée ou remplace un intérêt (seed/dev)."""
        row = self._session.get(InterestORM, interest.id)
        if row is None:
            row = InterestORM(id=interest.id)
            self._session.add(row)
        row.title = interest.title
        row.slug = interest.slug
        row.cluster = interest.cluster
        row.synonyms = list(interest.synonyms)
        self._session.flush()
