# ============================================================
# Module : interestmap/infra/repo/embedding_repo.py
# Objet  : Persistance des vecteurs (intérêts et catalogue).
# ============================================================

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import ContentEmbeddingORM, InterestEmbeddingORM


class StoredVector:
    """Vecteur persisté et modèle qui l'a produit."""

    __slots__ = ("model", "vector")

    def __init__(self, model: str, vector: list[float]) -> None:
        self.model = model
        self.vector = vector


class EmbeddingRepo:
    """Lecture/écriture des vecteurs; `kind` vaut "interest" ou "content"."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    @staticmethod
    def _orm(kind: str):
        if kind == "interest":
            return InterestEmbeddingORM, InterestEmbeddingORM.interest_id
        if kind == "content":
            return ContentEmbeddingORM, ContentEmbeddingORM.content_id
        raise ValueError(f"unknown embedding kind: {kind}")

    def get_many(self, kind: str, ids: list[str]) -> dict[str, StoredVector]:
        """Vecteurs existants pour les identifiants donnés."""
        if not ids:
            return {}
        orm, key_col = self._orm(kind)
        stmt = select(orm).where(key_col.in_(ids))
        out: dict[str, StoredVector] = {}
        for row in self._session.execute(stmt).scalars().all():
            key = getattr(row, key_col.key)
            if isinstance(row.embedding, list) and row.embedding:
                out[key] = StoredVector(row.model, [float(x) for x in row.embedding])
        return out

    def save_many(self, kind: str, vectors: dict[str, list[float]], model: str) -> None:
        """Crée ou remplace les vecteurs (dernière écriture gagnante)."""
        if not vectors:
            return
        orm, key_col = self._orm(kind)
        for key, vector in vectors.items():
            row = self._session.get(orm, key)
            if row is None:
                row = orm(**{key_col.key: key, "model": model, "embedding": vector})
                self._session.add(row)
            else:
                row.model = model
                row.embedding = vector
        self._session.flush()
