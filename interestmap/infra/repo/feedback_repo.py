# ============================================================
# Module : interestmap/infra/repo/feedback_repo.py
# Objet  : Insertion des retours utilisateurs.
# ============================================================

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import ContentFeedbackORM


class FeedbackRepo:
    """Insertion (append-only) dans `content_feedback`."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def insert(self, payload: dict) -> None:
        """Ajoute une ligne de feedback."""
        self._session.add(ContentFeedbackORM(**payload))
        self._session.flush()

    def list_for_content(self, content_id: str) -> list[ContentFeedbackORM]:
        """Retours enregistrés pour un élément."""
        stmt = select(ContentFeedbackORM).where(ContentFeedbackORM.content_id == content_id)
        return list(self._session.execute(stmt).scalars().all())
