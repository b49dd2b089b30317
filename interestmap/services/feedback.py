"""Enregistrement des retours utilisateurs (+1 / -1), sans jamais lever."""

from __future__ import annotations

import structlog
from sqlalchemy.engine import Engine

from interestmap.domain.content_types import FeedbackInput
from interestmap.infra.repo.db import session_scope
from interestmap.infra.repo.feedback_repo import FeedbackRepo

log = structlog.get_logger(__name__).bind(component="feedback")


def feedback_payload(data: FeedbackInput) -> dict:
    """Ligne `content_feedback` (intérêts dédupliqués, ordre conservé)."""
    return {
        "user_id": data.user_id,
        "content_id": data.content_id,
        "provider": data.provider.value,
        "type": data.type.value,
        "interest_ids": list(dict.fromkeys(i for i in data.interest_ids if i)),
        "value": data.value,
    }


def submit_feedback(db: Engine | None, data: FeedbackInput) -> bool:
    """Insère le retour; retourne False (et journalise) en cas d'échec."""
    if db is None:
        log.warning("feedback_skipped", reason="store not configured")
        return False
    try:
        with session_scope(db) as session:
            FeedbackRepo(session).insert(feedback_payload(data))
    except Exception as err:
        log.error("feedback_insert_failed", content_id=data.content_id, error=str(err))
        return False
    return True
