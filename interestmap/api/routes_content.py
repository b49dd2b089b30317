"""
Routes de recommandation de contenu.

Expose `POST /v1/content` (recommandations et trace de debug) et `POST /v1/content/feedback`
(retour +1/-1 enregistré en tâche de fond).
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.engine import Engine

from interestmap.api.deps import get_content_engine, get_default_locale, get_store
from interestmap.api.schemas import ContentRequest, FeedbackAccepted
from interestmap.core.constants import HTTP_ACCEPTED
from interestmap.domain.content_types import FeedbackInput
from interestmap.services.content_engine import ContentEngine
from interestmap.services.content_service import ContentResponse, get_content
from interestmap.services.feedback import submit_feedback

router = APIRouter(prefix="/v1/content", tags=["content"])
engine_dep = Depends(get_content_engine)
store_dep = Depends(get_store)
locale_dep = Depends(get_default_locale)


@router.post("", response_model=ContentResponse)
async def content(
    payload: ContentRequest,
    engine: ContentEngine = engine_dep,
    default_locale: str = locale_dep,
) -> ContentResponse:
    """Retourne les recommandations pour les intérêts demandés."""
    return await get_content(
        engine,
        payload.interest_ids,
        provider_ids=payload.provider_ids,
        limit=payload.limit,
        locale=payload.locale,
        mode=payload.mode,
        default_locale=default_locale,
    )


@router.post("/feedback", status_code=HTTP_ACCEPTED, response_model=FeedbackAccepted)
def feedback(
    payload: FeedbackInput,
    background: BackgroundTasks,
    db: Engine | None = store_dep,
) -> FeedbackAccepted:
    """Accepte le retour immédiatement; l'insertion a lieu après la réponse."""
    background.add_task(submit_feedback, db, payload)
    return FeedbackAccepted()
