"""Point d'entrée `get_content`: normalisation de la requête et explications "why"."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from interestmap.core.constants import DEFAULT_LIMIT, DEFAULT_MODE, MAX_LIMIT, MIN_LIMIT
from interestmap.domain.content_types import ContentItem, Mode, ProviderId
from interestmap.domain.engine_debug import EngineDebug
from interestmap.domain.why import build_why
from interestmap.services.content_engine import ContentEngine, EngineParams, normalize_interest_ids

DEFAULT_LOCALE = "ru"


class ContentResponse(BaseModel):
    """Réponse du service: éléments classés et trace de debug."""

    items: list[ContentItem] = Field(default_factory=list)
    debug: EngineDebug = Field(default_factory=EngineDebug)


def clamp_request_limit(limit: int | None) -> int:
    """Limite effective dans [1, 20], 20 par défaut."""
    value = DEFAULT_LIMIT if limit is None else limit
    return max(MIN_LIMIT, min(value, MAX_LIMIT))


async def get_content(
    engine: ContentEngine,
    interest_ids: Iterable[str],
    provider_ids: list[ProviderId] | None = None,
    limit: int | None = None,
    locale: str | None = None,
    mode: Mode | None = None,
    default_locale: str = DEFAULT_LOCALE,
) -> ContentResponse:
    """
    Recommandations pour un ensemble d'intérêts.

    Args:
        engine: moteur configuré (voir `Container`).
        interest_ids: identifiants d'intérêts (doublons et valeurs vides ignorés).
        provider_ids: fournisseurs à interroger; tous si None ou vide.
        limit: nombre maximal d'éléments, borné à [1, 20].
        locale: locale transmise aux fournisseurs (défaut `default_locale`).
        mode: "selected" ou "all" (défaut "all").

    Returns:
        ContentResponse: éléments avec une explication nettoyée, et la trace.
    """
    params = EngineParams(
        interest_ids=normalize_interest_ids(list(interest_ids)),
        provider_ids=list(provider_ids) if provider_ids else None,
        limit=clamp_request_limit(limit),
        locale=locale or default_locale,
        mode=mode or DEFAULT_MODE,
    )
    result = await engine.run(params)
    items = [item.model_copy(update={"why": build_why(item)}) for item in result.items]
    return ContentResponse(items=items, debug=result.debug)
