# Schémas Pydantic exposés par l'API (requêtes et réponses).

from pydantic import BaseModel, Field

from interestmap.domain.content_types import Mode, ProviderId


class ContentRequest(BaseModel):
    """Requête de recommandations.

    Champs:
    - interest_ids: identifiants d'intérêts (doublons ignorés)
    - provider_ids: fournisseurs à interroger (tous si absent)
    - limit: nombre d'éléments, borné à [1, 20] par le service
    - locale: locale des fournisseurs (défaut configuré)
    - mode: "selected" | "all"
    """

    interest_ids: list[str] = Field(default_factory=list)
    provider_ids: list[ProviderId] | None = None
    limit: int | None = None
    locale: str | None = None
    mode: Mode | None = None


class FeedbackAccepted(BaseModel):
    """Accusé de réception d'un retour (traité en tâche de fond)."""

    accepted: bool = True


class HealthResponse(BaseModel):
    """État du service et des capacités optionnelles."""

    status: str
    store: bool
    embeddings: bool
    llm: bool
    cache: str
