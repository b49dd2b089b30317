"""
Types de données du moteur de recommandation de contenu.

Ce module définit les modèles Pydantic des éléments recommandés (ContentItem), des requêtes
fournisseurs et des résultats de rerank, ainsi que les objets domaine (Interest, CatalogRow).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Mode = Literal["selected", "all"]


class ProviderId(str, Enum):
    """Sources de contenu connues du moteur."""

    YOUTUBE = "youtube"
    BOOKS = "books"
    ARTICLES = "articles"
    TELEGRAM = "telegram"
    PROMPTS = "prompts"


class ContentType(str, Enum):
    """Nature d'un élément, en grande partie alignée sur le fournisseur."""

    VIDEO = "video"
    BOOK = "book"
    ARTICLE = "article"
    CHANNEL = "channel"
    PROMPT = "prompt"


class ContentMeta(BaseModel):
    """
    Métadonnées d'un élément de contenu.

    Les champs communs sont explicites; les champs propres à un fournisseur et non encore
    modélisés sont conservés tels quels (extra="allow").
    """

    model_config = ConfigDict(extra="allow")

    channel_title: str | None = None
    published_at: str | None = None
    language: str | None = None
    country: str | None = None
    source: str | None = None
    query: str | None = None
    interest_title: str | None = None
    prompt_text: str | None = None
    handle: str | None = None
    authors: list[str] = Field(default_factory=list)

    def extras(self) -> dict[str, Any]:
        """Retourne les champs de passage non modélisés."""
        return dict(self.model_extra or {})


class ContentItem(BaseModel):
    """
    Candidat de recommandation normalisé.

    L'identifiant `id` est composite ("{provider}:{id natif}") et stable entre deux récupérations
    du même élément source.
    """

    id: str
    provider: ProviderId
    type: ContentType
    title: str
    description: str | None = None
    url: str | None = None
    image: str | None = None
    meta: ContentMeta = Field(default_factory=ContentMeta)
    interest_ids: list[str] = Field(default_factory=list)
    interest_titles: list[str] = Field(default_factory=list)
    why: str | None = None
    score: float | None = None
    cached_at: datetime | None = None


@dataclass
class Interest:
    """
    Intérêt utilisateur (entité externe, lecture seule).

    Attributs
    - id: identifiant de l'intérêt.
    - title: libellé affiché.
    - slug: identifiant lisible (optionnel).
    - cluster: regroupement thématique (optionnel).
    - synonyms: liste de synonymes.
    """

    id: str
    title: str
    slug: str | None = None
    cluster: str | None = None
    synonyms: list[str] = field(default_factory=list)


@dataclass
class CatalogRow:
    """Ligne durable du catalogue, clé métier (provider, provider_item_id)."""

    id: str
    provider: str
    provider_item_id: str
    type: str
    title: str
    description: str | None = None
    url: str | None = None
    image: str | None = None
    language: str | None = None
    country: str | None = None
    source: str | None = None
    channel_title: str | None = None
    published_at: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)


class ProviderRequest(BaseModel):
    """
    Requête transmise à un adaptateur fournisseur.

    `interests` contient les intérêts résolus (dans l'ordre des identifiants) afin que les
    adaptateurs n'aient pas à interroger le stockage eux-mêmes.
    """

    interest_ids: list[str]
    interests: list[Interest] = Field(default_factory=list)
    locale: str | None = None
    limit: int | None = None
    mode: Mode = "all"


class ProviderFetchResult(BaseModel):
    """Résultat d'un fournisseur: éléments et erreur éventuelle."""

    items: list[ContentItem] = Field(default_factory=list)
    error: str | None = None


class RerankCandidate(BaseModel):
    """Candidat soumis au reranker."""

    id: str
    title: str
    description: str = ""
    provider: str
    type: str
    url: str | None = None
    channel_title: str | None = None


class RerankResult(BaseModel):
    """Verdict du reranker pour un candidat (transitoire, jamais persisté)."""

    id: str
    score: float = Field(ge=0.0, le=1.0)
    is_ad: bool = False
    is_offtopic: bool = False
    reason: str | None = None


class FeedbackInput(BaseModel):
    """Retour utilisateur (+1/-1) sur un élément recommandé."""

    content_id: str
    provider: ProviderId
    type: ContentType
    interest_ids: list[str] = Field(default_factory=list)
    value: Literal[1, -1]
    user_id: str | None = None
