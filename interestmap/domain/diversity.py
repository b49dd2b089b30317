# ============================================================
# Module : interestmap/domain/diversity.py
# Objet  : Sélection gloutonne avec plafond de séries par fournisseur/chaîne.
# Invariants :
#  - Jamais plus de 2 éléments consécutifs du même fournisseur.
#  - Jamais 2 éléments consécutifs de la même chaîne (non nulle).
# ============================================================
"""Filtre de diversité appliqué à une liste déjà classée."""

from __future__ import annotations

from dataclasses import dataclass, field

from interestmap.core.constants import (
    DIVERSITY_CHANNEL_MAX_STREAK,
    DIVERSITY_PROVIDER_MAX_STREAK,
)
from interestmap.domain.content_types import ContentItem


@dataclass
class DiversityResult:
    """Éléments retenus et compteurs de rejets."""

    items: list[ContentItem] = field(default_factory=list)
    dropped_by_provider: int = 0
    dropped_by_channel: int = 0
    enforced_providers: int = 0


def channel_of(item: ContentItem) -> str | None:
    """Titre de chaîne d'un élément (None si absent ou vide)."""
    title = item.meta.channel_title
    if title is None:
        title = item.meta.extras().get("channelTitle")
    if isinstance(title, str) and title.strip():
        return title
    return None


def apply_diversity(
    candidates: list[ContentItem],
    limit: int,
    provider_max_streak: int = DIVERSITY_PROVIDER_MAX_STREAK,
    channel_max_streak: int = DIVERSITY_CHANNEL_MAX_STREAK,
) -> DiversityResult:
    """Parcourt les candidats (score décroissant) et rejette ceux qui prolongeraient une série.

    Un candidat rejeté est sauté, pas terminal. Le parcours s'arrête à `limit` éléments.
    """
    result = DiversityResult()
    if limit <= 0:
        return result

    last_provider: str | None = None
    provider_run = 0
    last_channel: str | None = None
    channel_run = 0
    providers_seen: set[str] = set()

    for item in candidates:
        provider = item.provider.value
        channel = channel_of(item)

        if provider == last_provider and provider_run >= provider_max_streak:
            result.dropped_by_provider += 1
            continue
        if channel is not None and channel == last_channel and channel_run >= channel_max_streak:
            result.dropped_by_channel += 1
            continue

        result.items.append(item)
        providers_seen.add(provider)

        provider_run = provider_run + 1 if provider == last_provider else 1
        last_provider = provider
        if channel is not None and channel == last_channel:
            channel_run += 1
        else:
            channel_run = 1 if channel is not None else 0
        last_channel = channel

        if len(result.items) >= limit:
            break

    result.enforced_providers = len(providers_seen)
    return result
