"""Registre des fournisseurs de contenu, dans l'ordre de fusion."""

from __future__ import annotations

from collections.abc import Iterable

import httpx

from interestmap.core.settings import Settings
from interestmap.domain.content_types import ProviderId
from interestmap.infra.providers.articles import ArticlesProvider
from interestmap.infra.providers.base import ContentProvider
from interestmap.infra.providers.books import BooksProvider
from interestmap.infra.providers.prompts import PromptsProvider
from interestmap.infra.providers.telegram import TelegramProvider
from interestmap.infra.providers.youtube import YouTubeProvider

PROVIDER_ORDER = (
    ProviderId.YOUTUBE,
    ProviderId.BOOKS,
    ProviderId.ARTICLES,
    ProviderId.TELEGRAM,
    ProviderId.PROMPTS,
)


def build_providers(
    settings: Settings, client: httpx.AsyncClient | None = None
) -> dict[ProviderId, ContentProvider]:
    """Instancie tous les fournisseurs à partir de la configuration."""
    timeout = settings.PROVIDER_TIMEOUT_S
    return {
        ProviderId.YOUTUBE: YouTubeProvider(settings.YOUTUBE_API_KEY, client=client, timeout_s=timeout),
        ProviderId.BOOKS: BooksProvider(client=client, timeout_s=timeout),
        ProviderId.ARTICLES: ArticlesProvider(client=client, timeout_s=timeout),
        ProviderId.TELEGRAM: TelegramProvider(),
        ProviderId.PROMPTS: PromptsProvider(),
    }


def get_providers(
    registry: dict[ProviderId, ContentProvider],
    provider_ids: Iterable[ProviderId | str] | None = None,
) -> list[ContentProvider]:
    """Fournisseurs demandés (identifiants inconnus ignorés), ou tous si aucun filtre."""
    if not provider_ids:
        return [registry[p] for p in PROVIDER_ORDER if p in registry]
    wanted: list[ProviderId] = []
    for raw in provider_ids:
        try:
            pid = ProviderId(raw)
        except ValueError:
            continue
        if pid in registry and pid not in wanted:
            wanted.append(pid)
    return [registry[p] for p in wanted]
