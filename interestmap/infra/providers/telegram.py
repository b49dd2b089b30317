"""
Fournisseur de chaînes Telegram: catalogue statique de chaînes sélectionnées.

Une chaîne correspond à un intérêt par slug, titre ou synonyme (+1), ou à défaut par cluster
(+0.4); un bonus de priorité (priority * 0.1) départage les chaînes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from interestmap.domain.content_types import (
    ContentItem,
    ContentMeta,
    ContentType,
    Interest,
    ProviderFetchResult,
    ProviderId,
    ProviderRequest,
)
from interestmap.infra.providers.base import ContentProvider, clamp_limit, norm, truncate

log = structlog.get_logger(__name__).bind(component="provider", provider="telegram")

CATALOG_PATH = Path(__file__).parent / "catalog" / "telegram_channels.json"
DEFAULT_LIMIT = 20
MIN_LIMIT = 5
MAX_LIMIT = 40
DESCRIPTION_MAX_LENGTH = 220
DIRECT_MATCH_SCORE = 1.0
CLUSTER_MATCH_SCORE = 0.4
PRIORITY_WEIGHT = 0.1


@dataclass
class TelegramChannel:
    """Entrée du catalogue de chaînes."""

    handle: str
    title: str
    url: str
    description: str | None = None
    image: str | None = None
    language: str | None = None
    interest_slugs: list[str] = field(default_factory=list)
    interest_titles: list[str] = field(default_factory=list)
    clusters: list[str] = field(default_factory=list)
    priority: int = 1


def load_channels(path: Path = CATALOG_PATH) -> list[TelegramChannel]:
    """Charge le catalogue JSON."""
    with open(path, encoding="utf-8") as fh:
        return [TelegramChannel(**raw) for raw in json.load(fh)]


class TelegramProvider(ContentProvider):
    """Adaptateur catalogue Telegram (TTL 7 jours)."""

    id = ProviderId.TELEGRAM
    ttl_seconds = 60 * 60 * 24 * 7

    def __init__(self, channels: list[TelegramChannel] | None = None) -> None:
        """Initialise avec un catalogue explicite ou celui embarqué."""
        self.channels = channels if channels is not None else load_channels()

    @staticmethod
    def _direct_match(channel: TelegramChannel, interest: Interest) -> bool:
        slugs = {norm(s) for s in channel.interest_slugs}
        titles = {norm(t) for t in channel.interest_titles}
        if interest.slug and norm(interest.slug) in slugs:
            return True
        if norm(interest.title) in titles:
            return True
        return any(norm(s) in titles for s in interest.synonyms)

    def _score(self, channel: TelegramChannel, interests: list[Interest]) -> tuple[float, list[Interest], bool]:
        clusters = {norm(c) for c in channel.clusters}
        score = 0.0
        matched: list[Interest] = []
        direct_any = False
        for interest in interests:
            if self._direct_match(channel, interest):
                score += DIRECT_MATCH_SCORE
                matched.append(interest)
                direct_any = True
            elif interest.cluster and norm(interest.cluster) in clusters:
                score += CLUSTER_MATCH_SCORE
                matched.append(interest)
        score += channel.priority * PRIORITY_WEIGHT
        return score, matched, direct_any

    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        """Sélectionne les chaînes correspondant aux intérêts."""
        if not request.interest_ids:
            return ProviderFetchResult()
        interests = request.interests
        if not interests:
            return ProviderFetchResult(error="No interests to match")

        limit = clamp_limit(request.limit, DEFAULT_LIMIT, MIN_LIMIT, MAX_LIMIT)
        scored = []
        for channel in self.channels:
            score, matched, direct = self._score(channel, interests)
            if matched:
                scored.append((score, channel, matched, direct))
        scored.sort(key=lambda e: (-e[0], -e[1].priority, e[1].title.lower()))

        items: list[ContentItem] = []
        for _score, channel, matched, direct in scored[:limit]:
            first = matched[0]
            if direct:
                why = f"Канал по интересу “{first.title}”"
            elif first.cluster:
                why = f"Канал по кластеру “{first.cluster}”"
            else:
                why = None
            items.append(
                ContentItem(
                    id=self.item_id(channel.handle),
                    provider=self.id,
                    type=ContentType.CHANNEL,
                    title=channel.title,
                    url=channel.url,
                    image=channel.image,
                    description=truncate(channel.description, DESCRIPTION_MAX_LENGTH),
                    interest_ids=[i.id for i in matched],
                    why=why,
                    score=channel.priority * PRIORITY_WEIGHT
                    + (DIRECT_MATCH_SCORE if direct else CLUSTER_MATCH_SCORE),
                    meta=ContentMeta(
                        handle=channel.handle,
                        language=channel.language,
                        channel_title=channel.title,
                        clusters=list(channel.clusters),
                    ),
                )
            )
        log.info("telegram_matched", count=len(items))
        return ProviderFetchResult(items=items)
