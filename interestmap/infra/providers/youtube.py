"""
Fournisseur vidéo: recherche YouTube Data API v3.

Une requête par intérêt (titre + deux synonymes): d'abord stricte (par date, langue et région),
puis large (pertinence) si la stricte ne renvoie rien. Sans aucun candidat, une requête globale
sur les titres d'intérêts puis sur un sujet générique est tentée.
"""

from __future__ import annotations

import math
from typing import Any

import httpx
import structlog

from interestmap.core.constants import HTTP_OK
from interestmap.domain.content_types import (
    ContentItem,
    ContentMeta,
    ContentType,
    Interest,
    ProviderFetchResult,
    ProviderId,
    ProviderRequest,
)
from interestmap.infra.providers.base import HttpProvider, clamp_limit, keyword_query, normalize_space

log = structlog.get_logger(__name__).bind(component="provider", provider="youtube")

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3/search"
DEFAULT_TOTAL_LIMIT = 20
PER_INTEREST_CANDIDATES = 20
MAX_TOTAL_CANDIDATES = 120
GLOBAL_FALLBACK_RESULTS = 25
GLOBAL_FALLBACK_QUERY = "обучение"
GLOBAL_FALLBACK_TITLES = 5
ERROR_BODY_PREVIEW = 200
_THUMB_ORDER = ("high", "standard", "medium", "maxres", "default")


class YouTubeProvider(HttpProvider):
    """Adaptateur YouTube (TTL 6 h)."""

    id = ProviderId.YOUTUBE
    ttl_seconds = 60 * 60 * 6

    def __init__(
        self,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 12.0,
        region_code: str = "RU",
    ) -> None:
        """Initialise avec la clé API (absente = erreur fournisseur à chaque appel)."""
        super().__init__(client=client, timeout_s=timeout_s)
        self.api_key = api_key
        self.region_code = region_code

    async def _search(self, query: str, limit: int, locale: str, strict: bool) -> tuple[list[dict], str | None]:
        params: dict[str, Any] = {
            "part": "snippet",
            "type": "video",
            "maxResults": str(limit),
            "q": query,
            "safeSearch": "moderate",
            "order": "date" if strict else "relevance",
            "key": self.api_key,
        }
        if strict:
            params.update(
                relevanceLanguage=locale,
                regionCode=self.region_code,
                videoEmbeddable="true",
            )
        try:
            resp = await self.client.get(
                YOUTUBE_API_URL, params=params, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as exc:
            return [], f"YouTube fetch error: {exc}"
        if resp.status_code != HTTP_OK:
            body = resp.text[:ERROR_BODY_PREVIEW] if resp.text else ""
            suffix = f" | {body}" if body else ""
            return [], f"YouTube request failed: {resp.status_code} {resp.reason_phrase}{suffix}"
        payload = resp.json()
        items = payload.get("items") if isinstance(payload, dict) else None
        return (items if isinstance(items, list) else []), None

    async def _search_with_loose_retry(
        self, query: str, limit: int, locale: str
    ) -> tuple[list[dict], str | None]:
        items, error = await self._search(query, limit, locale, strict=True)
        if error or items:
            return items, error
        return await self._search(query, limit, locale, strict=False)

    @staticmethod
    def _thumbnail(raw: dict) -> str | None:
        thumbs = (raw.get("snippet") or {}).get("thumbnails") or {}
        for name in _THUMB_ORDER:
            url = (thumbs.get(name) or {}).get("url")
            if url:
                return url
        return None

    def _normalize(self, raw: dict, interest: Interest, query: str) -> ContentItem | None:
        video_id = (raw.get("id") or {}).get("videoId")
        if not video_id:
            return None
        snippet = raw.get("snippet") or {}
        return ContentItem(
            id=self.item_id(video_id),
            provider=self.id,
            type=ContentType.VIDEO,
            title=snippet.get("title") or "Видео",
            description=snippet.get("description") or None,
            image=self._thumbnail(raw),
            url=f"https://www.youtube.com/watch?v={video_id}",
            interest_ids=[interest.id],
            why=f"Видео по интересу “{interest.title}”",
            meta=ContentMeta(
                channel_title=snippet.get("channelTitle"),
                published_at=snippet.get("publishedAt"),
                interest_title=interest.title,
                query=query,
                interest_id=interest.id,
            ),
        )

    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        """Collecte les vidéos candidates par intérêt, fusionnées par identifiant."""
        if not self.api_key:
            return ProviderFetchResult(error="YOUTUBE_API_KEY is not set")
        if not request.interest_ids:
            return ProviderFetchResult()
        interests = request.interests
        if not interests:
            return ProviderFetchResult(error="Failed to load interests")

        total_limit = clamp_limit(request.limit, DEFAULT_TOTAL_LIMIT, 1, DEFAULT_TOTAL_LIMIT)
        locale = request.locale or "ru"
        max_interests = max(1, math.ceil(MAX_TOTAL_CANDIDATES / PER_INTEREST_CANDIDATES))

        by_id: dict[str, ContentItem] = {}
        for interest in interests[:max_interests]:
            query = keyword_query(interest)
            raw_items, error = await self._search_with_loose_retry(
                query, PER_INTEREST_CANDIDATES, locale
            )
            if error:
                # une erreur est remontée telle quelle pour que le moteur ne mette pas le vide en cache
                log.warning("youtube_search_failed", query=query, error=error)
                return ProviderFetchResult(error=error)
            for raw in raw_items:
                item = self._normalize(raw, interest, query)
                if item is None:
                    continue
                existing = by_id.get(item.id)
                if existing is not None:
                    merged = list(dict.fromkeys([*existing.interest_ids, *item.interest_ids]))
                    by_id[item.id] = existing.model_copy(update={"interest_ids": merged})
                    continue
                by_id[item.id] = item
                if len(by_id) >= MAX_TOTAL_CANDIDATES:
                    break
            if len(by_id) >= MAX_TOTAL_CANDIDATES:
                break

        candidates = list(by_id.values())
        if not candidates:
            return await self._global_fallback(interests, total_limit, locale)

        ranked = [
            c.model_copy(update={"score": 1 - idx * 0.001})
            for idx, c in enumerate(candidates[:total_limit])
        ]
        log.info("youtube_fetched", candidates=len(candidates), returned=len(ranked))
        return ProviderFetchResult(items=ranked)

    async def _global_fallback(
        self, interests: list[Interest], total_limit: int, locale: str
    ) -> ProviderFetchResult:
        titles = [i.title for i in interests[:GLOBAL_FALLBACK_TITLES] if i.title]
        primary_query = normalize_space(" ".join(titles)) or GLOBAL_FALLBACK_QUERY
        raw_items, error = await self._search_with_loose_retry(
            primary_query, GLOBAL_FALLBACK_RESULTS, locale
        )
        if error:
            return ProviderFetchResult(error=error)
        used_query = primary_query
        if not raw_items and primary_query != GLOBAL_FALLBACK_QUERY:
            raw_items, error = await self._search_with_loose_retry(
                GLOBAL_FALLBACK_QUERY, GLOBAL_FALLBACK_RESULTS, locale
            )
            if error:
                return ProviderFetchResult(error=error)
            used_query = GLOBAL_FALLBACK_QUERY

        first = interests[0]
        normalized = [self._normalize(raw, first, used_query) for raw in raw_items]
        items = [
            item.model_copy(
                update={
                    "score": 1 - idx * 0.001,
                    "why": "Fallback YouTube: общий подбор по интересам",
                }
            )
            for idx, item in enumerate(i for i in normalized if i is not None)
            if idx < total_limit
        ]
        log.info("youtube_global_fallback", query=used_query, returned=len(items))
        return ProviderFetchResult(items=items)
