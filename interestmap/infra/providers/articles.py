"""
Fournisseur d'articles: flux RSS de recherche Habr.

Le flux est téléchargé via httpx puis analysé avec feedparser. La clé de cache ne dépend que de
la requête dérivée (mots-clés de l'intérêt principal), de la limite et de la langue.
"""

from __future__ import annotations

import calendar
import re
from datetime import UTC, datetime, timedelta
from typing import Any

import feedparser
import httpx
import structlog

from interestmap.core.constants import CACHE_KEY_VERSION, HTTP_OK
from interestmap.domain.content_types import (
    ContentItem,
    ContentMeta,
    ContentType,
    Interest,
    ProviderFetchResult,
    ProviderId,
    ProviderRequest,
)
from interestmap.domain.scoring import parse_published_at
from interestmap.infra.providers.base import (
    HttpProvider,
    clamp_limit,
    keyword_query,
    normalize_space,
    truncate,
)

log = structlog.get_logger(__name__).bind(component="provider", provider="articles")

RSS_SEARCH_URL = "https://habr.com/ru/rss/search/"
DEFAULT_LIMIT = 20
MIN_LIMIT = 5
MAX_LIMIT = 40
DESCRIPTION_MAX_LENGTH = 220
_TAG_RE = re.compile(r"<[^>]+>")
_IMG_RE = re.compile(r"""<img[^>]*src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)


def strip_html(html: str | None) -> str:
    """
    Retire les balises d'un résumé RSS, puis compacte les espaces.

    Le résumé est déjà assaini par feedparser (scripts et styles supprimés); seules les balises
    restantes sont retirées ici.
    """
    if not html:
        return ""
    return normalize_space(_TAG_RE.sub(" ", html))


def extract_image(html: str | None) -> str | None:
    """Première image du résumé HTML (URL protocole-relative complétée en https)."""
    if not html:
        return None
    match = _IMG_RE.search(html)
    if not match:
        return None
    src = match.group(1).strip()
    if not src:
        return None
    return f"https:{src}" if src.startswith("//") else src


class ArticlesProvider(HttpProvider):
    """Adaptateur Habr RSS (TTL 12 h)."""

    id = ProviderId.ARTICLES
    ttl_seconds = 60 * 60 * 12

    @staticmethod
    def _query(request: ProviderRequest) -> str:
        primary = request.interests[0] if request.interests else None
        return keyword_query(primary)

    def get_hash_input(self, request: ProviderRequest) -> dict[str, Any] | None:
        """Hash sur la requête dérivée plutôt que sur la liste brute des intérêts."""
        return {
            "v": CACHE_KEY_VERSION,
            "provider": self.id.value,
            "interest_ids": request.interest_ids,
            "query": self._query(request),
            "limit": clamp_limit(request.limit, DEFAULT_LIMIT, MIN_LIMIT, MAX_LIMIT),
            "locale": request.locale or "ru",
        }

    async def _fetch_feed(self, query: str, locale: str) -> tuple[list[Any], str | None]:
        params = {"q": query, "target_type": "posts", "order": "relevance"}
        headers = {
            "Accept": "application/rss+xml, application/xml;q=0.9, */*;q=0.8",
            "User-Agent": "InterestMap/1.0",
            "Accept-Language": locale,
        }
        try:
            resp = await self.client.get(RSS_SEARCH_URL, params=params, headers=headers)
        except httpx.HTTPError as exc:
            return [], str(exc) or "Unknown fetch error"
        if resp.status_code != HTTP_OK:
            return [], f"{resp.status_code} {resp.reason_phrase}".strip()
        feed = feedparser.parse(resp.text)
        if feed.bozo and not feed.entries:
            return [], f"RSS parse failed: {feed.get('bozo_exception')}"
        return list(feed.entries), None

    @staticmethod
    def _published(entry) -> str | None:
        parsed = entry.get("published_parsed")
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=UTC).isoformat()
        return entry.get("published") or None

    def _normalize(
        self,
        entry,
        interest_ids: list[str],
        primary: Interest | None,
        query: str,
        locale: str,
    ) -> ContentItem | None:
        link = (entry.get("link") or "").strip()
        native_id = (entry.get("id") or "").strip() or link
        if not link or not native_id:
            return None
        summary_html = entry.get("summary")
        clean = strip_html(summary_html)
        image = extract_image(summary_html)
        published = self._published(entry)

        score = 1.0
        if image:
            score += 0.2
        published_dt = parse_published_at(published)
        if published_dt is not None:
            age = datetime.now(UTC) - published_dt
            if age <= timedelta(days=365 * 2):
                score += 0.25
            elif age <= timedelta(days=365 * 5):
                score += 0.1

        title = primary.title if primary else query
        return ContentItem(
            id=self.item_id(native_id),
            provider=self.id,
            type=ContentType.ARTICLE,
            title=(entry.get("title") or "").strip() or "Статья",
            description=truncate(clean, DESCRIPTION_MAX_LENGTH) if clean else None,
            url=link,
            image=image,
            interest_ids=list(interest_ids),
            why=f"Статья по интересу “{title}” / ключевым словам “{query or title}”",
            score=score,
            meta=ContentMeta(
                source="Habr RSS",
                published_at=published,
                query=query,
                locale=locale,
            ),
        )

    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        """Télécharge et normalise les articles de l'intérêt principal."""
        if not request.interest_ids:
            return ProviderFetchResult()
        if not request.interests:
            return ProviderFetchResult(error="Failed to load interests")
        query = self._query(request)
        if not query:
            return ProviderFetchResult(error="No query keywords available for articles search")

        limit = clamp_limit(request.limit, DEFAULT_LIMIT, MIN_LIMIT, MAX_LIMIT)
        locale = request.locale or "ru"
        entries, error = await self._fetch_feed(query, locale)
        if error:
            log.warning("articles_fetch_failed", query=query, error=error)
            return ProviderFetchResult(error=error)

        primary = request.interests[0]
        items: list[ContentItem] = []
        for entry in entries:
            item = self._normalize(entry, request.interest_ids, primary, query, locale)
            if item is None:
                continue
            items.append(item)
            if len(items) >= limit:
                break
        log.info("articles_fetched", count=len(items), query=query)
        return ProviderFetchResult(items=items)
