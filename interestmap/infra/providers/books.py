"""
Fournisseur de livres: recherche Open Library.

Recherche sur les mots-clés de l'intérêt principal, un seul nouvel essai sur HTTP 429, puis une
requête de repli sur le seul titre si rien n'est trouvé.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import structlog

from interestmap.core.constants import HTTP_OK, HTTP_TOO_MANY_REQUESTS
from interestmap.domain.content_types import (
    ContentItem,
    ContentMeta,
    ContentType,
    Interest,
    ProviderFetchResult,
    ProviderId,
    ProviderRequest,
)
from interestmap.infra.providers.base import HttpProvider, clamp_limit, keyword_query

log = structlog.get_logger(__name__).bind(component="provider", provider="books")

OPEN_LIBRARY_SEARCH_URL = "https://openlibrary.org/search.json"
COVER_URL = "https://covers.openlibrary.org/b/id/{cover_id}-M.jpg"
DEFAULT_LIMIT = 20
MAX_LIMIT = 40
FALLBACK_LIMIT = 10
RECENT_YEARS = 6
MODERN_YEAR = 2010
USER_AGENT = "InterestMap/1.0 (content-engine)"


class BooksProvider(HttpProvider):
    """Adaptateur Open Library (TTL 24 h)."""

    id = ProviderId.BOOKS
    ttl_seconds = 60 * 60 * 24

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 12.0,
        retry_delay_s: float = 0.5,
    ) -> None:
        """Initialise l'adaptateur; `retry_delay_s` est l'attente avant le nouvel essai sur 429."""
        super().__init__(client=client, timeout_s=timeout_s)
        self.retry_delay_s = retry_delay_s

    async def _search(self, query: str, limit: int, locale: str) -> tuple[list[dict], str | None]:
        params = {"q": query, "limit": str(limit), "mode": "everything"}
        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            "Accept-Language": locale,
        }
        for attempt in range(2):
            try:
                resp = await self.client.get(OPEN_LIBRARY_SEARCH_URL, params=params, headers=headers)
            except httpx.HTTPError as exc:
                return [], str(exc) or "Unknown fetch error"
            if resp.status_code == HTTP_TOO_MANY_REQUESTS and attempt == 0:
                log.warning("openlibrary_rate_limited", query=query)
                await asyncio.sleep(self.retry_delay_s)
                continue
            if resp.status_code != HTTP_OK:
                return [], f"{resp.status_code} {resp.reason_phrase}".strip()
            payload = resp.json()
            docs = payload.get("docs") if isinstance(payload, dict) else None
            return (docs if isinstance(docs, list) else []), None
        return [], f"{HTTP_TOO_MANY_REQUESTS} Too Many Requests"

    @staticmethod
    def _description(doc: dict) -> str | None:
        subtitle = doc.get("subtitle")
        if isinstance(subtitle, str) and subtitle.strip():
            return subtitle.strip()
        sentence = doc.get("first_sentence")
        if isinstance(sentence, list):
            sentence = next((s for s in sentence if isinstance(s, str) and s.strip()), None)
        if isinstance(sentence, str) and sentence.strip():
            return sentence.strip()
        return None

    @staticmethod
    def _first_str(values) -> str | None:
        if not isinstance(values, list):
            return None
        return next((v for v in values if isinstance(v, str) and v.strip()), None)

    def _normalize(
        self, doc: dict, interests: list[Interest], query: str, locale: str
    ) -> ContentItem | None:
        key = doc.get("key")
        if not key:
            return None
        title = (doc.get("title") or "").strip() or "Книга"
        authors = [a for a in doc.get("author_name") or [] if isinstance(a, str) and a.strip()]
        publish_years = doc.get("publish_year") or []
        year = doc.get("first_publish_year") or (publish_years[0] if publish_years else None)
        cover = doc.get("cover_i")
        image = COVER_URL.format(cover_id=cover) if cover else None
        primary = interests[0] if interests else None

        score = 1.0
        if image:
            score += 0.2
        if year and year >= datetime.now(UTC).year - RECENT_YEARS:
            score += 0.2
        elif year and year >= MODERN_YEAR:
            score += 0.1
        if primary and primary.title.lower() in title.lower():
            score += 0.1

        why = (
            f"По интересу “{primary.title}” / ключевым словам “{query}”"
            if primary
            else f"Подборка по ключевым словам “{query}”"
        )
        return ContentItem(
            id=self.item_id(key),
            provider=self.id,
            type=ContentType.BOOK,
            title=title,
            description=self._description(doc),
            image=image,
            url=f"https://openlibrary.org{key}",
            interest_ids=[i.id for i in interests],
            why=why,
            score=score,
            meta=ContentMeta(
                authors=authors,
                language=self._first_str(doc.get("language")),
                source="Open Library",
                query=query,
                published_year=year,
                pages=doc.get("number_of_pages_median"),
                isbn=self._first_str(doc.get("isbn")),
                locale=locale,
            ),
        )

    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        """Recherche les livres de l'intérêt principal."""
        if not request.interest_ids:
            return ProviderFetchResult()
        interests = request.interests
        if not interests:
            return ProviderFetchResult(error="Failed to load interests")

        limit = clamp_limit(request.limit, DEFAULT_LIMIT, 1, MAX_LIMIT)
        locale = request.locale or "ru"
        primary = interests[0]
        query = keyword_query(primary)
        if not query:
            return ProviderFetchResult(error="No query keywords available for books search")

        docs, error = await self._search(query, limit, locale)
        effective_query = query
        if not docs and primary.title:
            fallback_docs, fallback_error = await self._search(
                primary.title, min(limit, FALLBACK_LIMIT), locale
            )
            if fallback_docs:
                docs, error, effective_query = fallback_docs, fallback_error, primary.title
            else:
                error = fallback_error or error

        items: list[ContentItem] = []
        for doc in docs:
            item = self._normalize(doc, interests, effective_query, locale)
            if item is None:
                continue
            items.append(item)
            if len(items) >= limit:
                break
        log.info("books_fetched", count=len(items), error=error)
        return ProviderFetchResult(items=items, error=error)
