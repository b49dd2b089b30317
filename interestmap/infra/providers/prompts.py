"""Fournisseur de modèles de prompts (catalogue statique, TTL 30 jours)."""

from __future__ import annotations

import structlog

from interestmap.domain.content_types import (
    ContentItem,
    ContentMeta,
    ContentType,
    ProviderFetchResult,
    ProviderId,
    ProviderRequest,
)
from interestmap.infra.providers.base import ContentProvider, clamp_limit, norm
from interestmap.infra.providers.prompt_templates import (
    PROMPT_TEMPLATES,
    PromptContext,
    PromptTemplate,
)

log = structlog.get_logger(__name__).bind(component="provider", provider="prompts")

DEFAULT_LIMIT = 12
MIN_LIMIT = 5
MAX_LIMIT = 20
BASE_SCORE = 1.0
CLUSTER_BONUS = 0.2
INTEREST_BONUS = 0.4


class PromptsProvider(ContentProvider):
    """Propose les modèles de prompts ciblant les intérêts (ou non ciblés)."""

    id = ProviderId.PROMPTS
    ttl_seconds = 60 * 60 * 24 * 30

    def __init__(self, templates: list[PromptTemplate] | None = None) -> None:
        """Initialise avec un catalogue explicite ou celui par défaut."""
        self.templates = templates if templates is not None else PROMPT_TEMPLATES

    @staticmethod
    def _matches(template: PromptTemplate, titles: set[str], clusters: set[str]) -> tuple[bool, bool]:
        by_interest = any(norm(t) in titles for t in template.interest_titles)
        by_cluster = bool(clusters) and any(norm(c) in clusters for c in template.clusters)
        return by_interest, by_cluster

    async def fetch(self, request: ProviderRequest) -> ProviderFetchResult:
        """Rend les modèles sélectionnés pour l'intérêt principal."""
        if not request.interest_ids:
            return ProviderFetchResult()
        interests = request.interests
        if not interests:
            return ProviderFetchResult(error="No interests available for prompts")

        titles = {norm(i.title) for i in interests if norm(i.title)}
        clusters = {norm(i.cluster) for i in interests if norm(i.cluster)}
        primary = interests[0]
        ctx = PromptContext(mode=request.mode, interests=interests, primary=primary)

        selected: list[tuple[PromptTemplate, bool, bool]] = []
        seen: set[str] = set()
        for template in self.templates:
            by_interest, by_cluster = self._matches(template, titles, clusters)
            targeted = bool(template.interest_titles or template.clusters)
            if targeted and not (by_interest or by_cluster):
                continue
            if template.id in seen:
                continue
            seen.add(template.id)
            selected.append((template, by_interest, by_cluster))

        limit = clamp_limit(request.limit, DEFAULT_LIMIT, MIN_LIMIT, MAX_LIMIT)
        items: list[ContentItem] = []
        for template, by_interest, by_cluster in selected[:limit]:
            score = BASE_SCORE
            if by_cluster:
                score += CLUSTER_BONUS
            if by_interest:
                score += INTEREST_BONUS
            items.append(
                ContentItem(
                    id=self.item_id(f"{template.id}:{primary.id}"),
                    provider=self.id,
                    type=ContentType.PROMPT,
                    title=template.title,
                    description=template.description,
                    interest_ids=[i.id for i in interests],
                    why=f"Шаблон под интерес “{primary.title}”",
                    score=score,
                    meta=ContentMeta(
                        prompt_text=template.build(ctx),
                        interest_title=primary.title,
                        tags=list(template.tags),
                        mode=request.mode,
                        interests=[i.title for i in interests],
                    ),
                )
            )
        log.info("prompts_selected", count=len(items))
        return ProviderFetchResult(items=items)
