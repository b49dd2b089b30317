"""
Heuristiques de scoring du moteur de contenu.

Ce module regroupe la détection publicitaire par mots-clés, le score de rerank heuristique et le
calcul du score final (rerank pondéré + fraîcheur + bonus fournisseur).
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from interestmap.core.constants import (
    AD_PATTERNS,
    BLACKLIST_DOMAINS,
    DEFAULT_PROVIDER_HINT,
    HEURISTIC_AD_PENALTY,
    HEURISTIC_BASE_SCORE,
    HEURISTIC_ONTOPIC_BONUS,
    PROVIDER_HINTS,
    RECENCY_MAX_BOOST,
    RECENCY_WINDOW_DAYS,
    RERANK_WEIGHT,
)
from interestmap.domain.content_types import RerankCandidate, RerankResult

_SECONDS_PER_DAY = 86400.0


def looks_like_ad(title: str, description: str | None = None, url: str | None = None) -> bool:
    """Détecte une annonce (webinaire, promo, invitation...) par mots-clés ou domaine."""
    combined = f"{title} {description or ''}".lower()
    if any(pattern in combined for pattern in AD_PATTERNS):
        return True
    haystack = f"{combined} {(url or '').lower()}"
    return any(domain in haystack for domain in BLACKLIST_DOMAINS)


def is_offtopic(text: str, interest_titles: list[str]) -> bool:
    """Hors-sujet si aucun titre d'intérêt n'apparaît dans le texte (sans casse)."""
    titles = [t.strip().lower() for t in interest_titles if t and t.strip()]
    if not titles:
        return False
    lowered = text.lower()
    return not any(t in lowered for t in titles)


def heuristic_rerank(candidate: RerankCandidate, interest_titles: list[str]) -> RerankResult:
    """Score de repli: base 0.4, +0.3 si dans le sujet, -0.2 si publicitaire, borné à [0, 1]."""
    combined = f"{candidate.title} {candidate.description or ''}"
    ad = looks_like_ad(candidate.title, candidate.description, candidate.url)
    offtopic = is_offtopic(combined, interest_titles)
    score = HEURISTIC_BASE_SCORE
    if not offtopic:
        score += HEURISTIC_ONTOPIC_BONUS
    if ad:
        score -= HEURISTIC_AD_PENALTY
    return RerankResult(
        id=candidate.id,
        score=max(0.0, min(1.0, score)),
        is_ad=ad,
        is_offtopic=offtopic,
        reason=None,
    )


def parse_published_at(value: str | None) -> datetime | None:
    """Parse une date ISO 8601 ou RFC 2822 (flux RSS); None si illisible."""
    if not value:
        return None
    raw = value.strip()
    parsed: datetime | None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(raw)
        except (TypeError, ValueError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def recency_boost(published_at: str | None, now: datetime | None = None) -> float:
    """Bonus de fraîcheur: 0.2 le jour même, décroissance linéaire jusqu'à 0 à 90 jours.

    Une date future compte comme publiée maintenant.
    """
    published = parse_published_at(published_at)
    if published is None:
        return 0.0
    current = now or datetime.now(UTC)
    age_days = max(0.0, (current - published).total_seconds() / _SECONDS_PER_DAY)
    return max(0.0, RECENCY_MAX_BOOST * (1 - min(1.0, age_days / RECENCY_WINDOW_DAYS)))


def provider_hint(provider: str) -> float:
    """Petit bonus fixe par fournisseur."""
    return PROVIDER_HINTS.get(provider, DEFAULT_PROVIDER_HINT)


def final_score(
    rerank_score: float,
    provider: str,
    published_at: str | None,
    now: datetime | None = None,
) -> float:
    """Score final = 0.7 * rerank + fraîcheur + bonus fournisseur."""
    return rerank_score * RERANK_WEIGHT + recency_boost(published_at, now) + provider_hint(provider)
