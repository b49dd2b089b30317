"""
Tests pour les heuristiques de scoring (publicité, hors-sujet, fraîcheur, bonus fournisseur).
"""

from datetime import UTC, datetime, timedelta

import pytest

from interestmap.domain.content_types import RerankCandidate
from interestmap.domain.scoring import (
    final_score,
    heuristic_rerank,
    looks_like_ad,
    parse_published_at,
    provider_hint,
    recency_boost,
)

NOW = datetime(2025, 6, 1, tzinfo=UTC)
BASE = 0.4
ON_TOPIC = 0.7
ON_TOPIC_AD = 0.5
MAX_RECENCY = 0.2


def _candidate(title: str, description: str = "", url: str | None = None) -> RerankCandidate:
    return RerankCandidate(id="x:1", title=title, description=description, provider="articles", type="article", url=url)


def test_ad_patterns_case_insensitive() -> None:
    """Les motifs publicitaires sont détectés sans tenir compte de la casse."""
    assert looks_like_ad("Бесплатный ВЕБИНАР по Python")
    assert looks_like_ad("Курс", "Используйте промокод SALE")
    assert not looks_like_ad("Разбор асинхронности в Python")


def test_blacklisted_domain_in_url() -> None:
    """Un domaine de la liste noire dans l'URL signale une annonce."""
    assert looks_like_ad("Встреча", None, "https://www.eventbrite.com/e/123")


def test_heuristic_on_topic() -> None:
    """Base 0.4 + 0.3 quand un titre d'intérêt apparaît."""
    result = heuristic_rerank(_candidate("Python tips"), ["python"])
    assert result.score == pytest.approx(ON_TOPIC)
    assert not result.is_offtopic and not result.is_ad


def test_heuristic_offtopic() -> None:
    """Sans correspondance, le candidat est hors-sujet et garde la base."""
    result = heuristic_rerank(_candidate("Cooking pasta"), ["python"])
    assert result.is_offtopic
    assert result.score == pytest.approx(BASE)


def test_heuristic_ad_penalty() -> None:
    """Une annonce perd 0.2."""
    result = heuristic_rerank(_candidate("Python митап"), ["python"])
    assert result.is_ad
    assert result.score == pytest.approx(ON_TOPIC_AD)


def test_heuristic_without_interests_is_on_topic() -> None:
    """Sans intérêts, tout candidat est considéré dans le sujet."""
    assert not heuristic_rerank(_candidate("Anything"), []).is_offtopic


def test_recency_today_beats_old() -> None:
    """À score de rerank égal, un élément du jour passe devant un élément de 120 jours."""
    today = NOW.isoformat()
    old = (NOW - timedelta(days=120)).isoformat()
    assert final_score(0.5, "books", today, NOW) > final_score(0.5, "books", old, NOW)
    assert recency_boost(old, NOW) == 0.0
    assert recency_boost(today, NOW) == pytest.approx(MAX_RECENCY)


def test_recency_future_date_clamped() -> None:
    """Une date future compte comme publiée maintenant."""
    future = (NOW + timedelta(days=10)).isoformat()
    assert recency_boost(future, NOW) == pytest.approx(MAX_RECENCY)


def test_recency_missing_or_invalid() -> None:
    """Date absente ou illisible: aucun bonus."""
    assert recency_boost(None, NOW) == 0.0
    assert recency_boost("not a date", NOW) == 0.0


def test_parse_rfc2822() -> None:
    """Les dates RSS (RFC 2822) sont acceptées."""
    parsed = parse_published_at("Sun, 01 Jun 2025 10:00:00 GMT")
    assert parsed == datetime(2025, 6, 1, 10, 0, tzinfo=UTC)


def test_provider_hints() -> None:
    """Bonus par fournisseur."""
    assert provider_hint("youtube") == pytest.approx(0.05)
    assert provider_hint("telegram") == pytest.approx(0.05)
    assert provider_hint("articles") == pytest.approx(0.08)
    assert provider_hint("books") == pytest.approx(0.03)
    assert provider_hint("prompts") == pytest.approx(0.03)
