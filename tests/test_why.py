"""
Tests pour la construction des explications "why".
"""

from interestmap.domain.content_types import ProviderId
from interestmap.domain.why import build_why, sanitize_why
from tests.fakes import make_item

WHY_MAX_LENGTH = 120


def test_sanitize_strips_emoji_and_spaces() -> None:
    """Emojis retirés, espaces compactés."""
    assert sanitize_why("🔥  Отличное   видео 👍") == "Отличное видео"


def test_sanitize_truncates() -> None:
    """Longueur maximale de 120 caractères, ellipse finale."""
    value = sanitize_why("a" * 300)
    assert len(value) == WHY_MAX_LENGTH
    assert value.endswith("…")


def test_existing_why_is_sanitized() -> None:
    """Une explication existante est conservée après nettoyage."""
    item = make_item(ProviderId.BOOKS, "b1", why="  Книга\n по теме ✨ ")
    assert build_why(item) == "Книга по теме"


def test_single_interest_title() -> None:
    """Un seul intérêt: explication nominative."""
    item = make_item(ProviderId.BOOKS, "b1", interest_ids=["i-python"])
    item = item.model_copy(update={"interest_titles": ["Python"]})
    assert build_why(item) == "Рекомендовано по интересу «Python»"


def test_several_interests_generic() -> None:
    """Plusieurs intérêts: texte générique."""
    item = make_item(ProviderId.BOOKS, "b1", interest_ids=["a", "b"])
    assert build_why(item) == "Рекомендовано по вашим интересам"


def test_prompt_without_interest() -> None:
    """Un prompt sans intérêt reçoit un texte dédié."""
    item = make_item(ProviderId.PROMPTS, "learn:path:all")
    assert build_why(item) == "Шаблон для работы с вашими интересами"
