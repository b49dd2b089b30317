"""Construction de l'explication courte ("why") affichée avec chaque recommandation."""

from __future__ import annotations

import re

from interestmap.core.constants import WHY_MAX_LENGTH
from interestmap.domain.content_types import ContentItem, ProviderId

_EMOJI_RE = re.compile(
    "["
    "\U0001f000-\U0001faff"
    "\U00002600-\U000027bf"
    "\U00002b00-\U00002bff"
    "\U0001f1e6-\U0001f1ff"
    "\ufe0f\u200d"
    "]+"
)
_SPACES_RE = re.compile(r"\s+")


def _truncate(value: str, max_length: int = WHY_MAX_LENGTH) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[: max(0, max_length - 1)].rstrip()}…"


def sanitize_why(value: str) -> str:
    """Retire les emojis, compacte les espaces et tronque à 120 caractères."""
    cleaned = _SPACES_RE.sub(" ", _EMOJI_RE.sub("", value)).strip()
    return _truncate(cleaned)


def _interest_title(item: ContentItem) -> str | None:
    if item.interest_titles:
        return item.interest_titles[0]
    if item.meta.interest_title:
        return item.meta.interest_title
    return item.interest_ids[0] if item.interest_ids else None


def build_why(item: ContentItem) -> str:
    """Explication de l'élément: la sienne si présente, sinon un texte selon ses intérêts."""
    if item.why and item.why.strip():
        return sanitize_why(item.why)
    if len(item.interest_ids) == 1:
        title = _interest_title(item)
        if title:
            return sanitize_why(f"Рекомендовано по интересу «{title}»")
    if len(item.interest_ids) > 1:
        return sanitize_why("Рекомендовано по вашим интересам")
    if item.provider == ProviderId.PROMPTS:
        return sanitize_why("Шаблон для работы с вашими интересами")
    return sanitize_why("Рекомендация по вашим интересам")
