"""
Rerank de pertinence par LLM avec repli heuristique par lot.

Les candidats sont envoyés par lots de 10. Une réponse invalide ou un appel en échec bascule
uniquement le lot concerné sur l'heuristique; sans LLM configuré, tout est heuristique.
"""

from __future__ import annotations

import json
import re

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from interestmap.app.metrics import CONTENT_RERANK_BATCHES
from interestmap.core.constants import RERANK_BATCH_SIZE, RERANK_MAX_TOKENS, RERANK_TEMPERATURE
from interestmap.core.errors import RerankParseError
from interestmap.domain.content_types import RerankCandidate, RerankResult
from interestmap.domain.engine_debug import LLMDebug
from interestmap.domain.scoring import heuristic_rerank
from interestmap.infra.llm.base import LLM

log = structlog.get_logger(__name__).bind(component="reranker")

SYSTEM_PROMPT = "Ты отвечаешь ТОЛЬКО JSON-массивом без комментариев и без markdown."
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class _Verdict(BaseModel):
    id: str
    score: float = Field(ge=0.0, le=1.0)
    is_ad: bool | None = False
    is_offtopic: bool | None = False
    reason: str | None = None


_VERDICTS = TypeAdapter(list[_Verdict])


def build_prompt(interest_titles: list[str], candidates: list[RerankCandidate]) -> str:
    """Prompt utilisateur: consignes, intérêts puis liste des candidats."""
    interests = "; ".join(interest_titles) if interest_titles else "пользовательские интересы не заданы"
    lines = [
        "Ты — ранкер контента. Твоя задача: оценить релевантность кандидатов интересам пользователя.",
        "Верни строгий JSON-массив без текста. Формат элемента: "
        "{id, score (0..1), is_ad (bool), is_offtopic (bool), reason (string)}.",
        "Правила:",
        "- Ставь is_ad=true если это реклама, приглашения, скидки, митапы, вебинары, вакансии.",
        "- Ставь is_offtopic=true если не связано по смыслу с интересами.",
        "- score выше для точного попадания в интересы; штрафуй за оффтоп и рекламу.",
        "- Не придумывай id — используй те, что в списке.",
        f"Интересы: {interests}",
        "Кандидаты:",
    ]
    for c in candidates:
        lines.append(
            f"- id: {c.id}\n  title: {c.title}\n  description: {c.description or ''}\n"
            f"  provider: {c.provider}\n  type: {c.type}\n  channel: {c.channel_title or ''}\n"
            f"  url: {c.url or ''}"
        )
    return "\n".join(lines)


def parse_verdicts(raw: str) -> list[RerankResult]:
    """Retire les balises de code, parse le JSON et valide chaque verdict.

    Raises:
        RerankParseError: JSON illisible ou schéma invalide.
    """
    text = _FENCE_RE.sub("", raw.strip()).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise RerankParseError(f"invalid JSON: {err}") from err
    if isinstance(data, dict):
        # enveloppe {"results": [...]} tolérée
        data = next((v for v in data.values() if isinstance(v, list)), data)
    try:
        verdicts = _VERDICTS.validate_python(data)
    except ValidationError as err:
        raise RerankParseError(f"invalid schema: {err.error_count()} errors") from err
    return [
        RerankResult(
            id=v.id,
            score=v.score,
            is_ad=bool(v.is_ad),
            is_offtopic=bool(v.is_offtopic),
            reason=v.reason,
        )
        for v in verdicts
    ]


class Reranker:
    """Applique le LLM (si disponible) lot par lot."""

    def __init__(self, llm: LLM | None = None, batch_size: int = RERANK_BATCH_SIZE) -> None:
        """Initialise avec un LLM optionnel."""
        self.llm = llm
        self.batch_size = batch_size

    async def _rerank_batch(
        self, interest_titles: list[str], batch: list[RerankCandidate]
    ) -> list[RerankResult]:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_prompt(interest_titles, batch)},
        ]
        raw = await self.llm.generate(
            messages, temperature=RERANK_TEMPERATURE, max_tokens=RERANK_MAX_TOKENS
        )
        verdicts = parse_verdicts(raw)
        known = {c.id for c in batch}
        by_id: dict[str, RerankResult] = {}
        for v in verdicts:
            if v.id in known and v.id not in by_id:
                by_id[v.id] = v
        # les candidats oubliés par le LLM reçoivent le score heuristique
        return [by_id.get(c.id) or heuristic_rerank(c, interest_titles) for c in batch]

    async def rerank(
        self, interest_titles: list[str], candidates: list[RerankCandidate]
    ) -> tuple[list[RerankResult], LLMDebug]:
        """Retourne un verdict par candidat et la trace (mode, lots, lots en échec)."""
        if self.llm is None:
            results = [heuristic_rerank(c, interest_titles) for c in candidates]
            return results, LLMDebug(mode="heuristic", error="LLM key missing, used heuristic rerank")

        debug = LLMDebug(mode="llm", used_model=self.llm.model)
        results: list[RerankResult] = []
        for start in range(0, len(candidates), self.batch_size):
            batch = candidates[start : start + self.batch_size]
            debug.batches += 1
            try:
                results.extend(await self._rerank_batch(interest_titles, batch))
                CONTENT_RERANK_BATCHES.labels(result="llm").inc()
            except Exception as err:
                debug.failed_batches += 1
                debug.error = str(err)
                CONTENT_RERANK_BATCHES.labels(result="fallback").inc()
                log.warning("rerank_batch_fallback", batch=debug.batches, error=str(err))
                results.extend(heuristic_rerank(c, interest_titles) for c in batch)
        if debug.failed_batches:
            debug.mode = "mixed"
        return results, debug
