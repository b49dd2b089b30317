"""
Tests pour le rerank LLM par lots et son repli heuristique.
"""

import json

import pytest

from interestmap.core.errors import ExternalServiceError, RerankParseError
from interestmap.domain.content_types import RerankCandidate
from interestmap.services.reranker import Reranker, build_prompt, parse_verdicts
from tests.fakes import FakeLLM

CANDIDATE_COUNT = 25
BATCH_COUNT = 3
HEURISTIC_ON_TOPIC = 0.7


def _candidates(count: int) -> list[RerankCandidate]:
    return [
        RerankCandidate(id=f"books:{i}", title=f"Python book {i}", provider="books", type="book")
        for i in range(count)
    ]


def test_parse_strips_code_fences() -> None:
    """Les balises ```json sont ignorées."""
    raw = '```json\n[{"id": "a", "score": 0.9, "is_ad": false, "is_offtopic": false, "reason": "ok"}]\n```'
    verdicts = parse_verdicts(raw)
    assert verdicts[0].id == "a"
    assert verdicts[0].score == pytest.approx(0.9)


def test_parse_accepts_results_envelope() -> None:
    """Un objet {"results": [...]} est toléré."""
    verdicts = parse_verdicts(json.dumps({"results": [{"id": "a", "score": 0.5}]}))
    assert [v.id for v in verdicts] == ["a"]


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        '[{"id": "a"}]',
        '[{"id": "a", "score": 1.5}]',
        '{"id": "a", "score": 0.5}',
    ],
)
def test_parse_errors(raw: str) -> None:
    """JSON invalide, score manquant ou hors bornes: RerankParseError."""
    with pytest.raises(RerankParseError):
        parse_verdicts(raw)


def test_prompt_lists_candidates_and_interests() -> None:
    """Le prompt contient les intérêts et une entrée par candidat."""
    prompt = build_prompt(["Python", "Дизайн"], _candidates(2))
    assert "Интересы: Python; Дизайн" in prompt
    assert FakeLLM.prompt_ids([{"role": "user", "content": prompt}]) == ["books:0", "books:1"]


@pytest.mark.asyncio
async def test_without_llm_is_heuristic() -> None:
    """Sans LLM: tout est heuristique et la trace l'indique."""
    results, debug = await Reranker(None).rerank(["Python"], _candidates(3))
    assert debug.mode == "heuristic"
    assert debug.error == "LLM key missing, used heuristic rerank"
    assert all(r.score == pytest.approx(HEURISTIC_ON_TOPIC) for r in results)


@pytest.mark.asyncio
async def test_llm_mode_batches() -> None:
    """25 candidats, lots de 10: trois appels, mode llm."""
    llm = FakeLLM(default_score=0.9)
    results, debug = await Reranker(llm).rerank(["Python"], _candidates(CANDIDATE_COUNT))
    assert len(llm.calls) == BATCH_COUNT
    assert debug.mode == "llm"
    assert debug.batches == BATCH_COUNT
    assert debug.failed_batches == 0
    assert debug.used_model == "fake-llm"
    assert [r.id for r in results] == [c.id for c in _candidates(CANDIDATE_COUNT)]
    assert all(r.score == pytest.approx(0.9) for r in results)


@pytest.mark.asyncio
async def test_failed_batch_is_mixed() -> None:
    """Le deuxième lot échoue: ses candidats passent en heuristique, les autres non."""

    def handler(call: int, ids: list[str]):
        if call == 2:
            return ExternalServiceError("timeout")
        return json.dumps([{"id": i, "score": 0.95} for i in ids])

    results, debug = await Reranker(FakeLLM(handler=handler)).rerank(["Python"], _candidates(CANDIDATE_COUNT))
    assert debug.mode == "mixed"
    assert debug.batches == BATCH_COUNT
    assert debug.failed_batches == 1
    assert len(results) == CANDIDATE_COUNT
    assert all(r.score == pytest.approx(0.95) for r in results[:10])
    assert all(r.score == pytest.approx(HEURISTIC_ON_TOPIC) for r in results[10:20])
    assert all(r.score == pytest.approx(0.95) for r in results[20:])


@pytest.mark.asyncio
async def test_invalid_reply_falls_back_for_batch() -> None:
    """Une réponse illisible compte comme un lot en échec."""
    results, debug = await Reranker(FakeLLM(responses=["oops"])).rerank(["Python"], _candidates(2))
    assert debug.mode == "mixed"
    assert debug.failed_batches == 1
    assert debug.error
    assert len(results) == 2


@pytest.mark.asyncio
async def test_unknown_duplicate_and_omitted_ids() -> None:
    """Ids inconnus ignorés, premier doublon retenu, candidats oubliés en heuristique."""
    reply = json.dumps(
        [
            {"id": "books:0", "score": 0.9, "is_ad": True},
            {"id": "books:0", "score": 0.1},
            {"id": "ghost", "score": 1.0},
        ]
    )
    results, debug = await Reranker(FakeLLM(responses=[reply])).rerank(["Python"], _candidates(2))
    assert debug.mode == "llm"
    assert [r.id for r in results] == ["books:0", "books:1"]
    assert results[0].score == pytest.approx(0.9)
    assert results[0].is_ad
    assert results[1].score == pytest.approx(HEURISTIC_ON_TOPIC)


@pytest.mark.asyncio
async def test_unexpected_error_only_affects_its_batch() -> None:
    """Une exception quelconque d'un lot bascule ce seul lot en heuristique."""

    def handler(call: int, ids: list[str]):
        if call == 2:
            return RuntimeError("boom")
        return json.dumps([{"id": i, "score": 0.95} for i in ids])

    results, debug = await Reranker(FakeLLM(handler=handler)).rerank(["Python"], _candidates(CANDIDATE_COUNT))
    assert len(results) == CANDIDATE_COUNT
    assert debug.mode == "mixed"
    assert debug.failed_batches == 1
    assert debug.error == "boom"
    assert all(r.score == pytest.approx(HEURISTIC_ON_TOPIC) for r in results[10:20])
