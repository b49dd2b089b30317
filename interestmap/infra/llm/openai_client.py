"""
Client LLM basé sur l'API chat.completions compatible OpenAI.

Chaque appel est borné par la politique de retry locale; une réponse vide est traitée comme une
erreur (et donc retentée).
"""

from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from interestmap.core.errors import ExternalServiceError
from interestmap.infra.llm.base import LLM
from interestmap.infra.retry import RetryPolicy, call_with_retry


class OpenAILLM(LLM):
    """LLM basé sur OpenAI (chat.completions)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        policy: RetryPolicy | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialise le client OpenAI asynchrone."""
        self.model = model
        self.policy = policy or RetryPolicy(timeout_s=15.0, max_retries=2)
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def generate(self, messages: list[dict[str, str]], **kwargs: Any) -> str:
        """
        Génère du texte via chat.completions.

        Raises:
            ExternalServiceError: après épuisement des tentatives.
        """

        async def _call() -> str:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                **kwargs,
            )
            content = resp.choices[0].message.content if resp.choices else None
            if not content:
                raise ExternalServiceError("LLM returned empty content")
            return str(content)

        return await call_with_retry("llm", _call, self.policy)
