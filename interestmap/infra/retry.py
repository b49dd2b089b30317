# ============================================================
# Module : interestmap/infra/retry.py
# Objet  : Appel asynchrone borné (timeout + retries exponentiels avec jitter).
# Invariants :
#  - Au plus `max_retries` tentatives supplémentaires.
#  - Chaque tentative est annulée à l'expiration de son timeout.
# ============================================================
"""Politique de retry partagée par les clients d'embeddings et de LLM."""

from __future__ import annotations

import asyncio
import random as _rand
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

from interestmap.core.constants import RETRY_BASE_DELAY, RETRY_RANDOM_FACTOR
from interestmap.core.errors import ExternalServiceError

T = TypeVar("T")

log = structlog.get_logger(__name__).bind(component="retry")


@dataclass
class RetryPolicy:
    """Paramètres d'un appel externe borné."""

    timeout_s: float = 12.0
    max_retries: int = 2
    base_delay: float = RETRY_BASE_DELAY
    random_factor: float = RETRY_RANDOM_FACTOR

    def delay_for(self, attempt: int) -> float:
        """Délai avant la tentative `attempt + 1` (attempt commence à 1)."""
        return (2 ** (attempt - 1)) * self.base_delay + _rand.random() * self.random_factor


async def call_with_retry(
    op: str,
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
) -> T:
    """Exécute `fn` avec timeout par tentative et retries bornés.

    Lève ExternalServiceError une fois les tentatives épuisées.
    """
    attempts = 0
    while True:
        attempts += 1
        try:
            return await asyncio.wait_for(fn(), timeout=policy.timeout_s)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if attempts > policy.max_retries:
                raise ExternalServiceError(f"{op} failed after {attempts} attempts: {exc}") from exc
            delay = policy.delay_for(attempts)
            log.warning(
                "external_call_retry",
                op=op,
                attempt=attempts,
                delay_s=round(delay, 3),
                error=type(exc).__name__,
            )
            await asyncio.sleep(delay)
