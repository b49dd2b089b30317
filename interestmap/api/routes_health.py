"""
Endpoint de santé du service de contenu.

Expose `/health`: état général, capacités optionnelles et backend de cache.
"""

from fastapi import APIRouter

from interestmap.api.schemas import HealthResponse
from interestmap.core.container import container

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Indique la disponibilité du stockage, des embeddings, du LLM et le cache actif."""
    caps = container.capabilities
    return HealthResponse(
        status="ok",
        store=caps.store,
        embeddings=caps.embeddings,
        llm=caps.llm,
        cache=container.cache.backend,
    )
